"""
Franchise Service
=================

HTTP and orchestration layer around the pure ``franchise_engine`` package:
brand/plan persistence, plan initialization (field wrapping), projection
orchestration, brand validation and statement export.
"""
