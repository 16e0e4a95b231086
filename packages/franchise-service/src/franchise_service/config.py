"""
Service configuration.

Values are read once from the environment at import time.
"""

import os

LOG_LEVEL = os.getenv("FRANCHISE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("FRANCHISE_LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s")

# "memory" keeps brands/plans in process; "sql" persists them through SQLAlchemy.
STORE_BACKEND = os.getenv("FRANCHISE_STORE", "memory")
# SQL store connection; falls back to a local SQLite file for development.
DATABASE_URL = os.getenv("FRANCHISE_DATABASE_URL", "sqlite:///./franchise.db")
DB_POOL_SIZE = int(os.getenv("FRANCHISE_DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("FRANCHISE_DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("FRANCHISE_DB_POOL_RECYCLE", "3600"))
# Directory of brand JSON files loaded into the store at startup; empty disables seeding.
SEED_BRANDS_DIR = os.getenv("FRANCHISE_SEED_BRANDS_DIR", "")

EXPORT_FORMAT = os.getenv("FRANCHISE_EXPORT_FORMAT", "csv")

# System defaults for fields that brands do not parameterize.
DEFAULT_MONTHS_TO_REACH_AUV = int(os.getenv("FRANCHISE_MONTHS_TO_REACH_AUV", "14"))
DEFAULT_STARTING_MONTH_AUV_PCT = 0.08
DEFAULT_PAYROLL_TAX_PCT = 0.20
DEFAULT_OTHER_OPEX_PCT = 0.03
DEFAULT_AR_DAYS = 30
DEFAULT_AP_DAYS = 60
DEFAULT_INVENTORY_DAYS = 60
DEFAULT_TAX_RATE = float(os.getenv("FRANCHISE_TAX_RATE", "0.21"))
RENT_ESCALATION_RATE = 0.03

# Brand validation tolerances: cents, decimal points, months.
DEFAULT_TOLERANCES = {
    "currency": 100.0,
    "percentage": 0.001,
    "months": 1.0,
}
