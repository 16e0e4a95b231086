"""
Franchise Engine
================

Pure five-year franchise projection engine with zero external dependencies.

Public API:
- ``FinancialInputs`` / ``StartupCostLineItem`` / ``EngineInput``: input contracts
- ``EngineOutput`` and its record types: output contracts
- ``calculate_projections(engine_input)``: main projection computation
- ``round_cents(value)``: the rounding rule applied to every stored value
"""

from franchise_engine.engine import (
    CAPEX,
    CAPEX_CLASSIFICATIONS,
    MAX_PROJECTION_MONTHS,
    MONTHS_PER_YEAR,
    NON_CAPEX,
    PROJECTION_YEARS,
    WORKING_CAPITAL,
    AnnualSummary,
    EngineInput,
    EngineOutput,
    FinancialInputs,
    FinancingInputs,
    IdentityCheckResult,
    MonthlyProjection,
    OperatingCostInputs,
    PLAnalysisOutput,
    RevenueInputs,
    ROICExtendedOutput,
    ROIMetrics,
    StartupCostLineItem,
    StartupInputs,
    ValuationOutput,
    WorkingCapitalInputs,
    aggregate_startup_costs,
    calculate_projections,
    round_cents,
)

__all__ = [
    "CAPEX",
    "CAPEX_CLASSIFICATIONS",
    "MAX_PROJECTION_MONTHS",
    "MONTHS_PER_YEAR",
    "NON_CAPEX",
    "PROJECTION_YEARS",
    "WORKING_CAPITAL",
    "AnnualSummary",
    "EngineInput",
    "EngineOutput",
    "FinancialInputs",
    "FinancingInputs",
    "IdentityCheckResult",
    "MonthlyProjection",
    "OperatingCostInputs",
    "PLAnalysisOutput",
    "ROICExtendedOutput",
    "ROIMetrics",
    "RevenueInputs",
    "StartupCostLineItem",
    "StartupInputs",
    "ValuationOutput",
    "WorkingCapitalInputs",
    "aggregate_startup_costs",
    "calculate_projections",
    "round_cents",
]
