"""
Convenience re-exports of data models.

All models are defined in ``franchise_engine.engine`` and re-exported here
for consumers who prefer ``from franchise_engine.models import EngineInput``.
"""

from franchise_engine.engine import (
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
)

__all__ = [
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
]
