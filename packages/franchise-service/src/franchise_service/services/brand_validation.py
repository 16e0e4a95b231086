"""
Brand Validation
================

Lets a franchisor check a brand configuration against known-good numbers:
build plan inputs from the brand, apply "what if" test overrides, run the
engine and compare selected outputs against expected values within
currency / percentage / months tolerances.
"""

import logging
from typing import Any, Dict, List, Optional

from franchise_engine import EngineOutput, calculate_projections
from franchise_service.config import DEFAULT_TOLERANCES
from franchise_service.errors import BrandNotConfiguredError
from franchise_service.services.engine_input import validate_engine_input
from franchise_service.services.plan_initialization import (
    build_plan_financial_inputs,
    build_plan_startup_costs,
    unwrap_for_engine,
)
from franchise_service.utils.json import sanitize_for_json

logger = logging.getLogger(__name__)

ROI_METRICS = (
    "total_startup_investment",
    "five_year_cumulative_cash_flow",
    "five_year_roi_pct",
    "break_even_month",
)
ANNUAL_METRICS = (
    "revenue",
    "total_cogs",
    "gross_profit",
    "total_opex",
    "ebitda",
    "pre_tax_income",
    "ending_cash",
)
# Test overrides that set every year of a per-year field to one value.
OPERATING_COST_OVERRIDES = (
    "cogs_pct",
    "labor_pct",
    "facilities_annual",
    "marketing_pct",
    "royalty_pct",
    "ad_fund_pct",
    "other_opex_pct",
)


def get_metric_type(metric: str) -> str:
    if metric == "break_even_month":
        return "months"
    if "pct" in metric or "rate" in metric:
        return "percentage"
    return "currency"


def apply_test_input_overrides(plan_inputs: Dict[str, Any], test_inputs: Dict[str, Any]) -> None:
    """Overwrite ``current_value`` of plan fields in place. Values are in plan units (cents, decimals)."""
    revenue = test_inputs.get("revenue") or {}
    if revenue.get("monthly_auv") is not None:
        plan_inputs["revenue"]["monthly_auv"]["current_value"] = revenue["monthly_auv"]
    if revenue.get("growth_rates") is not None:
        for field, rate in zip(plan_inputs["revenue"]["growth_rates"], revenue["growth_rates"]):
            field["current_value"] = rate
    if revenue.get("starting_month_auv_pct") is not None:
        plan_inputs["revenue"]["starting_month_auv_pct"]["current_value"] = revenue["starting_month_auv_pct"]

    costs = test_inputs.get("operating_costs") or {}
    for name in OPERATING_COST_OVERRIDES:
        if costs.get(name) is not None:
            for field in plan_inputs["operating_costs"][name]:
                field["current_value"] = costs[name]

    for section in ("financing", "startup_capital"):
        for name, value in (test_inputs.get(section) or {}).items():
            if value is not None and name in plan_inputs[section]:
                plan_inputs[section][name]["current_value"] = value


def apply_startup_cost_overrides(costs: List[Dict[str, Any]], overrides: List[Dict[str, Any]]) -> None:
    """Set amounts of line items matched by name, case-insensitively."""
    for override in overrides:
        for item in costs:
            if item["name"].lower() == override["name"].lower():
                item["amount"] = override["amount"]
                break


def _comparison(metric: str, category: str, expected: float, actual: float, tolerance: float) -> Dict[str, Any]:
    difference = abs(actual - expected)
    return {
        "metric": metric,
        "category": category,
        "expected": expected,
        "actual": actual,
        "difference": difference,
        "tolerance_used": tolerance,
        "passed": difference <= tolerance,
    }


def compare_metrics(
    actual: EngineOutput,
    expected: Dict[str, Any],
    tolerances: Dict[str, float],
) -> List[Dict[str, Any]]:
    """
    Compare engine output with expected values.

    Only metrics present in ``expected`` are compared. An expected break-even
    month of None is compared as 0. ``identity_checks: true`` appends every
    identity check result as a comparison.
    """
    results: List[Dict[str, Any]] = []

    expected_roi = expected.get("roi_metrics")
    if expected_roi:
        for key in ROI_METRICS:
            if key not in expected_roi:
                continue
            actual_value = getattr(actual.roi_metrics, key) or 0
            expected_value = expected_roi[key] or 0
            tolerance = tolerances[get_metric_type(key)]
            results.append(_comparison(key, "ROI Metrics", expected_value, actual_value, tolerance))

    for expected_year in expected.get("annual_summaries") or []:
        year = expected_year["year"]
        actual_year = next((a for a in actual.annual_summaries if a.year == year), None)
        if actual_year is None:
            continue
        for key in ANNUAL_METRICS:
            if expected_year.get(key) is None:
                continue
            tolerance = tolerances[get_metric_type(key)]
            results.append(
                _comparison(f"Year {year} {key}", f"Year {year}", expected_year[key], getattr(actual_year, key), tolerance)
            )

    if expected.get("identity_checks"):
        for check in actual.identity_checks:
            result = _comparison(check.name, "Identity Checks", check.expected, check.actual, check.tolerance)
            result["passed"] = check.passed
            results.append(result)

    return results


def run_brand_validation(
    brand: Dict[str, Any],
    test_inputs: Dict[str, Any],
    expected_outputs: Dict[str, Any],
    tolerances: Optional[Dict[str, float]] = None,
) -> Dict[str, Any]:
    if not brand.get("brand_parameters"):
        raise BrandNotConfiguredError("Brand does not have financial parameters configured")

    merged_tolerances = dict(DEFAULT_TOLERANCES)
    merged_tolerances.update({k: v for k, v in (tolerances or {}).items() if v is not None})

    plan_inputs = build_plan_financial_inputs(brand["brand_parameters"])
    apply_test_input_overrides(plan_inputs, test_inputs)

    startup_costs = build_plan_startup_costs(brand.get("startup_cost_template") or [])
    if test_inputs.get("startup_costs"):
        apply_startup_cost_overrides(startup_costs, test_inputs["startup_costs"])

    engine_input = unwrap_for_engine(plan_inputs, startup_costs)
    validate_engine_input(engine_input)
    engine_output = calculate_projections(engine_input)
    comparison_results = compare_metrics(engine_output, expected_outputs, merged_tolerances)
    status = "pass" if all(r["passed"] for r in comparison_results) else "fail"

    failed = sum(1 for r in comparison_results if not r["passed"])
    logger.info(
        f"Brand validation for {brand.get('id')}: {status} "
        f"({len(comparison_results) - failed}/{len(comparison_results)} comparisons passed)"
    )

    return {
        "status": status,
        "test_inputs": test_inputs,
        "expected_outputs": expected_outputs,
        "actual_outputs": {
            "roi_metrics": sanitize_for_json(engine_output.roi_metrics),
            "annual_summaries": sanitize_for_json(engine_output.annual_summaries),
            "identity_checks": sanitize_for_json(engine_output.identity_checks),
        },
        "comparison_results": comparison_results,
        "tolerance_config": merged_tolerances,
    }
