"""
Boundary checks and dict -> dataclass conversion for engine input.

The engine trusts its input; everything that can be malformed (array lengths,
NaN / infinite values, unknown cost classifications) is rejected here with an
``InputError`` before a projection runs.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List

from franchise_engine import CAPEX_CLASSIFICATIONS, MAX_PROJECTION_MONTHS, PROJECTION_YEARS
from franchise_engine.models import (
    EngineInput,
    FinancialInputs,
    FinancingInputs,
    OperatingCostInputs,
    RevenueInputs,
    StartupCostLineItem,
    StartupInputs,
    WorkingCapitalInputs,
)
from franchise_service.errors import InputError

RATE_FIELDS = (
    "cogs_pct",
    "labor_pct",
    "royalty_pct",
    "ad_fund_pct",
    "marketing_pct",
    "other_opex_pct",
    "payroll_tax_pct",
)


def _check_finite(name: str, values: Iterable[Any]) -> None:
    for value in values:
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InputError(f"{name} must be numeric, got {value!r}")
        if math.isnan(value) or math.isinf(value):
            raise InputError(f"{name} must be finite, got {value!r}")


def _check_per_year(name: str, values: Any) -> None:
    if values is None or len(values) != PROJECTION_YEARS:
        raise InputError(f"{name} must have exactly {PROJECTION_YEARS} values")
    _check_finite(name, values)


def _check_rate_array(name: str, values: Any) -> None:
    if values is None or len(values) not in (PROJECTION_YEARS, MAX_PROJECTION_MONTHS):
        raise InputError(f"{name} must have {PROJECTION_YEARS} per-year or {MAX_PROJECTION_MONTHS} per-month values")
    _check_finite(name, values)


def validate_engine_input(engine_input: EngineInput) -> None:
    """Raise ``InputError`` when ``engine_input`` violates the engine's input contract."""
    fi = engine_input.financial_inputs

    _check_finite(
        "revenue",
        [fi.revenue.annual_gross_sales, fi.revenue.months_to_reach_auv, fi.revenue.starting_month_auv_pct],
    )
    if fi.revenue.months_to_reach_auv < 0:
        raise InputError("months_to_reach_auv must be >= 0")
    _check_per_year("growth_rates", fi.revenue.growth_rates)

    oc = fi.operating_costs
    for name in RATE_FIELDS:
        _check_rate_array(name, getattr(oc, name))
    _check_per_year("facilities_annual", oc.facilities_annual)
    _check_per_year("management_salaries_annual", oc.management_salaries_annual)

    _check_finite(
        "financing",
        [fi.financing.total_investment, fi.financing.equity_pct, fi.financing.interest_rate, fi.financing.term_months],
    )
    if fi.financing.term_months < 0:
        raise InputError("term_months must be >= 0")
    _check_finite("depreciation_rate", [fi.startup.depreciation_rate])
    if fi.startup.depreciation_rate < 0:
        raise InputError("depreciation_rate must be >= 0")
    _check_finite(
        "working_capital",
        [fi.working_capital.ar_days, fi.working_capital.ap_days, fi.working_capital.inventory_days],
    )
    _check_per_year("distributions", fi.distributions)
    _check_finite("tax_rate", [fi.tax_rate])

    for name in ("target_pre_tax_profit_pct", "shareholder_salary_adj", "non_capex_investment"):
        values = getattr(fi, name)
        if values is not None:
            _check_per_year(name, values)
    if fi.ebitda_multiple is not None:
        _check_finite("ebitda_multiple", [fi.ebitda_multiple])
    if fi.tax_payment_delay_months is not None:
        _check_finite("tax_payment_delay_months", [fi.tax_payment_delay_months])
        if fi.tax_payment_delay_months < 0:
            raise InputError("tax_payment_delay_months must be >= 0")

    for item in engine_input.startup_costs:
        if item.capex_classification not in CAPEX_CLASSIFICATIONS:
            raise InputError(
                f"Startup cost '{item.name}' has unknown classification '{item.capex_classification}'"
            )
        _check_finite(f"Startup cost '{item.name}' amount", [item.amount])


def _optional_tuple(values: Any):
    return tuple(values) if values is not None else None


def engine_input_from_dict(data: Dict[str, Any]) -> EngineInput:
    """Build an ``EngineInput`` from the snake_case dict shape used by the API."""
    try:
        fi = data["financial_inputs"]
        revenue = fi["revenue"]
        oc = fi["operating_costs"]
        financing = fi["financing"]
        wc = fi["working_capital"]

        financial_inputs = FinancialInputs(
            revenue=RevenueInputs(
                annual_gross_sales=revenue["annual_gross_sales"],
                months_to_reach_auv=revenue["months_to_reach_auv"],
                starting_month_auv_pct=revenue["starting_month_auv_pct"],
                growth_rates=tuple(revenue["growth_rates"]),
            ),
            operating_costs=OperatingCostInputs(
                facilities_annual=tuple(oc["facilities_annual"]),
                management_salaries_annual=tuple(oc["management_salaries_annual"]),
                **{name: tuple(oc[name]) for name in RATE_FIELDS},
            ),
            financing=FinancingInputs(
                total_investment=financing["total_investment"],
                equity_pct=financing["equity_pct"],
                interest_rate=financing["interest_rate"],
                term_months=financing["term_months"],
            ),
            startup=StartupInputs(depreciation_rate=fi["startup"]["depreciation_rate"]),
            working_capital=WorkingCapitalInputs(
                ar_days=wc["ar_days"],
                ap_days=wc["ap_days"],
                inventory_days=wc["inventory_days"],
            ),
            distributions=tuple(fi["distributions"]),
            tax_rate=fi["tax_rate"],
            ebitda_multiple=fi.get("ebitda_multiple"),
            target_pre_tax_profit_pct=_optional_tuple(fi.get("target_pre_tax_profit_pct")),
            shareholder_salary_adj=_optional_tuple(fi.get("shareholder_salary_adj")),
            tax_payment_delay_months=fi.get("tax_payment_delay_months"),
            non_capex_investment=_optional_tuple(fi.get("non_capex_investment")),
        )

        startup_costs: List[StartupCostLineItem] = [
            StartupCostLineItem(**item) for item in data.get("startup_costs") or []
        ]
    except (KeyError, TypeError) as e:
        raise InputError(f"Malformed engine input: {e}") from e

    return EngineInput(financial_inputs=financial_inputs, startup_costs=startup_costs)
