"""
Plan Initialization
===================

Bridge between brand parameters and the projection engine.

- ``build_plan_financial_inputs``: brand parameters (dollars) -> plan inputs
  (cents, every value wrapped with source / brand default metadata)
- ``build_plan_startup_costs``: brand startup cost template -> plan line items
- ``unwrap_for_engine``: plan inputs + line items -> ``EngineInput``
- ``migrate_plan_financial_inputs``: single-value format -> per-year format
- ``update_field_value`` / ``reset_field_to_default``: per-field edits
- startup cost list operations (add / remove / update / reset / reorder)

Brand parameters store currency in dollars; plans and the engine use cents.
Plan inputs and line items are plain JSON-serializable dicts so that stores
can persist them unchanged.
"""

from __future__ import annotations

import copy
import uuid
from math import floor
from typing import Any, Dict, List, Optional, Sequence

from franchise_engine import CAPEX, NON_CAPEX, PROJECTION_YEARS
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
from franchise_service.config import (
    DEFAULT_AP_DAYS,
    DEFAULT_AR_DAYS,
    DEFAULT_INVENTORY_DAYS,
    DEFAULT_MONTHS_TO_REACH_AUV,
    DEFAULT_OTHER_OPEX_PCT,
    DEFAULT_PAYROLL_TAX_PCT,
    DEFAULT_STARTING_MONTH_AUV_PCT,
    DEFAULT_TAX_RATE,
    RENT_ESCALATION_RATE,
)

SOURCE_BRAND_DEFAULT = "brand_default"
SOURCE_USER_ENTRY = "user_entry"

FinancialFieldValue = Dict[str, Any]
PlanFinancialInputs = Dict[str, Any]


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def dollars_to_cents(dollars: float) -> int:
    return round_half_up(dollars * 100)


def _param(section: Optional[Dict[str, Any]], key: str, fallback: float = 0) -> float:
    """Read ``section[key]["value"]`` from brand parameters, with a fallback."""
    if not section:
        return fallback
    field = section.get(key)
    if not field or field.get("value") is None:
        return fallback
    return field["value"]


def make_field(
    value: float,
    brand_default: Optional[float] = None,
    item7_range: Optional[Dict[str, float]] = None,
) -> FinancialFieldValue:
    return {
        "current_value": value,
        "source": SOURCE_BRAND_DEFAULT,
        "brand_default": value if brand_default is None else brand_default,
        "item7_range": item7_range,
        "last_modified_at": None,
        "is_custom": False,
    }


def make_field_array(value: float) -> List[FinancialFieldValue]:
    return [make_field(value) for _ in range(PROJECTION_YEARS)]


def make_escalated_array(base_value: float, escalation_rate: float) -> List[FinancialFieldValue]:
    return [
        make_field(round_half_up(base_value * (1 + escalation_rate) ** i))
        for i in range(PROJECTION_YEARS)
    ]


def _other_opex_pct(other_monthly_cents: float, annual_gross_sales_cents: float) -> float:
    if other_monthly_cents > 0 and annual_gross_sales_cents > 0:
        return (other_monthly_cents * 12) / annual_gross_sales_cents
    return DEFAULT_OTHER_OPEX_PCT if other_monthly_cents > 0 else 0.0


# ---------------------------------------------------------------------------
# Brand parameters -> plan inputs
# ---------------------------------------------------------------------------


def build_plan_financial_inputs(brand_parameters: Dict[str, Any]) -> PlanFinancialInputs:
    """
    Build wrapped plan inputs from a brand's dollar-denominated parameters.

    - Currency converted to cents.
    - Facilities = (rent + utilities + insurance) monthly x 12, escalated 3%/year.
    - Year 1 growth applies to year 1; year 2 growth to years 2-5.
    - Other opex becomes a percentage of annual gross sales.
    - Fields the brand does not parameterize get system defaults.
    """
    bp = brand_parameters or {}
    revenue = bp.get("revenue") or {}
    costs = bp.get("operating_costs") or {}
    financing = bp.get("financing") or {}
    startup_capital = bp.get("startup_capital") or {}

    year1_growth = _param(revenue, "year1_growth_rate")
    year2_growth = _param(revenue, "year2_growth_rate")

    rent_annual = dollars_to_cents(_param(costs, "rent_monthly")) * 12
    utilities_annual = dollars_to_cents(_param(costs, "utilities_monthly")) * 12
    insurance_annual = dollars_to_cents(_param(costs, "insurance_monthly")) * 12

    monthly_auv = dollars_to_cents(_param(revenue, "monthly_auv"))
    other_monthly = dollars_to_cents(_param(costs, "other_monthly"))
    other_opex_pct = _other_opex_pct(other_monthly, monthly_auv * 12)

    decomposition = {
        "rent": make_escalated_array(rent_annual, RENT_ESCALATION_RATE),
        "utilities": make_escalated_array(utilities_annual, RENT_ESCALATION_RATE),
        "telecom_it": make_field_array(0),
        "vehicle_fleet": make_field_array(0),
        "insurance": make_escalated_array(insurance_annual, RENT_ESCALATION_RATE),
    }
    facilities_annual = [
        make_field(sum(parts[i]["current_value"] for parts in decomposition.values()))
        for i in range(PROJECTION_YEARS)
    ]

    return {
        "revenue": {
            "monthly_auv": make_field(monthly_auv),
            "growth_rates": [make_field(year1_growth)] + [make_field(year2_growth) for _ in range(4)],
            "starting_month_auv_pct": make_field(
                _param(revenue, "starting_month_auv_pct", DEFAULT_STARTING_MONTH_AUV_PCT)
            ),
        },
        "operating_costs": {
            "royalty_pct": make_field_array(_param(costs, "royalty_pct")),
            "ad_fund_pct": make_field_array(_param(costs, "ad_fund_pct")),
            "cogs_pct": make_field_array(_param(costs, "cogs_pct")),
            "labor_pct": make_field_array(_param(costs, "labor_pct")),
            "facilities_annual": facilities_annual,
            "facilities_decomposition": decomposition,
            "marketing_pct": make_field_array(_param(costs, "marketing_pct")),
            "management_salaries_annual": make_field_array(0),
            "payroll_tax_pct": make_field_array(DEFAULT_PAYROLL_TAX_PCT),
            "other_opex_pct": make_field_array(other_opex_pct),
        },
        "profitability_and_distributions": {
            "target_pre_tax_profit_pct": make_field_array(0),
            "shareholder_salary_adj": make_field_array(0),
            "distributions": make_field_array(0),
            "non_capex_investment": make_field_array(0),
        },
        "working_capital_and_valuation": {
            "ar_days": make_field(DEFAULT_AR_DAYS),
            "ap_days": make_field(DEFAULT_AP_DAYS),
            "inventory_days": make_field(DEFAULT_INVENTORY_DAYS),
            "tax_payment_delay_months": make_field(0),
            "ebitda_multiple": make_field(0),
        },
        "financing": {
            "loan_amount": make_field(dollars_to_cents(_param(financing, "loan_amount"))),
            "interest_rate": make_field(_param(financing, "interest_rate")),
            "loan_term_months": make_field(_param(financing, "loan_term_months")),
            "down_payment_pct": make_field(_param(financing, "down_payment_pct")),
        },
        "startup_capital": {
            "working_capital_months": make_field(_param(startup_capital, "working_capital_months")),
            "depreciation_years": make_field(_param(startup_capital, "depreciation_years")),
        },
    }


def build_plan_startup_costs(template: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Turn a brand's startup cost template (dollars) into plan line items (cents)."""
    items = []
    for index, item in enumerate(template or []):
        amount = dollars_to_cents(item["default_amount"])
        low = item.get("item7_range_low")
        high = item.get("item7_range_high")
        sort_order = item.get("sort_order")
        items.append(
            {
                "id": str(uuid.uuid4()),
                "name": item["name"],
                "amount": amount,
                "capex_classification": item["capex_classification"],
                "is_custom": False,
                "source": SOURCE_BRAND_DEFAULT,
                "brand_default_amount": amount,
                "item7_range_low": dollars_to_cents(low) if low is not None else None,
                "item7_range_high": dollars_to_cents(high) if high is not None else None,
                "sort_order": sort_order if sort_order is not None else index,
            }
        )
    return items


# ---------------------------------------------------------------------------
# Startup cost operations (return new lists, never mutate the input)
# ---------------------------------------------------------------------------


def add_custom_startup_cost(
    costs: List[Dict[str, Any]], name: str, amount: float, classification: str
) -> List[Dict[str, Any]]:
    max_order = max((c["sort_order"] for c in costs), default=-1)
    new_item = {
        "id": str(uuid.uuid4()),
        "name": name,
        "amount": amount,
        "capex_classification": classification,
        "is_custom": True,
        "source": SOURCE_USER_ENTRY,
        "brand_default_amount": None,
        "item7_range_low": None,
        "item7_range_high": None,
        "sort_order": max_order + 1,
    }
    return [dict(c) for c in costs] + [new_item]


def remove_startup_cost(costs: List[Dict[str, Any]], item_id: str) -> List[Dict[str, Any]]:
    """Remove a custom item. Brand default items cannot be removed."""
    item = next((c for c in costs if c["id"] == item_id), None)
    if item is None or not item.get("is_custom"):
        return costs
    return _normalize_order([c for c in costs if c["id"] != item_id])


def update_startup_cost_amount(
    costs: List[Dict[str, Any]], item_id: str, new_amount: float
) -> List[Dict[str, Any]]:
    return [
        dict(c, amount=new_amount, source=SOURCE_USER_ENTRY) if c["id"] == item_id else dict(c)
        for c in costs
    ]


def reset_startup_cost_to_default(costs: List[Dict[str, Any]], item_id: str) -> List[Dict[str, Any]]:
    result = []
    for c in costs:
        if c["id"] != item_id or c.get("is_custom") or c.get("brand_default_amount") is None:
            result.append(dict(c))
        else:
            result.append(dict(c, amount=c["brand_default_amount"], source=SOURCE_BRAND_DEFAULT))
    return result


def reorder_startup_costs(costs: List[Dict[str, Any]], ordered_ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Sort by position in ``ordered_ids``; unlisted items keep their sort order as key."""
    positions = {item_id: i for i, item_id in enumerate(ordered_ids)}
    ordered = sorted(costs, key=lambda c: positions.get(c["id"], c["sort_order"]))
    return [dict(c, sort_order=i) for i, c in enumerate(ordered)]


def get_startup_cost_totals(costs: Sequence[Dict[str, Any]]) -> Dict[str, float]:
    capex_total = 0.0
    non_capex_total = 0.0
    working_capital_total = 0.0
    for c in costs:
        if c["capex_classification"] == CAPEX:
            capex_total += c["amount"]
        elif c["capex_classification"] == NON_CAPEX:
            non_capex_total += c["amount"]
        else:
            working_capital_total += c["amount"]
    return {
        "capex_total": capex_total,
        "non_capex_total": non_capex_total,
        "working_capital_total": working_capital_total,
        "grand_total": capex_total + non_capex_total + working_capital_total,
    }


def migrate_startup_costs(costs: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fill in bookkeeping metadata on legacy items that only carry name/amount/classification."""
    migrated = []
    for index, c in enumerate(costs):
        migrated.append(
            {
                "id": c.get("id") or str(uuid.uuid4()),
                "name": c["name"],
                "amount": c["amount"],
                "capex_classification": c["capex_classification"],
                "is_custom": c.get("is_custom", False),
                "source": c.get("source") or SOURCE_BRAND_DEFAULT,
                "brand_default_amount": c["brand_default_amount"] if "brand_default_amount" in c else c["amount"],
                "item7_range_low": c.get("item7_range_low"),
                "item7_range_high": c.get("item7_range_high"),
                "sort_order": c["sort_order"] if c.get("sort_order") is not None else index,
            }
        )
    return migrated


def _normalize_order(costs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ordered = sorted(costs, key=lambda c: c["sort_order"])
    return [dict(c, sort_order=i) for i, c in enumerate(ordered)]


# ---------------------------------------------------------------------------
# Migration: single-value format -> per-year format
# ---------------------------------------------------------------------------


def is_old_format(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    revenue = data.get("revenue")
    return isinstance(revenue, dict) and "year1_growth_rate" in revenue


def _migrate_field(old: FinancialFieldValue) -> List[FinancialFieldValue]:
    return [dict(old) for _ in range(PROJECTION_YEARS)]


def _migrate_field_with_escalation(old: FinancialFieldValue, annual_factor: float) -> List[FinancialFieldValue]:
    base_annual = old["current_value"] * 12
    base_default = old["brand_default"] * 12 if old.get("brand_default") is not None else None
    return [
        dict(
            old,
            current_value=round_half_up(base_annual * (1 + annual_factor) ** i),
            brand_default=(
                round_half_up(base_default * (1 + annual_factor) ** i) if base_default is not None else None
            ),
        )
        for i in range(PROJECTION_YEARS)
    ]


def migrate_plan_financial_inputs(data: Any) -> PlanFinancialInputs:
    """
    Convert plan inputs saved in the single-value format (monthly rent /
    utilities / insurance / other, one growth rate per phase) into the
    per-year format. Inputs already in the per-year format are returned as is.
    """
    if not is_old_format(data):
        return data

    old = copy.deepcopy(data)
    revenue = old["revenue"]
    costs = old["operating_costs"]

    def v(field: FinancialFieldValue) -> float:
        return field["current_value"]

    monthly_fixed = v(costs["rent_monthly"]) + v(costs["utilities_monthly"]) + v(costs["insurance_monthly"])
    base_annual_facilities = monthly_fixed * 12
    facilities_annual = [
        make_field(round_half_up(base_annual_facilities * (1 + RENT_ESCALATION_RATE) ** i))
        for i in range(PROJECTION_YEARS)
    ]

    other_field = make_field(_other_opex_pct(v(costs["other_monthly"]), v(revenue["monthly_auv"]) * 12))
    if costs["other_monthly"].get("is_custom"):
        other_field["source"] = costs["other_monthly"]["source"]
        other_field["is_custom"] = True
        other_field["last_modified_at"] = costs["other_monthly"].get("last_modified_at")

    return {
        "revenue": {
            "monthly_auv": dict(revenue["monthly_auv"]),
            "growth_rates": [dict(revenue["year1_growth_rate"])]
            + [dict(revenue["year2_growth_rate"]) for _ in range(4)],
            "starting_month_auv_pct": dict(revenue["starting_month_auv_pct"]),
        },
        "operating_costs": {
            "royalty_pct": _migrate_field(costs["royalty_pct"]),
            "ad_fund_pct": _migrate_field(costs["ad_fund_pct"]),
            "cogs_pct": _migrate_field(costs["cogs_pct"]),
            "labor_pct": _migrate_field(costs["labor_pct"]),
            "facilities_annual": facilities_annual,
            "facilities_decomposition": {
                "rent": _migrate_field_with_escalation(costs["rent_monthly"], RENT_ESCALATION_RATE),
                "utilities": _migrate_field_with_escalation(costs["utilities_monthly"], RENT_ESCALATION_RATE),
                "telecom_it": make_field_array(0),
                "vehicle_fleet": make_field_array(0),
                "insurance": _migrate_field_with_escalation(costs["insurance_monthly"], RENT_ESCALATION_RATE),
            },
            "marketing_pct": _migrate_field(costs["marketing_pct"]),
            "management_salaries_annual": make_field_array(0),
            "payroll_tax_pct": make_field_array(DEFAULT_PAYROLL_TAX_PCT),
            "other_opex_pct": [dict(other_field) for _ in range(PROJECTION_YEARS)],
        },
        "profitability_and_distributions": {
            "target_pre_tax_profit_pct": make_field_array(0),
            "shareholder_salary_adj": make_field_array(0),
            "distributions": make_field_array(0),
            "non_capex_investment": make_field_array(0),
        },
        "working_capital_and_valuation": {
            "ar_days": make_field(DEFAULT_AR_DAYS),
            "ap_days": make_field(DEFAULT_AP_DAYS),
            "inventory_days": make_field(DEFAULT_INVENTORY_DAYS),
            "tax_payment_delay_months": make_field(0),
            "ebitda_multiple": make_field(0),
        },
        "financing": old["financing"],
        "startup_capital": old["startup_capital"],
    }


# ---------------------------------------------------------------------------
# Plan inputs -> engine input
# ---------------------------------------------------------------------------


def _per_year(fields: Sequence[FinancialFieldValue]):
    return tuple(f["current_value"] for f in fields[:PROJECTION_YEARS])


def _rates(fields: Sequence[FinancialFieldValue]):
    # Rate arrays may carry 60 per-month values.
    return tuple(f["current_value"] for f in fields)


def to_engine_line_item(item: Dict[str, Any]) -> StartupCostLineItem:
    return StartupCostLineItem(
        name=item["name"],
        amount=item["amount"],
        capex_classification=item["capex_classification"],
        id=item.get("id"),
        is_custom=item.get("is_custom", False),
        source=item.get("source") or SOURCE_BRAND_DEFAULT,
        brand_default_amount=item.get("brand_default_amount"),
        item7_range_low=item.get("item7_range_low"),
        item7_range_high=item.get("item7_range_high"),
        sort_order=item.get("sort_order") or 0,
    )


def unwrap_for_engine(plan_inputs: PlanFinancialInputs, startup_costs: Sequence[Dict[str, Any]]) -> EngineInput:
    """
    Strip field metadata and derive the engine's raw inputs.

    - Total investment = sum of startup costs, or the loan amount when there are none.
    - Equity pct = 1 - loan / total investment, clamped to [0, 1].
    - Depreciation rate = 1 / depreciation years (0 when years is 0).
    - Zero EBITDA multiple and zero tax payment delay mean "use the engine default".
    """
    pi = plan_inputs

    def v(field: FinancialFieldValue) -> float:
        return field["current_value"]

    revenue = pi["revenue"]
    costs = pi["operating_costs"]
    financing = pi["financing"]
    wc = pi["working_capital_and_valuation"]
    pd_ = pi["profitability_and_distributions"]

    total_investment = sum(c["amount"] for c in startup_costs)
    loan_amount = v(financing["loan_amount"])
    effective_investment = total_investment if total_investment > 0 else loan_amount
    if effective_investment > 0:
        equity_pct = max(0.0, min(1.0, 1 - loan_amount / effective_investment))
    else:
        equity_pct = 0.0

    depreciation_years = v(pi["startup_capital"]["depreciation_years"])
    depreciation_rate = 1 / depreciation_years if depreciation_years > 0 else 0.0

    financial_inputs = FinancialInputs(
        revenue=RevenueInputs(
            annual_gross_sales=v(revenue["monthly_auv"]) * 12,
            months_to_reach_auv=DEFAULT_MONTHS_TO_REACH_AUV,
            starting_month_auv_pct=v(revenue["starting_month_auv_pct"]),
            growth_rates=_per_year(revenue["growth_rates"]),
        ),
        operating_costs=OperatingCostInputs(
            cogs_pct=_rates(costs["cogs_pct"]),
            labor_pct=_rates(costs["labor_pct"]),
            royalty_pct=_rates(costs["royalty_pct"]),
            ad_fund_pct=_rates(costs["ad_fund_pct"]),
            marketing_pct=_rates(costs["marketing_pct"]),
            other_opex_pct=_rates(costs["other_opex_pct"]),
            payroll_tax_pct=_rates(costs["payroll_tax_pct"]),
            facilities_annual=_per_year(costs["facilities_annual"]),
            management_salaries_annual=_per_year(costs["management_salaries_annual"]),
        ),
        financing=FinancingInputs(
            total_investment=effective_investment,
            equity_pct=equity_pct,
            interest_rate=v(financing["interest_rate"]),
            term_months=int(v(financing["loan_term_months"])),
        ),
        startup=StartupInputs(depreciation_rate=depreciation_rate),
        working_capital=WorkingCapitalInputs(
            ar_days=v(wc["ar_days"]),
            ap_days=v(wc["ap_days"]),
            inventory_days=v(wc["inventory_days"]),
        ),
        distributions=_per_year(pd_["distributions"]),
        tax_rate=DEFAULT_TAX_RATE,
        ebitda_multiple=v(wc["ebitda_multiple"]) or None,
        target_pre_tax_profit_pct=_per_year(pd_["target_pre_tax_profit_pct"]),
        shareholder_salary_adj=_per_year(pd_["shareholder_salary_adj"]),
        tax_payment_delay_months=int(v(wc["tax_payment_delay_months"])) or None,
        non_capex_investment=_per_year(pd_["non_capex_investment"]),
    )

    return EngineInput(
        financial_inputs=financial_inputs,
        startup_costs=[to_engine_line_item(c) for c in startup_costs],
    )


# ---------------------------------------------------------------------------
# Field edits
# ---------------------------------------------------------------------------


def update_field_value(field: FinancialFieldValue, new_value: float, timestamp: str) -> FinancialFieldValue:
    return dict(
        field,
        current_value=new_value,
        source=SOURCE_USER_ENTRY,
        is_custom=True,
        last_modified_at=timestamp,
    )


def reset_field_to_default(field: FinancialFieldValue, timestamp: str) -> FinancialFieldValue:
    if field.get("brand_default") is None:
        return field
    return dict(
        field,
        current_value=field["brand_default"],
        source=SOURCE_BRAND_DEFAULT,
        is_custom=False,
        last_modified_at=timestamp,
    )
