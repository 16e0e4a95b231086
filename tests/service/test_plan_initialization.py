"""
Tests for brand parameters -> plan inputs -> engine input, migration of the
single-value format and per-field / per-line-item edits.
"""

import pytest

from franchise_service.services.plan_initialization import (
    SOURCE_BRAND_DEFAULT,
    SOURCE_USER_ENTRY,
    add_custom_startup_cost,
    build_plan_financial_inputs,
    build_plan_startup_costs,
    dollars_to_cents,
    get_startup_cost_totals,
    is_old_format,
    make_field,
    migrate_plan_financial_inputs,
    migrate_startup_costs,
    remove_startup_cost,
    reorder_startup_costs,
    reset_field_to_default,
    reset_startup_cost_to_default,
    unwrap_for_engine,
    update_field_value,
    update_startup_cost_amount,
)


@pytest.fixture
def plan_inputs(demo_brand):
    return build_plan_financial_inputs(demo_brand["brand_parameters"])


@pytest.fixture
def startup_costs(demo_brand):
    return build_plan_startup_costs(demo_brand["startup_cost_template"])


def _values(fields):
    return [f["current_value"] for f in fields]


# ---------------------------------------------------------------------------
# Brand parameters -> plan inputs
# ---------------------------------------------------------------------------


def test_dollars_to_cents():
    assert dollars_to_cents(26866.75) == 2686675
    assert dollars_to_cents(0.125) == 13
    assert dollars_to_cents(0) == 0


def test_currency_converted_to_cents(plan_inputs):
    assert plan_inputs["revenue"]["monthly_auv"]["current_value"] == 2686675
    assert plan_inputs["financing"]["loan_amount"]["current_value"] == 20000000


def test_every_field_starts_as_brand_default(plan_inputs):
    field = plan_inputs["revenue"]["monthly_auv"]
    assert field["source"] == SOURCE_BRAND_DEFAULT
    assert field["brand_default"] == field["current_value"]
    assert field["is_custom"] is False
    assert field["last_modified_at"] is None


def test_growth_rates_split_year1_and_later(plan_inputs):
    assert _values(plan_inputs["revenue"]["growth_rates"]) == [0.13, 0.10, 0.10, 0.10, 0.10]


def test_facilities_escalate_three_percent(plan_inputs):
    decomposition = plan_inputs["operating_costs"]["facilities_decomposition"]
    assert _values(decomposition["rent"])[:3] == [6600000, 6798000, 7001940]
    assert _values(decomposition["telecom_it"]) == [0] * 5

    facilities = _values(plan_inputs["operating_costs"]["facilities_annual"])
    assert facilities[0] == 6600000 + 960000 + 420000
    assert facilities[1] == 6798000 + 988800 + 432600


def test_other_monthly_becomes_pct_of_sales(plan_inputs):
    other = _values(plan_inputs["operating_costs"]["other_opex_pct"])
    assert other[0] == pytest.approx(80000 / 2686675)
    assert len(set(other)) == 1


def test_system_defaults_for_unparameterized_fields(plan_inputs):
    assert _values(plan_inputs["operating_costs"]["payroll_tax_pct"]) == [0.20] * 5
    assert _values(plan_inputs["operating_costs"]["management_salaries_annual"]) == [0] * 5
    wc = plan_inputs["working_capital_and_valuation"]
    assert (wc["ar_days"]["current_value"], wc["ap_days"]["current_value"], wc["inventory_days"]["current_value"]) == (
        30,
        60,
        60,
    )


def test_missing_parameters_fall_back_to_zero():
    inputs = build_plan_financial_inputs({})
    assert inputs["revenue"]["monthly_auv"]["current_value"] == 0
    assert inputs["revenue"]["starting_month_auv_pct"]["current_value"] == 0.08
    assert _values(inputs["operating_costs"]["other_opex_pct"]) == [0.0] * 5


def test_build_plan_startup_costs(startup_costs):
    assert [c["amount"] for c in startup_costs] == [3500000, 12000000, 6500000, 1000000, 3000000]
    fee = startup_costs[0]
    assert fee["brand_default_amount"] == 3500000
    assert fee["item7_range_low"] == 3500000
    assert fee["is_custom"] is False
    assert len({c["id"] for c in startup_costs}) == 5


# ---------------------------------------------------------------------------
# Plan inputs -> engine input
# ---------------------------------------------------------------------------


def test_unwrap_for_engine(plan_inputs, startup_costs):
    engine_input = unwrap_for_engine(plan_inputs, startup_costs)
    fi = engine_input.financial_inputs

    assert fi.revenue.annual_gross_sales == 2686675 * 12
    assert fi.revenue.months_to_reach_auv == 14
    assert fi.financing.total_investment == 26000000
    assert fi.financing.equity_pct == pytest.approx(1 - 20000000 / 26000000)
    assert fi.financing.term_months == 144
    assert fi.startup.depreciation_rate == 0.25
    assert fi.tax_rate == 0.21
    assert fi.non_capex_investment == (0, 0, 0, 0, 0)
    assert len(engine_input.startup_costs) == 5


def test_zero_multiple_and_delay_use_engine_defaults(plan_inputs, startup_costs):
    fi = unwrap_for_engine(plan_inputs, startup_costs).financial_inputs
    assert fi.ebitda_multiple is None
    assert fi.tax_payment_delay_months is None


def test_loan_amount_is_investment_without_startup_costs(plan_inputs):
    fi = unwrap_for_engine(plan_inputs, []).financial_inputs
    assert fi.financing.total_investment == 20000000
    assert fi.financing.equity_pct == 0.0


def test_equity_pct_clamped_when_loan_exceeds_investment(plan_inputs, startup_costs):
    plan_inputs["financing"]["loan_amount"]["current_value"] = 99000000
    fi = unwrap_for_engine(plan_inputs, startup_costs).financial_inputs
    assert fi.financing.equity_pct == 0.0


def test_zero_depreciation_years(plan_inputs, startup_costs):
    plan_inputs["startup_capital"]["depreciation_years"]["current_value"] = 0
    fi = unwrap_for_engine(plan_inputs, startup_costs).financial_inputs
    assert fi.startup.depreciation_rate == 0.0


def test_per_month_rate_arrays_pass_through(plan_inputs, startup_costs):
    plan_inputs["operating_costs"]["cogs_pct"] = [make_field(0.3) for _ in range(60)]
    fi = unwrap_for_engine(plan_inputs, startup_costs).financial_inputs
    assert len(fi.operating_costs.cogs_pct) == 60


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


def _old_format_inputs():
    return {
        "revenue": {
            "monthly_auv": make_field(2686675),
            "year1_growth_rate": make_field(0.13),
            "year2_growth_rate": make_field(0.10),
            "starting_month_auv_pct": make_field(0.08),
        },
        "operating_costs": {
            "royalty_pct": make_field(0.05),
            "ad_fund_pct": make_field(0.02),
            "cogs_pct": make_field(0.30),
            "labor_pct": make_field(0.17),
            "rent_monthly": make_field(550000),
            "utilities_monthly": make_field(80000),
            "insurance_monthly": make_field(35000),
            "marketing_pct": make_field(0.02),
            "other_monthly": make_field(80000),
        },
        "financing": {
            "loan_amount": make_field(20000000),
            "interest_rate": make_field(0.105),
            "loan_term_months": make_field(144),
            "down_payment_pct": make_field(0.20),
        },
        "startup_capital": {
            "working_capital_months": make_field(3),
            "depreciation_years": make_field(4),
        },
    }


def test_is_old_format(plan_inputs):
    assert is_old_format(_old_format_inputs())
    assert not is_old_format(plan_inputs)
    assert not is_old_format(None)


def test_new_format_is_returned_unchanged(plan_inputs):
    assert migrate_plan_financial_inputs(plan_inputs) is plan_inputs


def test_migration_to_per_year_format():
    migrated = migrate_plan_financial_inputs(_old_format_inputs())

    assert _values(migrated["revenue"]["growth_rates"]) == [0.13, 0.10, 0.10, 0.10, 0.10]
    assert _values(migrated["operating_costs"]["cogs_pct"]) == [0.30] * 5
    assert migrated["operating_costs"]["facilities_annual"][0]["current_value"] == 7980000
    assert _values(migrated["operating_costs"]["facilities_decomposition"]["rent"])[:2] == [6600000, 6798000]
    assert migrated["operating_costs"]["other_opex_pct"][0]["current_value"] == pytest.approx(80000 / 2686675)
    assert migrated["working_capital_and_valuation"]["ar_days"]["current_value"] == 30
    assert not is_old_format(migrated)


def test_migration_keeps_custom_other_opex():
    old = _old_format_inputs()
    old["operating_costs"]["other_monthly"] = update_field_value(
        old["operating_costs"]["other_monthly"], 100000, "2024-01-01T00:00:00+00:00"
    )
    migrated = migrate_plan_financial_inputs(old)
    other = migrated["operating_costs"]["other_opex_pct"][0]

    assert other["is_custom"] is True
    assert other["source"] == SOURCE_USER_ENTRY
    assert other["last_modified_at"] == "2024-01-01T00:00:00+00:00"


def test_migrated_inputs_unwrap(startup_costs):
    engine_input = unwrap_for_engine(migrate_plan_financial_inputs(_old_format_inputs()), startup_costs)
    assert engine_input.financial_inputs.operating_costs.facilities_annual[0] == 7980000


# ---------------------------------------------------------------------------
# Field edits
# ---------------------------------------------------------------------------


def test_update_and_reset_field():
    field = make_field(0.30)
    edited = update_field_value(field, 0.28, "2024-01-01T00:00:00+00:00")

    assert edited["current_value"] == 0.28
    assert edited["source"] == SOURCE_USER_ENTRY
    assert edited["is_custom"] is True
    assert edited["brand_default"] == 0.30
    assert field["current_value"] == 0.30

    reset = reset_field_to_default(edited, "2024-01-02T00:00:00+00:00")
    assert reset["current_value"] == 0.30
    assert reset["source"] == SOURCE_BRAND_DEFAULT
    assert reset["is_custom"] is False


def test_reset_without_brand_default_is_noop():
    field = dict(make_field(5), brand_default=None)
    assert reset_field_to_default(field, "now") is field


# ---------------------------------------------------------------------------
# Startup cost operations
# ---------------------------------------------------------------------------


def test_add_custom_startup_cost(startup_costs):
    result = add_custom_startup_cost(startup_costs, "Vehicle", 2500000, "capex")

    assert len(result) == 6
    assert len(startup_costs) == 5
    added = result[-1]
    assert added["is_custom"] is True
    assert added["source"] == SOURCE_USER_ENTRY
    assert added["brand_default_amount"] is None
    assert added["sort_order"] == 5


def test_brand_default_items_cannot_be_removed(startup_costs):
    assert remove_startup_cost(startup_costs, startup_costs[0]["id"]) == startup_costs


def test_remove_custom_item_renumbers(startup_costs):
    costs = add_custom_startup_cost(startup_costs, "Vehicle", 2500000, "capex")
    costs = add_custom_startup_cost(costs, "Permits", 150000, "non_capex")
    result = remove_startup_cost(costs, costs[5]["id"])

    assert [c["name"] for c in result][-1] == "Permits"
    assert [c["sort_order"] for c in result] == list(range(6))


def test_update_then_reset_amount(startup_costs):
    item_id = startup_costs[1]["id"]
    updated = update_startup_cost_amount(startup_costs, item_id, 15000000)
    assert updated[1]["amount"] == 15000000
    assert updated[1]["source"] == SOURCE_USER_ENTRY

    reset = reset_startup_cost_to_default(updated, item_id)
    assert reset[1]["amount"] == 12000000
    assert reset[1]["source"] == SOURCE_BRAND_DEFAULT


def test_reorder_startup_costs(startup_costs):
    ids = [c["id"] for c in startup_costs]
    reordered = reorder_startup_costs(startup_costs, list(reversed(ids)))

    assert [c["id"] for c in reordered] == list(reversed(ids))
    assert [c["sort_order"] for c in reordered] == list(range(5))


def test_startup_cost_totals(startup_costs):
    assert get_startup_cost_totals(startup_costs) == {
        "capex_total": 18500000,
        "non_capex_total": 4500000,
        "working_capital_total": 3000000,
        "grand_total": 26000000,
    }


def test_migrate_legacy_startup_costs():
    legacy = [
        {"name": "Franchise Fee", "amount": 3500000, "capex_classification": "non_capex"},
        {"name": "Equipment", "amount": 6500000, "capex_classification": "capex"},
    ]
    migrated = migrate_startup_costs(legacy)

    assert all(c["id"] for c in migrated)
    assert [c["sort_order"] for c in migrated] == [0, 1]
    assert migrated[0]["brand_default_amount"] == 3500000
    assert migrated[0]["source"] == SOURCE_BRAND_DEFAULT
    assert migrated[0]["is_custom"] is False
