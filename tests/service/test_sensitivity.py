"""
Tests for slider sensitivity and conservative / optimistic scenarios.
"""

import pytest

from franchise_service.errors import NotFoundError
from franchise_service.services.engine_input import engine_input_from_dict
from franchise_service.services.plans import PlanService
from franchise_service.services.projections import ProjectionService
from franchise_service.services.sensitivity import (
    CONSERVATIVE,
    OPTIMISTIC,
    SCENARIO_LABELS,
    SensitivityAdjustments,
    apply_scenario,
    apply_sensitivity,
    clamp_to_math_limits,
    compute_scenario_outputs,
    compute_sensitivity_outputs,
)


@pytest.fixture
def engine_input(postnet_payload):
    return engine_input_from_dict(postnet_payload)


@pytest.fixture
def fi(engine_input):
    return engine_input.financial_inputs


# ---------------------------------------------------------------------------
# Slider adjustments
# ---------------------------------------------------------------------------


def test_revenue_slider_scales_annual_gross_sales(fi):
    adjusted = apply_sensitivity(fi, SensitivityAdjustments(revenue=10))
    assert adjusted.revenue.annual_gross_sales == 35464110
    assert fi.revenue.annual_gross_sales == 32240100


@pytest.mark.parametrize("revenue", [-100, -150])
def test_revenue_slider_floors_at_zero(fi, revenue):
    adjusted = apply_sensitivity(fi, SensitivityAdjustments(revenue=revenue))
    assert adjusted.revenue.annual_gross_sales == 0


def test_cogs_slider_moves_percentage_points_and_clamps(fi):
    up = apply_sensitivity(fi, SensitivityAdjustments(cogs=5))
    down = apply_sensitivity(fi, SensitivityAdjustments(cogs=-40))

    assert up.operating_costs.cogs_pct == pytest.approx((0.35,) * 5)
    assert down.operating_costs.cogs_pct == (0.0,) * 5


def test_labor_and_marketing_sliders_are_relative(fi):
    adjusted = apply_sensitivity(fi, SensitivityAdjustments(labor=100, marketing=-50))

    assert adjusted.operating_costs.labor_pct == pytest.approx((0.34,) * 5)
    assert adjusted.operating_costs.marketing_pct == pytest.approx((0.025, 0.015, 0.01, 0.01, 0.01))


def test_facilities_slider_rounds_to_whole_cents(fi):
    adjusted = apply_sensitivity(fi, SensitivityAdjustments(facilities=10))
    assert adjusted.operating_costs.facilities_annual == (1100000, 1133000, 1166990, 1201970, 1238050)


def test_sliders_leave_untouched_fields_alone(fi):
    adjusted = apply_sensitivity(fi, SensitivityAdjustments(revenue=20, cogs=2))

    assert adjusted.operating_costs.royalty_pct == fi.operating_costs.royalty_pct
    assert adjusted.operating_costs.other_opex_pct == fi.operating_costs.other_opex_pct
    assert adjusted.financing == fi.financing


def test_clamp_to_math_limits():
    assert clamp_to_math_limits("revenue", -150) == -100
    assert clamp_to_math_limits("revenue", 250) == 250
    assert clamp_to_math_limits("labor", 500) == 500


def test_neutral_sliders_reuse_the_base_projection(engine_input):
    outputs = compute_sensitivity_outputs(engine_input)
    assert outputs["current"] is outputs["base"]


def test_revenue_slider_raises_projected_revenue(engine_input):
    outputs = compute_sensitivity_outputs(engine_input, SensitivityAdjustments(revenue=25))

    base_revenue = [s.revenue for s in outputs["base"].annual_summaries]
    current_revenue = [s.revenue for s in outputs["current"].annual_summaries]
    assert all(cur > base for cur, base in zip(current_revenue, base_revenue))
    assert all(c.passed for c in outputs["current"].identity_checks)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_conservative_scenario_inputs(fi):
    adjusted = apply_scenario(fi, CONSERVATIVE)
    oc = adjusted.operating_costs

    assert adjusted.revenue.annual_gross_sales == 27404085
    assert oc.cogs_pct == pytest.approx((0.32,) * 5)
    assert oc.labor_pct == pytest.approx((0.187,) * 5)
    assert oc.other_opex_pct == pytest.approx((0.033,) * 5)
    assert oc.facilities_annual[0] == 1100000
    assert oc.royalty_pct == fi.operating_costs.royalty_pct


def test_optimistic_scenario_inputs(fi):
    adjusted = apply_scenario(fi, OPTIMISTIC)

    assert adjusted.revenue.annual_gross_sales == 37076115
    assert adjusted.operating_costs.cogs_pct == pytest.approx((0.29,) * 5)
    assert adjusted.operating_costs.facilities_annual[0] == 950000


def test_scenarios_bracket_the_base_case(engine_input):
    outputs = compute_scenario_outputs(engine_input)

    assert set(outputs) == set(SCENARIO_LABELS)
    pre_tax = {name: out.annual_summaries[-1].pre_tax_income for name, out in outputs.items()}
    assert pre_tax["conservative"] < pre_tax["base"] < pre_tax["optimistic"]


# ---------------------------------------------------------------------------
# Plan-level orchestration
# ---------------------------------------------------------------------------


@pytest.fixture
def plan(store, demo_brand):
    plans = PlanService(store)
    plans.save_brand(demo_brand["id"], demo_brand)
    return plans.create_plan(demo_brand["id"], "Downtown")


def test_plan_sensitivity(store, plan):
    outputs = ProjectionService(store).compute_plan_sensitivity(plan["id"], SensitivityAdjustments(labor=10))

    assert set(outputs) == {"base", "current"}
    assert outputs["base"].roi_metrics.total_startup_investment == 26000000
    assert outputs["current"].annual_summaries[0].ebitda < outputs["base"].annual_summaries[0].ebitda


def test_plan_scenarios(store, plan):
    outputs = ProjectionService(store).compute_plan_scenarios(plan["id"])
    assert set(outputs) == {"base", "conservative", "optimistic"}


def test_plan_sensitivity_unknown_plan(store):
    with pytest.raises(NotFoundError):
        ProjectionService(store).compute_plan_sensitivity("missing", SensitivityAdjustments())
