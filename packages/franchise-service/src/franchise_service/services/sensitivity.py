"""
Sensitivity & Scenarios
=======================

What-if projections derived from a plan's unwrapped engine input.

- ``compute_sensitivity_outputs``: base projection plus one re-run with
  slider adjustments (revenue, COGS, labor, marketing, facilities)
- ``compute_scenario_outputs``: base, conservative and optimistic cases

Adjustments rebuild the frozen engine inputs with ``dataclasses.replace``;
the engine itself never knows it is running a variation.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Sequence, Tuple

from franchise_engine import calculate_projections
from franchise_engine.models import EngineInput, EngineOutput, FinancialInputs
from franchise_service.services.plan_initialization import round_half_up

# UI slider ranges in percent (COGS in percentage points).
SLIDER_CONFIG = {
    "revenue": {"min": -50, "max": 100, "step": 5, "math_min": -100},
    "cogs": {"min": -20, "max": 20, "step": 1},
    "labor": {"min": -50, "max": 100, "step": 5},
    "marketing": {"min": -50, "max": 100, "step": 5},
    "facilities": {"min": -50, "max": 100, "step": 5},
}

SCENARIO_LABELS = {
    "base": "Base Case",
    "conservative": "Conservative",
    "optimistic": "Optimistic",
}


@dataclass(frozen=True)
class SensitivityAdjustments:
    """Slider positions: percent changes, except ``cogs`` in percentage points."""

    revenue: float = 0.0
    cogs: float = 0.0
    labor: float = 0.0
    marketing: float = 0.0
    facilities: float = 0.0

    def is_neutral(self) -> bool:
        return not any((self.revenue, self.cogs, self.labor, self.marketing, self.facilities))


@dataclass(frozen=True)
class ScenarioFactors:
    revenue_factor: float  # fractional change to annual gross sales
    cogs_pp: float  # added to every COGS rate
    opex_factor: float  # fractional change to labor, marketing, other opex and facilities


CONSERVATIVE = ScenarioFactors(revenue_factor=-0.15, cogs_pp=0.02, opex_factor=0.10)
OPTIMISTIC = ScenarioFactors(revenue_factor=0.15, cogs_pp=-0.01, opex_factor=-0.05)


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def clamp_to_math_limits(key: str, value: float) -> float:
    """Clamp a slider value to the range the math can represent (revenue >= -100%)."""
    config = SLIDER_CONFIG.get(key, {})
    math_min = config.get("math_min")
    math_max = config.get("math_max")
    if math_min is not None:
        value = max(math_min, value)
    if math_max is not None:
        value = min(math_max, value)
    return value


def _map(values: Sequence[float], fn: Callable[[float], float]) -> Tuple[float, ...]:
    return tuple(fn(x) for x in values)


def apply_sensitivity(fi: FinancialInputs, adjustments: SensitivityAdjustments) -> FinancialInputs:
    revenue_mult = max(0.0, 1 + clamp_to_math_limits("revenue", adjustments.revenue) / 100)
    labor_mult = 1 + adjustments.labor / 100
    marketing_mult = 1 + adjustments.marketing / 100
    facilities_mult = max(0.0, 1 + adjustments.facilities / 100)
    cogs_delta = adjustments.cogs / 100

    oc = fi.operating_costs
    return replace(
        fi,
        revenue=replace(fi.revenue, annual_gross_sales=round_half_up(fi.revenue.annual_gross_sales * revenue_mult)),
        operating_costs=replace(
            oc,
            cogs_pct=_map(oc.cogs_pct, lambda x: clamp01(x + cogs_delta)),
            labor_pct=_map(oc.labor_pct, lambda x: clamp01(x * labor_mult)),
            marketing_pct=_map(oc.marketing_pct, lambda x: clamp01(x * marketing_mult)),
            facilities_annual=_map(oc.facilities_annual, lambda x: round_half_up(x * facilities_mult)),
        ),
    )


def apply_scenario(fi: FinancialInputs, factors: ScenarioFactors) -> FinancialInputs:
    opex_mult = 1 + factors.opex_factor

    oc = fi.operating_costs
    return replace(
        fi,
        revenue=replace(
            fi.revenue,
            annual_gross_sales=round_half_up(fi.revenue.annual_gross_sales * (1 + factors.revenue_factor)),
        ),
        operating_costs=replace(
            oc,
            cogs_pct=_map(oc.cogs_pct, lambda x: clamp01(x + factors.cogs_pp)),
            labor_pct=_map(oc.labor_pct, lambda x: clamp01(x * opex_mult)),
            marketing_pct=_map(oc.marketing_pct, lambda x: clamp01(x * opex_mult)),
            other_opex_pct=_map(oc.other_opex_pct, lambda x: clamp01(x * opex_mult)),
            facilities_annual=_map(oc.facilities_annual, lambda x: round_half_up(x * opex_mult)),
        ),
    )


def _run(engine_input: EngineInput, fi: FinancialInputs) -> EngineOutput:
    return calculate_projections(replace(engine_input, financial_inputs=fi))


def compute_sensitivity_outputs(
    engine_input: EngineInput,
    adjustments: Optional[SensitivityAdjustments] = None,
    base: Optional[EngineOutput] = None,
) -> Dict[str, EngineOutput]:
    """Return ``{"base", "current"}``; current is the base output when no slider moved."""
    adjustments = adjustments or SensitivityAdjustments()
    if base is None:
        base = calculate_projections(engine_input)
    if adjustments.is_neutral():
        return {"base": base, "current": base}
    current = _run(engine_input, apply_sensitivity(engine_input.financial_inputs, adjustments))
    return {"base": base, "current": current}


def compute_scenario_outputs(
    engine_input: EngineInput, base: Optional[EngineOutput] = None
) -> Dict[str, EngineOutput]:
    if base is None:
        base = calculate_projections(engine_input)
    fi = engine_input.financial_inputs
    return {
        "base": base,
        "conservative": _run(engine_input, apply_scenario(fi, CONSERVATIVE)),
        "optimistic": _run(engine_input, apply_scenario(fi, OPTIMISTIC)),
    }
