"""
Reference franchise inputs shared by the engine tests.

PostNet and Jeremiah's Italian Ice are the two brands the projection was
reconciled against by hand; every identity check must pass for both.
"""

from dataclasses import replace

import pytest

from franchise_engine import (
    EngineInput,
    FinancialInputs,
    FinancingInputs,
    OperatingCostInputs,
    RevenueInputs,
    StartupCostLineItem,
    StartupInputs,
    WorkingCapitalInputs,
)


def _postnet() -> EngineInput:
    financial_inputs = FinancialInputs(
        revenue=RevenueInputs(
            annual_gross_sales=32240100,
            months_to_reach_auv=14,
            starting_month_auv_pct=0.08,
            growth_rates=(0.13, 0.13, 0.10, 0.08, 0.08),
        ),
        operating_costs=OperatingCostInputs(
            cogs_pct=(0.30,) * 5,
            labor_pct=(0.17,) * 5,
            royalty_pct=(0.05,) * 5,
            ad_fund_pct=(0.02,) * 5,
            marketing_pct=(0.05, 0.03, 0.02, 0.02, 0.02),
            other_opex_pct=(0.03,) * 5,
            payroll_tax_pct=(0.20,) * 5,
            facilities_annual=(1000000, 1030000, 1060900, 1092700, 1125500),
            management_salaries_annual=(0, 5170021, 5813444, 6352566, 6879826),
        ),
        financing=FinancingInputs(total_investment=25650700, equity_pct=0.20, interest_rate=0.105, term_months=144),
        startup=StartupInputs(depreciation_rate=0.25),
        working_capital=WorkingCapitalInputs(ar_days=30, ap_days=60, inventory_days=60),
        distributions=(0, 0, 0, 3000000, 3500000),
        tax_rate=0.21,
    )
    startup_costs = [
        StartupCostLineItem(name="Equipment, Signage & Fixtures", amount=12605700, capex_classification="capex"),
        StartupCostLineItem(name="Computer Hardware", amount=87500, capex_classification="capex"),
        StartupCostLineItem(name="Leasehold Improvements", amount=520000, capex_classification="capex"),
        StartupCostLineItem(name="Franchise Fee & Pre-opening", amount=8437500, capex_classification="non_capex"),
        StartupCostLineItem(name="Working Capital", amount=4000000, capex_classification="working_capital"),
    ]
    return EngineInput(financial_inputs=financial_inputs, startup_costs=startup_costs)


def _jeremiahs() -> EngineInput:
    financial_inputs = FinancialInputs(
        revenue=RevenueInputs(
            annual_gross_sales=54965900,
            months_to_reach_auv=15,
            starting_month_auv_pct=0.50,
            growth_rates=(0.10, 0.08, 0.06, 0.05, 0.04),
        ),
        operating_costs=OperatingCostInputs(
            cogs_pct=(0.22,) * 5,
            labor_pct=(0.18,) * 5,
            royalty_pct=(0.06,) * 5,
            ad_fund_pct=(0.045,) * 5,
            marketing_pct=(0.02,) * 5,
            other_opex_pct=(0.03,) * 5,
            payroll_tax_pct=(0.20,) * 5,
            facilities_annual=(7500000, 7725000, 7956750, 8195453, 8441316),
            management_salaries_annual=(0, 9224608, 9947003, 10503249, 10980789),
        ),
        financing=FinancingInputs(total_investment=51078350, equity_pct=0.20, interest_rate=0.105, term_months=144),
        startup=StartupInputs(depreciation_rate=0.25),
        working_capital=WorkingCapitalInputs(ar_days=30, ap_days=60, inventory_days=60),
        distributions=(0, 0, 0, 0, 0),
        tax_rate=0.21,
        ebitda_multiple=5,
        target_pre_tax_profit_pct=(0.15,) * 5,
        shareholder_salary_adj=(5500000, 0, 0, 0, 0),
        tax_payment_delay_months=9,
    )
    startup_costs = [
        StartupCostLineItem(name="Build-out & Equipment", amount=34615000, capex_classification="capex"),
        StartupCostLineItem(name="Franchise Fee & Pre-opening", amount=11463350, capex_classification="non_capex"),
        StartupCostLineItem(name="Working Capital", amount=5000000, capex_classification="working_capital"),
    ]
    return EngineInput(financial_inputs=financial_inputs, startup_costs=startup_costs)


@pytest.fixture
def postnet_input() -> EngineInput:
    return _postnet()


@pytest.fixture
def jeremiahs_input() -> EngineInput:
    return _jeremiahs()


@pytest.fixture
def make_input():
    """
    Factory for PostNet-based variations.

    ``make_input(financing={"equity_pct": 1.0}, startup_costs=[])`` replaces
    fields of the named input group; top-level fields are passed directly.
    """

    def _make(startup_costs=None, **overrides) -> EngineInput:
        base = _postnet()
        fi = base.financial_inputs
        changes = {}
        for name, value in overrides.items():
            if isinstance(value, dict):
                changes[name] = replace(getattr(fi, name), **value)
            else:
                changes[name] = value
        return EngineInput(
            financial_inputs=replace(fi, **changes),
            startup_costs=base.startup_costs if startup_costs is None else startup_costs,
        )

    return _make
