"""
Degenerate inputs must never raise: zero revenue, no startup costs,
100% equity, no depreciation, per-month rates, tax payment timing.
"""

import pytest

from franchise_engine import calculate_projections, round_cents


def test_zero_revenue(make_input):
    output = calculate_projections(make_input(revenue={"annual_gross_sales": 0}))

    assert all(mp.revenue == 0 for mp in output.monthly_projections)
    assert all(mp.auv_pct == 0 or mp.month <= 14 for mp in output.monthly_projections)
    for summary in output.annual_summaries:
        assert summary.gross_profit_pct == 0
        assert summary.ebitda_pct == 0
        assert summary.pre_tax_income_pct == 0
    assert all(p.labor_efficiency == 0 for p in output.pl_analysis)


def test_no_startup_costs(make_input):
    output = calculate_projections(make_input(startup_costs=[]))

    assert output.roi_metrics.total_startup_investment == 0
    assert output.roi_metrics.five_year_roi_pct == 0
    assert all(mp.depreciation == 0 for mp in output.monthly_projections)
    assert all(mp.net_fixed_assets == 0 for mp in output.monthly_projections)


def test_full_equity_financing(make_input):
    output = calculate_projections(make_input(financing={"equity_pct": 1.0}))

    for mp in output.monthly_projections:
        assert mp.loan_opening_balance == 0
        assert mp.loan_principal_payment == 0
        assert mp.interest_expense == 0
    assert output.monthly_projections[0].cf_equity_issuance == 25650700
    assert all(c.passed for c in output.identity_checks if c.name.startswith("Monthly BS identity"))


def test_zero_depreciation_rate(make_input):
    output = calculate_projections(make_input(startup={"depreciation_rate": 0.0}))

    assert all(mp.depreciation == 0 for mp in output.monthly_projections)
    assert output.monthly_projections[-1].net_fixed_assets == 13213200
    assert "Total depreciation equals CapEx" not in [c.name for c in output.identity_checks]


def test_zero_investment_and_zero_revenue_together(make_input):
    output = calculate_projections(
        make_input(
            startup_costs=[],
            revenue={"annual_gross_sales": 0},
            financing={"total_investment": 0},
        )
    )
    assert output.valuation[0].replacement_return_required == 0
    assert output.roic_extended[0].total_cash_invested == 0


def test_per_month_rate_arrays(make_input):
    cogs = (0.30,) * 12 + (0.25,) * 48
    output = calculate_projections(make_input(operating_costs={"cogs_pct": cogs}))
    months = output.monthly_projections

    assert months[11].materials_cogs == round_cents(-months[11].revenue * 0.30)
    assert months[12].materials_cogs == round_cents(-months[12].revenue * 0.25)
    assert all(c.passed for c in output.identity_checks)


def test_no_breakeven_within_horizon(make_input):
    output = calculate_projections(
        make_input(operating_costs={"facilities_annual": (500000000,) * 5})
    )

    assert output.roi_metrics.break_even_month is None
    names = [c.name for c in output.identity_checks]
    assert "Breakeven month non-negative" not in names
    assert all(mp.cumulative_net_cash_flow < 0 for mp in output.monthly_projections)


# ---------------------------------------------------------------------------
# Tax payable timing
# ---------------------------------------------------------------------------


def test_default_delay_pays_previous_month_accrual(postnet_input):
    months = calculate_projections(postnet_input).monthly_projections

    for mp in months:
        expected = round_cents(max(0.0, mp.pre_tax_income * 0.21))
        assert mp.tax_payable == pytest.approx(expected, abs=0.05)


def test_longer_delay_accumulates_tax_payable(jeremiahs_input):
    months = calculate_projections(jeremiahs_input).monthly_projections

    accruals = [round_cents(max(0.0, mp.pre_tax_income * 0.21)) for mp in months]
    # Nothing is paid before month 10 with a nine-month delay.
    assert months[8].tax_payable == pytest.approx(sum(accruals[:9]), abs=0.1)
    assert all(mp.tax_payable >= 0 for mp in months)


def test_tax_payable_change_feeds_cash_flow(postnet_input):
    months = calculate_projections(postnet_input).monthly_projections

    assert months[0].cf_tax_payable_change == months[0].tax_payable
    for prev, cur in zip(months, months[1:]):
        assert cur.cf_tax_payable_change == round_cents(cur.tax_payable - prev.tax_payable)


def test_full_debt_financing(make_input):
    output = calculate_projections(make_input(financing={"equity_pct": 0.0}))
    first = output.monthly_projections[0]

    assert first.loan_opening_balance == 25650700
    assert first.cf_equity_issuance == 0
    assert first.common_stock == 0
    assert all(c.passed for c in output.identity_checks if c.name.startswith("Annual BS identity"))


def test_zero_delay_pays_tax_in_the_month_it_accrues(make_input):
    months = calculate_projections(make_input(tax_payment_delay_months=0)).monthly_projections

    assert all(mp.tax_payable == 0 for mp in months)
    assert all(mp.cf_tax_payable_change == 0 for mp in months)


def test_unset_delay_falls_back_to_one_month(make_input):
    unset = calculate_projections(make_input(tax_payment_delay_months=None)).monthly_projections
    one = calculate_projections(make_input(tax_payment_delay_months=1)).monthly_projections

    assert [mp.tax_payable for mp in unset] == [mp.tax_payable for mp in one]


# ---------------------------------------------------------------------------
# Extreme magnitudes
# ---------------------------------------------------------------------------


def test_vanishing_depreciation_rate_does_not_overflow(make_input):
    output = calculate_projections(make_input(startup={"depreciation_rate": 1e-320}))

    assert len(output.monthly_projections) == 60
    assert all(mp.depreciation == 0 for mp in output.monthly_projections)
    assert "Total depreciation equals CapEx" not in [c.name for c in output.identity_checks]


def test_enormous_revenue_does_not_overflow(make_input):
    output = calculate_projections(make_input(revenue={"annual_gross_sales": 1e307}))

    assert len(output.monthly_projections) == 60
    assert len(output.annual_summaries) == 5
