"""
Franchise Projection Engine
===========================

This module contains the *pure* five-year franchise projection engine:

- No database, filesystem or network access
- No logging
- No clock, no randomness
- No brand-specific branching

It turns normalized numeric seed values (``FinancialInputs``) plus the plan's
startup cost line items into 60 monthly projections, 5 annual summaries,
ROI / valuation metrics and a list of accounting identity checks.

Conventions:
- Currency is expressed in cents (15000 = $150.00).
- Rates are decimals (0.065 = 6.5%).
- Expenses are stored as negative numbers; subtotals are formed by addition.

API surface area (stable):
- ``FinancialInputs`` / ``StartupCostLineItem`` / ``EngineInput``
- ``EngineOutput`` and its record types
- ``calculate_projections(engine_input)``
- ``round_cents(value)``
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from math import floor, isfinite
from typing import List, Optional, Sequence, Tuple


MAX_PROJECTION_MONTHS: int = 60
PROJECTION_YEARS: int = 5
MONTHS_PER_YEAR: int = 12
CENTS_PRECISION: int = 100
DAYS_PER_MONTH: int = 30
IDENTITY_TOLERANCE: float = 1.0

DEFAULT_EBITDA_MULTIPLE: float = 3.0
DEFAULT_TARGET_PRE_TAX_PROFIT_PCT: float = 0.10
DEFAULT_TAX_PAYMENT_DELAY_MONTHS: int = 1
CORE_CAPITAL_RESERVE_MONTHS: int = 3

CAPEX = "capex"
NON_CAPEX = "non_capex"
WORKING_CAPITAL = "working_capital"
CAPEX_CLASSIFICATIONS = (CAPEX, NON_CAPEX, WORKING_CAPITAL)

PerYear = Tuple[float, float, float, float, float]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RevenueInputs:
    annual_gross_sales: float  # cents
    months_to_reach_auv: int
    starting_month_auv_pct: float
    growth_rates: PerYear


@dataclass(frozen=True)
class OperatingCostInputs:
    """
    Percentage-of-revenue rates are 5 per-year values, or 60 per-month values
    when a plan edits individual months. Dollar arrays are always per-year.
    """

    cogs_pct: Sequence[float]
    labor_pct: Sequence[float]
    royalty_pct: Sequence[float]
    ad_fund_pct: Sequence[float]
    marketing_pct: Sequence[float]
    other_opex_pct: Sequence[float]
    payroll_tax_pct: Sequence[float]  # of direct labor + management salaries
    facilities_annual: PerYear  # cents
    management_salaries_annual: PerYear  # cents


@dataclass(frozen=True)
class FinancingInputs:
    total_investment: float  # cents
    equity_pct: float
    interest_rate: float
    term_months: int


@dataclass(frozen=True)
class StartupInputs:
    depreciation_rate: float  # 1 / useful life in years


@dataclass(frozen=True)
class WorkingCapitalInputs:
    ar_days: float
    ap_days: float  # materials only
    inventory_days: float


@dataclass(frozen=True)
class FinancialInputs:
    revenue: RevenueInputs
    operating_costs: OperatingCostInputs
    financing: FinancingInputs
    startup: StartupInputs
    working_capital: WorkingCapitalInputs
    distributions: PerYear  # cents, annual
    # Applied to tax payable, ROIC taxes due and tax on sale.
    # The P&L itself stays pre-tax.
    tax_rate: float

    ebitda_multiple: Optional[float] = None
    target_pre_tax_profit_pct: Optional[PerYear] = None
    shareholder_salary_adj: Optional[PerYear] = None
    tax_payment_delay_months: Optional[int] = None
    non_capex_investment: Optional[PerYear] = None


@dataclass(frozen=True)
class StartupCostLineItem:
    name: str
    amount: float  # cents
    capex_classification: str
    # Bookkeeping metadata, carried through untouched.
    id: Optional[str] = None
    is_custom: bool = False
    source: str = "brand_default"
    brand_default_amount: Optional[float] = None
    item7_range_low: Optional[float] = None
    item7_range_high: Optional[float] = None
    sort_order: int = 0


@dataclass(frozen=True)
class EngineInput:
    financial_inputs: FinancialInputs
    startup_costs: List[StartupCostLineItem]


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonthlyProjection:
    month: int  # 1..60
    year: int  # 1..5
    month_in_year: int  # 1..12

    auv_pct: float
    revenue: float

    materials_cogs: float
    royalties: float
    ad_fund: float
    total_cogs: float
    gross_profit: float

    direct_labor: float
    contribution_margin: float
    facilities: float
    marketing: float
    management_salaries: float
    payroll_tax_benefits: float
    other_opex: float
    non_capex_investment: float
    total_opex: float

    ebitda: float
    depreciation: float
    interest_expense: float
    pre_tax_income: float

    accounts_receivable: float
    inventory: float
    accounts_payable: float
    net_fixed_assets: float

    operating_cash_flow: float
    # Break-even basis: starts at -startup investment + financing received,
    # then accumulates operating cash flow less principal and distributions.
    cumulative_net_cash_flow: float

    loan_opening_balance: float
    loan_principal_payment: float
    loan_closing_balance: float

    tax_payable: float
    line_of_credit: float
    common_stock: float
    retained_earnings: float
    total_current_assets: float
    total_assets: float
    total_current_liabilities: float
    total_liabilities: float
    total_equity: float
    total_liabilities_and_equity: float

    cf_depreciation: float
    cf_accounts_receivable_change: float
    cf_inventory_change: float
    cf_accounts_payable_change: float
    cf_tax_payable_change: float
    cf_net_operating_cash_flow: float
    cf_capex_purchase: float
    cf_net_before_financing: float
    cf_notes_payable: float
    cf_line_of_credit: float
    cf_interest_expense: float
    cf_distributions: float
    cf_equity_issuance: float
    cf_net_financing_cash_flow: float
    cf_net_cash_flow: float
    beginning_cash: float
    ending_cash: float


@dataclass(frozen=True)
class AnnualSummary:
    year: int
    revenue: float
    total_cogs: float
    gross_profit: float
    gross_profit_pct: float
    direct_labor: float
    contribution_margin: float
    contribution_margin_pct: float
    total_opex: float
    ebitda: float
    ebitda_pct: float
    depreciation: float
    interest_expense: float
    pre_tax_income: float
    pre_tax_income_pct: float
    total_assets: float
    total_liabilities: float
    total_equity: float
    operating_cash_flow: float
    net_cash_flow: float
    ending_cash: float


@dataclass(frozen=True)
class ROIMetrics:
    break_even_month: Optional[int]  # None when cash never recovers within 60 months
    total_startup_investment: float
    projected_annual_revenue_year1: float
    five_year_cumulative_cash_flow: float
    five_year_roi_pct: float


@dataclass(frozen=True)
class IdentityCheckResult:
    name: str
    passed: bool
    expected: float
    actual: float
    tolerance: float


@dataclass(frozen=True)
class ValuationOutput:
    year: int
    gross_sales: float
    net_operating_income: float
    shareholder_salary_adj: float
    adj_net_operating_income: float
    adj_net_operating_income_pct: float
    ebitda_multiple: float
    estimated_value: float
    estimated_tax_on_sale: float
    net_after_tax_proceeds: float
    total_cash_invested: float
    replacement_return_required: float
    business_annual_roic: float


@dataclass(frozen=True)
class ROICExtendedOutput:
    year: int
    outside_cash: float
    total_loans: float
    total_cash_invested: float
    total_sweat_equity: float
    retained_earnings_less_distributions: float
    total_invested_capital: float
    pre_tax_net_income: float
    pre_tax_net_income_inc_sweat_equity: float
    tax_rate: float
    taxes_due: float
    after_tax_net_income: float
    roic_pct: float
    avg_core_capital_per_month: float
    months_of_core_capital: float
    excess_core_capital: float


@dataclass(frozen=True)
class PLAnalysisOutput:
    year: int
    adjusted_pre_tax_profit: float
    target_pre_tax_profit: float
    above_below_target: float
    non_labor_gross_margin: float
    total_wages: float
    adjusted_total_wages: float
    salary_cap_at_target: float
    over_under_cap: float
    labor_efficiency: float
    adjusted_labor_efficiency: float
    discretionary_marketing_pct: float
    pr_tax_benefits_pct_of_wages: float
    other_opex_pct_of_revenue: float


@dataclass(frozen=True)
class EngineOutput:
    monthly_projections: List[MonthlyProjection]  # length 60
    annual_summaries: List[AnnualSummary]  # length 5
    roi_metrics: ROIMetrics
    identity_checks: List[IdentityCheckResult]
    valuation: List[ValuationOutput]  # length 5
    roic_extended: List[ROICExtendedOutput]  # length 5
    pl_analysis: List[PLAnalysisOutput]  # length 5


@dataclass(frozen=True)
class StartupTotals:
    capex_total: float
    non_capex_total: float
    working_capital_total: float
    total_startup_investment: float


@dataclass(frozen=True)
class FinancingSetup:
    debt_amount: float
    equity_amount: float
    monthly_principal: float
    annual_depreciation: float
    monthly_depreciation: float
    depreciation_years: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_cents(value: float) -> float:
    """
    Round half up to two decimal places and normalize -0 to 0.

    Currency values are stored in cents, so this keeps sub-cent precision and
    limits cumulative drift across 60 months. Percentages use it as well.
    Values too large to scale (and NaN or infinity) are returned unchanged.
    """
    scaled = value * CENTS_PRECISION
    if not isfinite(scaled):
        return value
    result = floor(scaled + 0.5) / CENTS_PRECISION
    return 0.0 if result == 0 else result


def year_index(month: int) -> int:
    """Year index (0-4) for a month number (1-60)."""
    return (month - 1) // MONTHS_PER_YEAR


def month_in_year(month: int) -> int:
    """Month-in-year (1-12) for a month number (1-60)."""
    return (month - 1) % MONTHS_PER_YEAR + 1


def rate_for_month(values: Sequence[float], month: int) -> float:
    """Per-month arrays are indexed by absolute month, per-year arrays by year."""
    if len(values) == MAX_PROJECTION_MONTHS:
        return values[month - 1]
    return values[year_index(month)]


def _months_in_year(monthly: List[MonthlyProjection], year: int) -> List[MonthlyProjection]:
    return [mp for mp in monthly if mp.year == year]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def calculate_projections(engine_input: EngineInput) -> EngineOutput:
    fi = engine_input.financial_inputs

    totals = aggregate_startup_costs(engine_input.startup_costs)
    financing = setup_financing(fi, totals.capex_total)

    non_capex_per_year = fi.non_capex_investment
    if non_capex_per_year is None:
        non_capex_per_year = (totals.non_capex_total, 0.0, 0.0, 0.0, 0.0)

    monthly = _project_months(fi, totals, financing, non_capex_per_year)
    annual = _aggregate_years(monthly)
    monthly, roi = _compute_roi(fi, monthly, annual, totals, financing)

    shareholder_salary_adj = fi.shareholder_salary_adj or (0.0, 0.0, 0.0, 0.0, 0.0)
    roic_extended = _compute_roic_extended(fi, monthly, annual, financing, shareholder_salary_adj)
    valuation = _compute_valuation(fi, annual, financing, shareholder_salary_adj, roic_extended)
    pl_analysis = _compute_pl_analysis(fi, monthly, annual, shareholder_salary_adj)

    identity_checks = verify_identities(
        fi,
        monthly=monthly,
        annual=annual,
        roi=roi,
        valuation=valuation,
        roic_extended=roic_extended,
        totals=totals,
        financing=financing,
    )

    return EngineOutput(
        monthly_projections=monthly,
        annual_summaries=annual,
        roi_metrics=roi,
        identity_checks=identity_checks,
        valuation=valuation,
        roic_extended=roic_extended,
        pl_analysis=pl_analysis,
    )


def aggregate_startup_costs(startup_costs: Sequence[StartupCostLineItem]) -> StartupTotals:
    capex_total = sum(c.amount for c in startup_costs if c.capex_classification == CAPEX)
    non_capex_total = sum(c.amount for c in startup_costs if c.capex_classification == NON_CAPEX)
    working_capital_total = sum(c.amount for c in startup_costs if c.capex_classification == WORKING_CAPITAL)
    return StartupTotals(
        capex_total=capex_total,
        non_capex_total=non_capex_total,
        working_capital_total=working_capital_total,
        total_startup_investment=capex_total + non_capex_total + working_capital_total,
    )


def setup_financing(fi: FinancialInputs, capex_total: float) -> FinancingSetup:
    financing = fi.financing
    debt_amount = round_cents(financing.total_investment * (1 - financing.equity_pct))
    equity_amount = round_cents(financing.total_investment * financing.equity_pct)
    monthly_principal = round_cents(debt_amount / financing.term_months) if financing.term_months > 0 else 0.0

    depreciation_rate = fi.startup.depreciation_rate
    annual_depreciation = round_cents(capex_total * depreciation_rate)
    monthly_depreciation = round_cents(annual_depreciation / MONTHS_PER_YEAR)
    # A rate too small for its reciprocal to be finite has no useful life to schedule.
    useful_life = 1 / depreciation_rate if depreciation_rate > 0 else 0.0
    depreciation_years = int(floor(useful_life + 0.5)) if isfinite(useful_life) else 0

    return FinancingSetup(
        debt_amount=debt_amount,
        equity_amount=equity_amount,
        monthly_principal=monthly_principal,
        annual_depreciation=annual_depreciation,
        monthly_depreciation=monthly_depreciation,
        depreciation_years=depreciation_years,
    )


def _ramp_revenue(revenue: RevenueInputs, month: int, prior_revenue: float) -> Tuple[float, float]:
    """Return (auv_pct, revenue) for one month."""
    monthly_auv = revenue.annual_gross_sales / MONTHS_PER_YEAR

    if month <= revenue.months_to_reach_auv:
        start_pct = revenue.starting_month_auv_pct
        if start_pct != 0:
            if month == 1:
                auv_pct = start_pct
            else:
                auv_pct = start_pct + (1 - start_pct) * month / revenue.months_to_reach_auv
        else:
            auv_pct = month / revenue.months_to_reach_auv
        return auv_pct, round_cents(auv_pct * monthly_auv)

    # Past the ramp window revenue compounds from the prior month, across year boundaries.
    monthly_growth_rate = revenue.growth_rates[year_index(month)] / MONTHS_PER_YEAR
    amount = round_cents(prior_revenue * (1 + monthly_growth_rate))
    auv_pct = amount / monthly_auv if monthly_auv > 0 else 0.0
    return auv_pct, amount


def _project_months(
    fi: FinancialInputs,
    totals: StartupTotals,
    financing: FinancingSetup,
    non_capex_per_year: Sequence[float],
) -> List[MonthlyProjection]:
    oc = fi.operating_costs
    wc = fi.working_capital
    term_months = fi.financing.term_months
    tax_payment_delay = fi.tax_payment_delay_months
    if tax_payment_delay is None:
        tax_payment_delay = DEFAULT_TAX_PAYMENT_DELAY_MONTHS
    depreciation_months = financing.depreciation_years * MONTHS_PER_YEAR

    monthly: List[MonthlyProjection] = []
    prior_revenue = 0.0
    loan_balance = financing.debt_amount
    accumulated_depreciation = 0.0
    tax_payable_balance = 0.0
    running_cash = 0.0
    retained_earnings = 0.0

    for m in range(1, MAX_PROJECTION_MONTHS + 1):
        yi = year_index(m)

        auv_pct, revenue = _ramp_revenue(fi.revenue, m, prior_revenue)

        # COGS
        materials_cogs = round_cents(-revenue * rate_for_month(oc.cogs_pct, m))
        royalties = round_cents(-revenue * rate_for_month(oc.royalty_pct, m))
        ad_fund = round_cents(-revenue * rate_for_month(oc.ad_fund_pct, m))
        total_cogs = round_cents(materials_cogs + royalties + ad_fund)
        gross_profit = round_cents(revenue + total_cogs)

        # Operating expenses
        direct_labor = round_cents(-revenue * rate_for_month(oc.labor_pct, m))
        contribution_margin = round_cents(gross_profit + direct_labor)

        facilities = round_cents(-oc.facilities_annual[yi] / MONTHS_PER_YEAR)
        marketing = round_cents(-revenue * rate_for_month(oc.marketing_pct, m))
        management_salaries = round_cents(-oc.management_salaries_annual[yi] / MONTHS_PER_YEAR)
        payroll_base = abs(direct_labor) + abs(management_salaries)
        payroll_tax_benefits = round_cents(-payroll_base * rate_for_month(oc.payroll_tax_pct, m))
        other_opex = round_cents(-revenue * rate_for_month(oc.other_opex_pct, m))
        non_capex_monthly = round_cents(-non_capex_per_year[yi] / MONTHS_PER_YEAR)

        total_opex = round_cents(
            facilities + marketing + management_salaries + payroll_tax_benefits + other_opex + non_capex_monthly
        )
        ebitda = round_cents(contribution_margin + total_opex)

        # Depreciation
        if depreciation_months > 0 and m <= depreciation_months:
            depreciation = round_cents(-financing.monthly_depreciation)
        else:
            depreciation = 0.0
        accumulated_depreciation += abs(depreciation)

        # Debt: interest on the average of opening and post-payment balance.
        loan_opening = loan_balance
        principal_payment = 0.0
        interest_expense = 0.0
        if loan_balance > 0 and term_months > 0:
            principal_payment = min(financing.monthly_principal, loan_balance)
            closing_before_payment = loan_opening - principal_payment
            interest_expense = round_cents(
                -((loan_opening + closing_before_payment) / 2) * fi.financing.interest_rate / MONTHS_PER_YEAR
            )
            loan_balance = round_cents(closing_before_payment)

        pre_tax_income = round_cents(ebitda + depreciation + interest_expense)

        # Working capital on a fixed 30-day month.
        accounts_receivable = round_cents((revenue / DAYS_PER_MONTH) * wc.ar_days)
        inventory = round_cents((abs(materials_cogs) / DAYS_PER_MONTH) * wc.inventory_days)
        accounts_payable = round_cents((abs(materials_cogs) / DAYS_PER_MONTH) * wc.ap_days)
        net_fixed_assets = round_cents(totals.capex_total - accumulated_depreciation)

        prior = monthly[-1] if monthly else None
        prior_ar = prior.accounts_receivable if prior else 0.0
        prior_inventory = prior.inventory if prior else 0.0
        prior_ap = prior.accounts_payable if prior else 0.0

        change_ar = -(accounts_receivable - prior_ar)
        change_inventory = -(inventory - prior_inventory)
        change_ap = accounts_payable - prior_ap

        operating_cash_flow = round_cents(
            pre_tax_income + abs(depreciation) + change_ar + change_inventory + change_ap
        )

        # Tax payable: accrue this month, pay the accrual from N months back.
        # With no delay the accrual is paid in the month it is incurred.
        prior_tax_payable = tax_payable_balance
        tax_accrual = round_cents(max(0.0, pre_tax_income * fi.tax_rate))
        tax_payable_balance = round_cents(tax_payable_balance + tax_accrual)
        lookback = (m - 1) - tax_payment_delay
        if tax_payment_delay == 0:
            tax_payable_balance = round_cents(tax_payable_balance - tax_accrual)
        elif 0 <= lookback < len(monthly):
            payment = round_cents(max(0.0, monthly[lookback].pre_tax_income * fi.tax_rate))
            tax_payable_balance = round_cents(tax_payable_balance - payment)
        tax_payable_balance = round_cents(max(0.0, tax_payable_balance))
        tax_payable = tax_payable_balance

        # Cash flow statement
        cf_depreciation = round_cents(abs(depreciation))
        cf_accounts_receivable_change = round_cents(change_ar)
        cf_inventory_change = round_cents(change_inventory)
        cf_accounts_payable_change = round_cents(change_ap)
        cf_tax_payable_change = round_cents(tax_payable - prior_tax_payable)
        cf_net_operating_cash_flow = operating_cash_flow

        cf_capex_purchase = round_cents(-totals.capex_total) if m == 1 else 0.0
        cf_net_before_financing = round_cents(cf_net_operating_cash_flow + cf_tax_payable_change + cf_capex_purchase)

        monthly_distribution = round_cents(-fi.distributions[yi] / MONTHS_PER_YEAR)
        cf_notes_payable = round_cents(-principal_payment)
        cf_line_of_credit = 0.0
        cf_interest_expense = round_cents(interest_expense)
        cf_equity_issuance = financing.equity_amount if m == 1 else 0.0
        debt_drawdown = financing.debt_amount if m == 1 else 0.0
        cf_net_financing_cash_flow = round_cents(
            cf_notes_payable + cf_line_of_credit + monthly_distribution + cf_equity_issuance + debt_drawdown
        )

        cf_net_cash_flow = round_cents(cf_net_before_financing + cf_net_financing_cash_flow)
        beginning_cash = running_cash
        ending_cash = round_cents(beginning_cash + cf_net_cash_flow)
        running_cash = ending_cash

        # Retained earnings accumulate pre-tax income less distributions.
        retained_earnings = round_cents(retained_earnings + pre_tax_income + monthly_distribution)

        # Balance sheet
        line_of_credit = 0.0
        common_stock = financing.equity_amount
        total_current_assets = round_cents(ending_cash + accounts_receivable + inventory)
        total_assets = round_cents(total_current_assets + net_fixed_assets)
        total_current_liabilities = round_cents(accounts_payable + tax_payable)
        total_liabilities = round_cents(total_current_liabilities + loan_balance + line_of_credit)
        total_equity = round_cents(common_stock + retained_earnings)
        total_liabilities_and_equity = round_cents(total_liabilities + total_equity)

        monthly.append(
            MonthlyProjection(
                month=m,
                year=yi + 1,
                month_in_year=month_in_year(m),
                auv_pct=auv_pct,
                revenue=revenue,
                materials_cogs=materials_cogs,
                royalties=royalties,
                ad_fund=ad_fund,
                total_cogs=total_cogs,
                gross_profit=gross_profit,
                direct_labor=direct_labor,
                contribution_margin=contribution_margin,
                facilities=facilities,
                marketing=marketing,
                management_salaries=management_salaries,
                payroll_tax_benefits=payroll_tax_benefits,
                other_opex=other_opex,
                non_capex_investment=non_capex_monthly,
                total_opex=total_opex,
                ebitda=ebitda,
                depreciation=depreciation,
                interest_expense=interest_expense,
                pre_tax_income=pre_tax_income,
                accounts_receivable=accounts_receivable,
                inventory=inventory,
                accounts_payable=accounts_payable,
                net_fixed_assets=net_fixed_assets,
                operating_cash_flow=operating_cash_flow,
                cumulative_net_cash_flow=0.0,  # filled in by the break-even walk
                loan_opening_balance=loan_opening,
                loan_principal_payment=principal_payment,
                loan_closing_balance=loan_balance,
                tax_payable=tax_payable,
                line_of_credit=line_of_credit,
                common_stock=common_stock,
                retained_earnings=retained_earnings,
                total_current_assets=total_current_assets,
                total_assets=total_assets,
                total_current_liabilities=total_current_liabilities,
                total_liabilities=total_liabilities,
                total_equity=total_equity,
                total_liabilities_and_equity=total_liabilities_and_equity,
                cf_depreciation=cf_depreciation,
                cf_accounts_receivable_change=cf_accounts_receivable_change,
                cf_inventory_change=cf_inventory_change,
                cf_accounts_payable_change=cf_accounts_payable_change,
                cf_tax_payable_change=cf_tax_payable_change,
                cf_net_operating_cash_flow=cf_net_operating_cash_flow,
                cf_capex_purchase=cf_capex_purchase,
                cf_net_before_financing=cf_net_before_financing,
                cf_notes_payable=cf_notes_payable,
                cf_line_of_credit=cf_line_of_credit,
                cf_interest_expense=cf_interest_expense,
                cf_distributions=monthly_distribution,
                cf_equity_issuance=cf_equity_issuance,
                cf_net_financing_cash_flow=cf_net_financing_cash_flow,
                cf_net_cash_flow=cf_net_cash_flow,
                beginning_cash=beginning_cash,
                ending_cash=ending_cash,
            )
        )

        prior_revenue = revenue

    return monthly


def _pct(numerator: float, revenue: float) -> float:
    return round_cents(numerator / revenue) if revenue != 0 else 0.0


def _aggregate_years(monthly: List[MonthlyProjection]) -> List[AnnualSummary]:
    annual: List[AnnualSummary] = []

    for year in range(1, PROJECTION_YEARS + 1):
        months = _months_in_year(monthly, year)
        last = months[-1]

        revenue = sum(mp.revenue for mp in months)
        total_cogs = sum(mp.total_cogs for mp in months)
        gross_profit = round_cents(revenue + total_cogs)
        direct_labor = sum(mp.direct_labor for mp in months)
        contribution_margin = round_cents(gross_profit + direct_labor)
        total_opex = sum(mp.total_opex for mp in months)
        ebitda = round_cents(contribution_margin + total_opex)
        depreciation = sum(mp.depreciation for mp in months)
        interest = sum(mp.interest_expense for mp in months)
        pre_tax_income = round_cents(ebitda + depreciation + interest)
        operating_cash_flow = sum(mp.operating_cash_flow for mp in months)
        net_cash_flow = sum(mp.cf_net_cash_flow for mp in months)

        annual.append(
            AnnualSummary(
                year=year,
                revenue=round_cents(revenue),
                total_cogs=round_cents(total_cogs),
                gross_profit=gross_profit,
                gross_profit_pct=_pct(gross_profit, revenue),
                direct_labor=round_cents(direct_labor),
                contribution_margin=contribution_margin,
                contribution_margin_pct=_pct(contribution_margin, revenue),
                total_opex=round_cents(total_opex),
                ebitda=ebitda,
                ebitda_pct=_pct(ebitda, revenue),
                depreciation=round_cents(depreciation),
                interest_expense=round_cents(interest),
                pre_tax_income=pre_tax_income,
                pre_tax_income_pct=_pct(pre_tax_income, revenue),
                total_assets=round_cents(last.total_assets),
                total_liabilities=round_cents(last.total_liabilities),
                total_equity=round_cents(last.total_equity),
                operating_cash_flow=round_cents(operating_cash_flow),
                net_cash_flow=round_cents(net_cash_flow),
                ending_cash=round_cents(last.ending_cash),
            )
        )

    return annual


def _compute_roi(
    fi: FinancialInputs,
    monthly: List[MonthlyProjection],
    annual: List[AnnualSummary],
    totals: StartupTotals,
    financing: FinancingSetup,
) -> Tuple[List[MonthlyProjection], ROIMetrics]:
    """
    Break-even walk plus 5-year ROI.

    Returns the monthly records with ``cumulative_net_cash_flow`` filled in.
    """
    break_even_month: Optional[int] = None
    cumulative_net_cash = -totals.total_startup_investment
    # Financing received at time zero.
    cumulative_net_cash += financing.equity_amount + financing.debt_amount

    walked: List[MonthlyProjection] = []
    for mp in monthly:
        monthly_distribution = fi.distributions[year_index(mp.month)] / MONTHS_PER_YEAR
        cumulative_net_cash += mp.operating_cash_flow - mp.loan_principal_payment - monthly_distribution
        walked.append(replace(mp, cumulative_net_cash_flow=round_cents(cumulative_net_cash)))
        if cumulative_net_cash >= 0 and break_even_month is None:
            break_even_month = mp.month

    five_year_cumulative_cash_flow = round_cents(sum(a.net_cash_flow for a in annual))
    total = totals.total_startup_investment
    five_year_roi_pct = round_cents(five_year_cumulative_cash_flow / total) if total != 0 else 0.0

    roi = ROIMetrics(
        break_even_month=break_even_month,
        total_startup_investment=round_cents(total),
        projected_annual_revenue_year1=round_cents(annual[0].revenue),
        five_year_cumulative_cash_flow=five_year_cumulative_cash_flow,
        five_year_roi_pct=five_year_roi_pct,
    )
    return walked, roi


def _compute_roic_extended(
    fi: FinancialInputs,
    monthly: List[MonthlyProjection],
    annual: List[AnnualSummary],
    financing: FinancingSetup,
    shareholder_salary_adj: Sequence[float],
) -> List[ROICExtendedOutput]:
    """
    Return on invested capital per year.

    Invested capital = cash invested (equity + loans) + cumulative sweat equity
    + year-end retained earnings. Sweat equity is the owner's imputed salary
    adjustment; it is deducted from pre-tax income before taxes are computed.
    """
    roic: List[ROICExtendedOutput] = []
    cumulative_sweat_equity = 0.0

    for y in range(PROJECTION_YEARS):
        summary = annual[y]
        months = _months_in_year(monthly, y + 1)
        year_end = months[-1]

        outside_cash = financing.equity_amount
        total_loans = financing.debt_amount
        total_cash_invested = round_cents(outside_cash + total_loans)
        cumulative_sweat_equity = round_cents(cumulative_sweat_equity + shareholder_salary_adj[y])
        retained = round_cents(year_end.retained_earnings)
        total_invested_capital = round_cents(total_cash_invested + cumulative_sweat_equity + retained)

        pre_tax_net_income = round_cents(summary.pre_tax_income)
        pre_tax_inc_sweat = round_cents(pre_tax_net_income - shareholder_salary_adj[y])
        taxes_due = round_cents(max(0.0, pre_tax_inc_sweat * fi.tax_rate))
        after_tax_net_income = round_cents(pre_tax_inc_sweat - taxes_due)
        roic_pct = round_cents(pre_tax_inc_sweat / total_invested_capital) if total_invested_capital > 0 else 0.0

        total_opex_abs = sum(abs(mp.total_opex) for mp in months)
        direct_labor_abs = sum(abs(mp.direct_labor) for mp in months)
        avg_core_capital = round_cents((total_opex_abs + direct_labor_abs) / MONTHS_PER_YEAR)
        months_of_core_capital = round_cents(year_end.ending_cash / avg_core_capital) if avg_core_capital > 0 else 0.0
        excess_core_capital = round_cents(year_end.ending_cash - CORE_CAPITAL_RESERVE_MONTHS * avg_core_capital)

        roic.append(
            ROICExtendedOutput(
                year=y + 1,
                outside_cash=outside_cash,
                total_loans=total_loans,
                total_cash_invested=total_cash_invested,
                total_sweat_equity=cumulative_sweat_equity,
                retained_earnings_less_distributions=retained,
                total_invested_capital=total_invested_capital,
                pre_tax_net_income=pre_tax_net_income,
                pre_tax_net_income_inc_sweat_equity=pre_tax_inc_sweat,
                tax_rate=fi.tax_rate,
                taxes_due=taxes_due,
                after_tax_net_income=after_tax_net_income,
                roic_pct=roic_pct,
                avg_core_capital_per_month=avg_core_capital,
                months_of_core_capital=months_of_core_capital,
                excess_core_capital=excess_core_capital,
            )
        )

    return roic


def _compute_valuation(
    fi: FinancialInputs,
    annual: List[AnnualSummary],
    financing: FinancingSetup,
    shareholder_salary_adj: Sequence[float],
    roic_extended: List[ROICExtendedOutput],
) -> List[ValuationOutput]:
    """EBITDA-multiple sale valuation per year, net of estimated tax on sale."""
    ebitda_multiple = fi.ebitda_multiple if fi.ebitda_multiple is not None else DEFAULT_EBITDA_MULTIPLE
    valuation: List[ValuationOutput] = []

    for y in range(PROJECTION_YEARS):
        summary = annual[y]
        gross_sales = round_cents(summary.revenue)
        net_operating_income = round_cents(summary.ebitda)
        salary_adj = shareholder_salary_adj[y]
        adj_noi = round_cents(net_operating_income - salary_adj)
        estimated_value = round_cents(adj_noi * ebitda_multiple)
        estimated_tax_on_sale = round_cents(estimated_value * fi.tax_rate)
        net_after_tax_proceeds = round_cents(estimated_value - estimated_tax_on_sale)
        total_cash_invested = financing.equity_amount
        replacement_return = (
            round_cents(net_after_tax_proceeds / total_cash_invested) if total_cash_invested > 0 else 0.0
        )

        valuation.append(
            ValuationOutput(
                year=y + 1,
                gross_sales=gross_sales,
                net_operating_income=net_operating_income,
                shareholder_salary_adj=salary_adj,
                adj_net_operating_income=adj_noi,
                adj_net_operating_income_pct=_pct(adj_noi, gross_sales),
                ebitda_multiple=ebitda_multiple,
                estimated_value=estimated_value,
                estimated_tax_on_sale=estimated_tax_on_sale,
                net_after_tax_proceeds=net_after_tax_proceeds,
                total_cash_invested=total_cash_invested,
                replacement_return_required=replacement_return,
                business_annual_roic=roic_extended[y].roic_pct,
            )
        )

    return valuation


def _compute_pl_analysis(
    fi: FinancialInputs,
    monthly: List[MonthlyProjection],
    annual: List[AnnualSummary],
    shareholder_salary_adj: Sequence[float],
) -> List[PLAnalysisOutput]:
    target_pcts = fi.target_pre_tax_profit_pct or (DEFAULT_TARGET_PRE_TAX_PROFIT_PCT,) * PROJECTION_YEARS
    analysis: List[PLAnalysisOutput] = []

    for y in range(PROJECTION_YEARS):
        summary = annual[y]
        months = _months_in_year(monthly, y + 1)
        revenue = round_cents(summary.revenue)
        salary_adj = shareholder_salary_adj[y]

        adjusted_pre_tax_profit = round_cents(summary.pre_tax_income - salary_adj)
        target_pre_tax_profit = round_cents(revenue * target_pcts[y])
        above_below_target = round_cents(adjusted_pre_tax_profit - target_pre_tax_profit)
        non_labor_gross_margin = round_cents(summary.gross_profit)

        direct_labor = sum(abs(mp.direct_labor) for mp in months)
        management_salaries = sum(abs(mp.management_salaries) for mp in months)
        total_wages = round_cents(direct_labor + management_salaries)
        adjusted_total_wages = round_cents(max(0.0, total_wages - salary_adj))

        facilities = sum(abs(mp.facilities) for mp in months)
        payroll_tax = sum(abs(mp.payroll_tax_benefits) for mp in months)
        marketing = sum(abs(mp.marketing) for mp in months)
        other_opex = sum(abs(mp.other_opex) for mp in months)
        non_capex = sum(abs(mp.non_capex_investment) for mp in months)
        # Facilities and payroll taxes are fixed costs that cap what is left for wages.
        non_wage_opex = round_cents(facilities + payroll_tax + marketing + other_opex + non_capex)
        salary_cap_at_target = round_cents(non_labor_gross_margin - target_pre_tax_profit - non_wage_opex)

        analysis.append(
            PLAnalysisOutput(
                year=y + 1,
                adjusted_pre_tax_profit=adjusted_pre_tax_profit,
                target_pre_tax_profit=target_pre_tax_profit,
                above_below_target=above_below_target,
                non_labor_gross_margin=non_labor_gross_margin,
                total_wages=total_wages,
                adjusted_total_wages=adjusted_total_wages,
                salary_cap_at_target=salary_cap_at_target,
                over_under_cap=round_cents(salary_cap_at_target - adjusted_total_wages),
                labor_efficiency=_pct(total_wages, revenue),
                adjusted_labor_efficiency=_pct(adjusted_total_wages, revenue),
                discretionary_marketing_pct=_pct(marketing, revenue),
                pr_tax_benefits_pct_of_wages=round_cents(payroll_tax / total_wages) if total_wages != 0 else 0.0,
                other_opex_pct_of_revenue=_pct(other_opex, revenue),
            )
        )

    return analysis


# ---------------------------------------------------------------------------
# Identity checks
# ---------------------------------------------------------------------------


def _check(name: str, expected: float, actual: float, passed: Optional[bool] = None) -> IdentityCheckResult:
    if passed is None:
        passed = abs(expected - actual) <= IDENTITY_TOLERANCE
    return IdentityCheckResult(
        name=name,
        passed=passed,
        expected=expected,
        actual=actual,
        tolerance=IDENTITY_TOLERANCE,
    )


def verify_identities(
    fi: FinancialInputs,
    *,
    monthly: List[MonthlyProjection],
    annual: List[AnnualSummary],
    roi: ROIMetrics,
    valuation: List[ValuationOutput],
    roic_extended: List[ROICExtendedOutput],
    totals: StartupTotals,
    financing: FinancingSetup,
) -> List[IdentityCheckResult]:
    """
    Independently recompute the accounting relationships of a projection.

    Never raises: every relationship becomes an ``IdentityCheckResult`` with a
    one-cent tolerance. A failing check does not stop the computation.
    """
    checks: List[IdentityCheckResult] = []

    # Balance sheet balances every month.
    for mp in monthly:
        checks.append(
            _check(f"Monthly BS identity (M{mp.month})", mp.total_assets, mp.total_liabilities_and_equity)
        )

    # Balance sheet balances at every year end.
    for summary in annual:
        checks.append(
            _check(
                f"Annual BS identity (Year {summary.year})",
                summary.total_assets,
                round_cents(summary.total_liabilities + summary.total_equity),
            )
        )

    # Straight-line depreciation exhausts CapEx exactly.
    if financing.depreciation_years > 0:
        total_depreciation = round_cents(sum(abs(mp.depreciation) for mp in monthly))
        checks.append(_check("Total depreciation equals CapEx", totals.capex_total, total_depreciation))

    # Loans with a term inside the horizon amortize to the expected balance.
    term_months = fi.financing.term_months
    if 0 < term_months <= MAX_PROJECTION_MONTHS:
        expected_final = max(
            0.0, financing.debt_amount - financing.monthly_principal * min(term_months, MAX_PROJECTION_MONTHS)
        )
        checks.append(
            _check("Loan amortization consistency", expected_final, monthly[-1].loan_closing_balance)
        )

    # Indirect-method cash flow ties to the P&L, using prior year-end balances.
    for summary in annual:
        months = _months_in_year(monthly, summary.year)
        last = months[-1]
        prior_months = _months_in_year(monthly, summary.year - 1)
        prior_last = prior_months[-1] if prior_months else None
        prior_ar = prior_last.accounts_receivable if prior_last else 0.0
        prior_inventory = prior_last.inventory if prior_last else 0.0
        prior_ap = prior_last.accounts_payable if prior_last else 0.0

        change_ar = -(last.accounts_receivable - prior_ar)
        change_inventory = -(last.inventory - prior_inventory)
        change_ap = last.accounts_payable - prior_ap

        expected_ocf = round_cents(
            summary.pre_tax_income + abs(summary.depreciation) + change_ar + change_inventory + change_ap
        )
        checks.append(
            _check(
                f"P&L to CF consistency (Year {summary.year})",
                expected_ocf,
                round_cents(summary.operating_cash_flow),
            )
        )

    # Cash continuity between consecutive months.
    for current, following in zip(monthly, monthly[1:]):
        checks.append(
            _check(
                f"CF cash continuity (M{current.month}->M{following.month})",
                current.ending_cash,
                following.beginning_cash,
            )
        )

    for mp in monthly:
        checks.append(
            _check(
                f"CF net identity (M{mp.month})",
                round_cents(mp.cf_net_before_financing + mp.cf_net_financing_cash_flow),
                mp.cf_net_cash_flow,
            )
        )

    for mp in monthly:
        checks.append(
            _check(
                f"CF ending cash identity (M{mp.month})",
                round_cents(mp.beginning_cash + mp.cf_net_cash_flow),
                mp.ending_cash,
            )
        )

    for summary in annual:
        expected = round_cents(
            summary.gross_profit
            + summary.direct_labor
            + summary.total_opex
            + summary.depreciation
            + summary.interest_expense
        )
        checks.append(_check(f"P&L Check (Year {summary.year})", expected, summary.pre_tax_income))

    # Equity rolls forward by pre-tax income less distributions.
    for y in range(PROJECTION_YEARS):
        months = _months_in_year(monthly, y + 1)
        prior_months = _months_in_year(monthly, y)
        begin_equity = prior_months[-1].total_equity if prior_months else round_cents(financing.equity_amount)
        year_pre_tax_income = sum(mp.pre_tax_income for mp in months)
        expected = round_cents(begin_equity + year_pre_tax_income - fi.distributions[y])
        checks.append(_check(f"BS equity continuity (Year {y + 1})", expected, months[-1].total_equity))

    for roic in roic_extended:
        expected_tax = round_cents(max(0.0, roic.pre_tax_net_income_inc_sweat_equity) * fi.tax_rate)
        checks.append(_check(f"Corporation Tax Check (Year {roic.year})", expected_tax, roic.taxes_due))

    for mp in monthly:
        expected_ar = round_cents((mp.revenue / DAYS_PER_MONTH) * fi.working_capital.ar_days)
        checks.append(_check(f"Working Capital AR (M{mp.month})", expected_ar, mp.accounts_receivable))

    if roi.break_even_month is not None:
        at_break_even = monthly[roi.break_even_month - 1].cumulative_net_cash_flow
        checks.append(_check("Breakeven month non-negative", 0.0, at_break_even, passed=at_break_even >= 0))
        if roi.break_even_month > 1:
            before_break_even = monthly[roi.break_even_month - 2].cumulative_net_cash_flow
            checks.append(
                _check("Breakeven prior month negative", -1.0, before_break_even, passed=before_break_even < 0)
            )

    total = totals.total_startup_investment
    expected_roi = round_cents(roi.five_year_cumulative_cash_flow / total) if total != 0 else 0.0
    checks.append(_check("ROI Check", expected_roi, roi.five_year_roi_pct))

    for v in valuation:
        checks.append(
            _check(
                f"Valuation Check (Year {v.year})",
                round_cents(v.adj_net_operating_income * v.ebitda_multiple),
                v.estimated_value,
            )
        )

    return checks
