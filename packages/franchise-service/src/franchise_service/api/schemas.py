from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CapexClassification = Literal["capex", "non_capex", "working_capital"]


# ---------------------------------------------------------------------------
# Raw engine input
# ---------------------------------------------------------------------------


class RevenueInputsModel(BaseModel):
    annual_gross_sales: float = Field(..., description="Annual gross sales at full AUV, in cents")
    months_to_reach_auv: int = Field(..., description="Length of the revenue ramp in months")
    starting_month_auv_pct: float = Field(..., description="Month-1 revenue as a fraction of monthly AUV")
    growth_rates: List[float] = Field(..., description="Annual growth rates for years 1-5")


class OperatingCostInputsModel(BaseModel):
    cogs_pct: List[float] = Field(..., description="Materials COGS as a fraction of revenue (5 or 60 values)")
    labor_pct: List[float] = Field(..., description="Direct labor as a fraction of revenue")
    royalty_pct: List[float] = Field(..., description="Royalty as a fraction of revenue")
    ad_fund_pct: List[float] = Field(..., description="Ad fund contribution as a fraction of revenue")
    marketing_pct: List[float] = Field(..., description="Local marketing as a fraction of revenue")
    other_opex_pct: List[float] = Field(..., description="Other opex as a fraction of revenue")
    payroll_tax_pct: List[float] = Field(..., description="Payroll tax & benefits as a fraction of wages")
    facilities_annual: List[float] = Field(..., description="Annual facilities cost per year, in cents")
    management_salaries_annual: List[float] = Field(..., description="Annual management salaries per year, in cents")


class FinancingInputsModel(BaseModel):
    total_investment: float = Field(..., description="Total financed investment, in cents")
    equity_pct: float = Field(..., description="Equity share of the investment")
    interest_rate: float = Field(..., description="Annual loan interest rate")
    term_months: int = Field(..., description="Loan term in months")


class StartupInputsModel(BaseModel):
    depreciation_rate: float = Field(..., description="1 / useful life in years")


class WorkingCapitalInputsModel(BaseModel):
    ar_days: float
    ap_days: float
    inventory_days: float


class FinancialInputsModel(BaseModel):
    revenue: RevenueInputsModel
    operating_costs: OperatingCostInputsModel
    financing: FinancingInputsModel
    startup: StartupInputsModel
    working_capital: WorkingCapitalInputsModel
    distributions: List[float] = Field(..., description="Annual owner distributions per year, in cents")
    tax_rate: float

    ebitda_multiple: Optional[float] = Field(None, description="Sale valuation multiple (default 3)")
    target_pre_tax_profit_pct: Optional[List[float]] = Field(None, description="Target pre-tax margin per year")
    shareholder_salary_adj: Optional[List[float]] = Field(None, description="Owner salary adjustment per year, in cents")
    tax_payment_delay_months: Optional[int] = Field(None, description="Months between tax accrual and payment")
    non_capex_investment: Optional[List[float]] = Field(None, description="Non-CapEx expense schedule per year, in cents")


class StartupCostItemModel(BaseModel):
    name: str
    amount: float = Field(..., description="Amount in cents")
    capex_classification: CapexClassification
    id: Optional[str] = None
    is_custom: bool = False
    source: str = "brand_default"
    brand_default_amount: Optional[float] = None
    item7_range_low: Optional[float] = None
    item7_range_high: Optional[float] = None
    sort_order: int = 0


class ProjectionRequest(BaseModel):
    """Request body for the raw projection endpoint."""

    financial_inputs: FinancialInputsModel
    startup_costs: List[StartupCostItemModel] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "financial_inputs": {
                    "revenue": {
                        "annual_gross_sales": 32240100,
                        "months_to_reach_auv": 14,
                        "starting_month_auv_pct": 0.08,
                        "growth_rates": [0.13, 0.13, 0.10, 0.08, 0.08],
                    },
                    "operating_costs": {
                        "cogs_pct": [0.30] * 5,
                        "labor_pct": [0.17] * 5,
                        "royalty_pct": [0.05] * 5,
                        "ad_fund_pct": [0.02] * 5,
                        "marketing_pct": [0.05, 0.03, 0.02, 0.02, 0.02],
                        "other_opex_pct": [0.03] * 5,
                        "payroll_tax_pct": [0.20] * 5,
                        "facilities_annual": [1000000, 1030000, 1060900, 1092700, 1125500],
                        "management_salaries_annual": [0, 5170021, 5813444, 6352566, 6879826],
                    },
                    "financing": {
                        "total_investment": 25650700,
                        "equity_pct": 0.20,
                        "interest_rate": 0.105,
                        "term_months": 144,
                    },
                    "startup": {"depreciation_rate": 0.25},
                    "working_capital": {"ar_days": 30, "ap_days": 60, "inventory_days": 60},
                    "distributions": [0, 0, 0, 3000000, 3500000],
                    "tax_rate": 0.21,
                },
                "startup_costs": [
                    {"name": "Equipment & Signage", "amount": 12605700, "capex_classification": "capex"},
                    {"name": "Franchise Fee", "amount": 8437500, "capex_classification": "non_capex"},
                    {"name": "Working Capital", "amount": 4000000, "capex_classification": "working_capital"},
                ],
            }
        }
    )


# ---------------------------------------------------------------------------
# Brands & plans
# ---------------------------------------------------------------------------


class BrandParameter(BaseModel):
    value: float
    label: Optional[str] = None
    description: Optional[str] = None


class StartupCostTemplateItem(BaseModel):
    id: Optional[str] = None
    name: str
    default_amount: float = Field(..., description="Amount in dollars")
    capex_classification: CapexClassification
    item7_range_low: Optional[float] = None
    item7_range_high: Optional[float] = None
    sort_order: Optional[int] = None


class BrandRequest(BaseModel):
    name: str
    brand_parameters: Optional[Dict[str, Dict[str, BrandParameter]]] = Field(
        None, description="Dollar-denominated parameters grouped by section (revenue, operating_costs, ...)"
    )
    startup_cost_template: List[StartupCostTemplateItem] = Field(default_factory=list)


class PlanCreateRequest(BaseModel):
    brand_id: str
    name: str = "My Plan"


class FieldUpdate(BaseModel):
    path: str = Field(..., description="Dotted field path, e.g. 'revenue.growth_rates.0'")
    value: float


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = None
    financial_inputs: Optional[Dict[str, Any]] = None
    field_updates: Optional[List[FieldUpdate]] = None
    field_resets: Optional[List[str]] = None


class PlanStartupCostItem(BaseModel):
    id: str
    name: str
    amount: float
    capex_classification: CapexClassification
    is_custom: bool = False
    source: Literal["brand_default", "user_entry"] = "brand_default"
    brand_default_amount: Optional[float] = None
    item7_range_low: Optional[float] = None
    item7_range_high: Optional[float] = None
    sort_order: int = 0


class StartupCostAction(BaseModel):
    action: Literal["add", "remove", "update_amount", "reset", "reorder"]
    id: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[float] = None
    capex_classification: Optional[CapexClassification] = None
    ordered_ids: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Brand validation
# ---------------------------------------------------------------------------


class RevenueOverrides(BaseModel):
    monthly_auv: Optional[float] = Field(None, description="Monthly AUV in cents")
    growth_rates: Optional[List[float]] = None
    starting_month_auv_pct: Optional[float] = None


class OperatingCostOverrides(BaseModel):
    cogs_pct: Optional[float] = None
    labor_pct: Optional[float] = None
    facilities_annual: Optional[float] = None
    marketing_pct: Optional[float] = None
    royalty_pct: Optional[float] = None
    ad_fund_pct: Optional[float] = None
    other_opex_pct: Optional[float] = None


class FinancingOverrides(BaseModel):
    loan_amount: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_months: Optional[float] = None
    down_payment_pct: Optional[float] = None


class StartupCapitalOverrides(BaseModel):
    working_capital_months: Optional[float] = None
    depreciation_years: Optional[float] = None


class StartupCostOverride(BaseModel):
    name: str
    amount: float


class ValidationTestInputs(BaseModel):
    revenue: Optional[RevenueOverrides] = None
    operating_costs: Optional[OperatingCostOverrides] = None
    financing: Optional[FinancingOverrides] = None
    startup_capital: Optional[StartupCapitalOverrides] = None
    startup_costs: Optional[List[StartupCostOverride]] = None


class ExpectedROIMetrics(BaseModel):
    total_startup_investment: Optional[float] = None
    five_year_cumulative_cash_flow: Optional[float] = None
    five_year_roi_pct: Optional[float] = None
    break_even_month: Optional[int] = None


class ExpectedAnnualSummary(BaseModel):
    year: int
    revenue: Optional[float] = None
    total_cogs: Optional[float] = None
    gross_profit: Optional[float] = None
    total_opex: Optional[float] = None
    ebitda: Optional[float] = None
    pre_tax_income: Optional[float] = None
    ending_cash: Optional[float] = None


class ValidationExpectedOutputs(BaseModel):
    roi_metrics: Optional[ExpectedROIMetrics] = None
    annual_summaries: Optional[List[ExpectedAnnualSummary]] = None
    identity_checks: Optional[bool] = None


class ToleranceConfig(BaseModel):
    currency: Optional[float] = Field(None, description="Currency tolerance in cents")
    percentage: Optional[float] = Field(None, description="Percentage tolerance as a decimal")
    months: Optional[float] = Field(None, description="Months tolerance")


class BrandValidationRequest(BaseModel):
    test_inputs: ValidationTestInputs = Field(default_factory=ValidationTestInputs)
    expected_outputs: ValidationExpectedOutputs = Field(default_factory=ValidationExpectedOutputs)
    tolerances: Optional[ToleranceConfig] = None


class SensitivityRequest(BaseModel):
    revenue: float = Field(0.0, description="Revenue change in percent (-100 floors revenue at zero)", allow_inf_nan=False)
    cogs: float = Field(0.0, description="COGS change in percentage points", allow_inf_nan=False)
    labor: float = Field(0.0, description="Direct labor change in percent", allow_inf_nan=False)
    marketing: float = Field(0.0, description="Marketing change in percent", allow_inf_nan=False)
    facilities: float = Field(0.0, description="Facilities change in percent", allow_inf_nan=False)
