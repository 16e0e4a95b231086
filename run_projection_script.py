import argparse
import json
import os

from franchise_service.services.engine_input import engine_input_from_dict
from franchise_service.services.export import export_statement
from franchise_service.services.plans import PlanService
from franchise_service.services.projections import ProjectionService
from franchise_service.stores.memory import InMemoryStore

DEFAULT_BRAND_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "brands", "demo-brand.json")


def _dollars(cents: float) -> str:
    return f"${cents / 100:,.2f}"


def main():
    parser = argparse.ArgumentParser(description="Run a five-year franchise projection from a brand or raw inputs file.")
    parser.add_argument("--brand", "-b", type=str, default=DEFAULT_BRAND_FILE, help="Brand JSON file (dollar parameters + startup cost template)")
    parser.add_argument("--inputs", "-i", type=str, default=None, help="Raw engine input JSON file (cents); overrides --brand")
    parser.add_argument("--export", "-e", type=str, default=None, help="Write the statement to this file (.csv or .xlsx)")
    parser.add_argument("--statement", "-s", choices=["monthly", "annual"], default="annual", help="Statement to export")
    args = parser.parse_args()

    store = InMemoryStore()
    projections = ProjectionService(store)

    if args.inputs:
        with open(args.inputs, "r", encoding="utf-8") as f:
            engine_input = engine_input_from_dict(json.load(f))
        print(f"Running projection for {args.inputs}...")
        output = projections.calculate(engine_input)
    else:
        with open(args.brand, "r", encoding="utf-8") as f:
            brand = json.load(f)
        plans = PlanService(store)
        plans.save_brand(brand["id"], brand)
        plan = plans.create_plan(brand["id"], f"{brand.get('name', brand['id'])} plan")
        print(f"Running projection for brand {brand.get('name', brand['id'])}...")
        output = projections.compute_plan_outputs(plan["id"])

    roi = output.roi_metrics
    print("\nProjection Summary:")
    print(f"Total Startup Investment: {_dollars(roi.total_startup_investment)}")
    print(f"Year 1 Revenue: {_dollars(roi.projected_annual_revenue_year1)}")
    print(f"Break-even Month: {roi.break_even_month if roi.break_even_month is not None else 'not within 60 months'}")
    print(f"5-Year Cumulative Cash Flow: {_dollars(roi.five_year_cumulative_cash_flow)}")
    print(f"5-Year ROI: {roi.five_year_roi_pct * 100:.2f}%")

    print("\nYear   Revenue            EBITDA             Pre-tax Income     Ending Cash")
    for summary in output.annual_summaries:
        print(
            f"{summary.year:<6} {_dollars(summary.revenue):<18} {_dollars(summary.ebitda):<18} "
            f"{_dollars(summary.pre_tax_income):<18} {_dollars(summary.ending_cash)}"
        )

    failed = [c for c in output.identity_checks if not c.passed]
    print(f"\nIdentity checks: {len(output.identity_checks) - len(failed)}/{len(output.identity_checks)} passed")
    for check in failed:
        print(f"  FAILED {check.name}: expected {check.expected}, actual {check.actual}")

    if args.export:
        fmt = "xlsx" if args.export.endswith(".xlsx") else "csv"
        with open(args.export, "wb") as f:
            f.write(export_statement(output, args.statement, fmt))
        print(f"\nWrote {args.statement} statement to {args.export}")


if __name__ == "__main__":
    main()
