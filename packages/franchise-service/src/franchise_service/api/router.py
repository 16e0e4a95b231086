"""
API Router: all endpoint definitions for the franchise projection service.
"""

import logging
from typing import Any, Callable, List

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from franchise_service.api.schemas import (
    BrandRequest,
    BrandValidationRequest,
    PlanCreateRequest,
    PlanStartupCostItem,
    PlanUpdateRequest,
    ProjectionRequest,
    SensitivityRequest,
    StartupCostAction,
)
from franchise_service.config import EXPORT_FORMAT, STORE_BACKEND
from franchise_service.errors import MissingFinancialInputsError, NotFoundError
from franchise_service.services.brand_validation import run_brand_validation
from franchise_service.services.engine_input import engine_input_from_dict
from franchise_service.services.export import MEDIA_TYPES, export_statement
from franchise_service.services.plans import PlanService
from franchise_service.services.projections import ProjectionService
from franchise_service.services.sensitivity import SCENARIO_LABELS, SensitivityAdjustments
from franchise_service.stores import StoreFactory
from franchise_service.utils.json import sanitize_for_json

logger = logging.getLogger(__name__)
router = APIRouter()

ENGINE_ERROR_MESSAGE = "Unable to compute financial projections. Your data is safe, please try again."


def get_store():
    return StoreFactory.get_store(STORE_BACKEND)


def _raise_http(e: Exception, context: str) -> None:
    if isinstance(e, NotFoundError):
        logger.warning(f"Not Found for {context}: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        logger.warning(f"Bad Request for {context}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    logger.error(f"Internal Error for {context}: {e}")
    raise HTTPException(status_code=500, detail="Internal Server Error")


def _engine_error(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message, "code": code}})


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


@router.post(
    "/projections/calculate",
    summary="Calculate Projections",
    description="Runs the five-year projection engine on raw (unwrapped) inputs.",
    response_description="Monthly projections, annual summaries, ROI, valuation and identity checks.",
)
def calculate_projection(request: ProjectionRequest):
    try:
        engine_input = engine_input_from_dict(request.model_dump())
        output = ProjectionService(get_store()).calculate(engine_input)
        return sanitize_for_json(output)
    except Exception as e:
        _raise_http(e, "raw projection")


# ---------------------------------------------------------------------------
# Brands
# ---------------------------------------------------------------------------


@router.get("/brands/{brand_id}", summary="Get Brand")
def get_brand(brand_id: str):
    try:
        return PlanService(get_store()).get_brand(brand_id)
    except Exception as e:
        _raise_http(e, f"brand {brand_id}")


@router.put("/brands/{brand_id}", summary="Create or Replace Brand")
def put_brand(brand_id: str, request: BrandRequest):
    try:
        return PlanService(get_store()).save_brand(brand_id, request.model_dump())
    except Exception as e:
        _raise_http(e, f"brand {brand_id}")


@router.post(
    "/brands/{brand_id}/validation",
    summary="Validate Brand Configuration",
    description="Runs the engine on the brand's defaults plus test overrides and compares against expected outputs.",
)
def validate_brand(brand_id: str, request: BrandValidationRequest):
    try:
        brand = PlanService(get_store()).get_brand(brand_id)
        tolerances = request.tolerances.model_dump() if request.tolerances else None
        result = run_brand_validation(
            brand,
            request.test_inputs.model_dump(exclude_none=True),
            request.expected_outputs.model_dump(exclude_unset=True),
            tolerances,
        )
        return sanitize_for_json(result)
    except Exception as e:
        _raise_http(e, f"brand validation {brand_id}")


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@router.post("/plans", summary="Create Plan", status_code=201)
def create_plan(request: PlanCreateRequest):
    try:
        return PlanService(get_store()).create_plan(request.brand_id, request.name)
    except Exception as e:
        _raise_http(e, f"new plan for brand {request.brand_id}")


@router.get("/plans/{plan_id}", summary="Get Plan")
def get_plan(plan_id: str):
    try:
        return PlanService(get_store()).get_plan(plan_id)
    except Exception as e:
        _raise_http(e, f"plan {plan_id}")


@router.patch("/plans/{plan_id}", summary="Update Plan")
def update_plan(plan_id: str, request: PlanUpdateRequest):
    try:
        return PlanService(get_store()).update_plan(
            plan_id,
            name=request.name,
            financial_inputs=request.financial_inputs,
            field_updates=[u.model_dump() for u in request.field_updates or []],
            field_resets=request.field_resets,
        )
    except Exception as e:
        _raise_http(e, f"plan {plan_id}")


@router.get("/plans/{plan_id}/startup-costs", summary="Get Plan Startup Costs")
def get_startup_costs(plan_id: str):
    try:
        return PlanService(get_store()).get_startup_costs(plan_id)
    except Exception as e:
        _raise_http(e, f"startup costs of plan {plan_id}")


@router.put("/plans/{plan_id}/startup-costs", summary="Replace Plan Startup Costs")
def put_startup_costs(plan_id: str, costs: List[PlanStartupCostItem]):
    try:
        return PlanService(get_store()).replace_startup_costs(plan_id, [c.model_dump() for c in costs])
    except Exception as e:
        _raise_http(e, f"startup costs of plan {plan_id}")


@router.post("/plans/{plan_id}/startup-costs/actions", summary="Edit Plan Startup Costs")
def startup_cost_action(plan_id: str, action: StartupCostAction):
    try:
        return PlanService(get_store()).apply_startup_cost_action(plan_id, action.model_dump(exclude_none=True))
    except Exception as e:
        _raise_http(e, f"startup costs of plan {plan_id}")


@router.post("/plans/{plan_id}/startup-costs/reset", summary="Reset Plan Startup Costs")
def reset_startup_costs(plan_id: str):
    try:
        return PlanService(get_store()).reset_startup_costs(plan_id)
    except Exception as e:
        _raise_http(e, f"startup costs of plan {plan_id}")


def _plan_outputs_response(plan_id: str, compute: Callable[[], Any], **extra: Any):
    try:
        return {"data": sanitize_for_json(compute()), **extra}
    except NotFoundError as e:
        logger.warning(f"Not Found for plan {plan_id}: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except MissingFinancialInputsError as e:
        logger.warning(f"Bad Request for plan {plan_id}: {e}")
        return _engine_error(e.code, str(e), 400)
    except Exception as e:
        logger.error(f"Engine Error for plan {plan_id}: {e}")
        return _engine_error("ENGINE_ERROR", ENGINE_ERROR_MESSAGE, 500)


@router.get(
    "/plans/{plan_id}/outputs",
    summary="Get Plan Projections",
    description="Computes the five-year projection for a saved plan.",
)
def get_plan_outputs(plan_id: str):
    service = ProjectionService(get_store())
    return _plan_outputs_response(plan_id, lambda: service.compute_plan_outputs(plan_id))


@router.post(
    "/plans/{plan_id}/outputs/sensitivity",
    summary="Run Sensitivity Analysis",
    description="Re-runs the plan projection with slider adjustments and returns the base and adjusted outputs.",
)
def run_plan_sensitivity(plan_id: str, request: SensitivityRequest):
    service = ProjectionService(get_store())
    adjustments = SensitivityAdjustments(**request.model_dump())
    return _plan_outputs_response(plan_id, lambda: service.compute_plan_sensitivity(plan_id, adjustments))


@router.get(
    "/plans/{plan_id}/outputs/scenarios",
    summary="Get Plan Scenarios",
    description="Computes base, conservative and optimistic projections for a saved plan.",
)
def get_plan_scenarios(plan_id: str):
    service = ProjectionService(get_store())
    return _plan_outputs_response(
        plan_id, lambda: service.compute_plan_scenarios(plan_id), labels=SCENARIO_LABELS
    )


@router.get(
    "/plans/{plan_id}/outputs/export",
    summary="Export Plan Statements",
    description="Downloads the monthly or annual statement as CSV, or all statements as an XLSX workbook.",
)
def export_plan_outputs(
    plan_id: str,
    statement: str = Query("monthly", description="Statement to export: 'monthly' or 'annual'"),
    format: str = Query(EXPORT_FORMAT, description="File format: 'csv' or 'xlsx'"),
):
    try:
        output = ProjectionService(get_store()).compute_plan_outputs(plan_id)
        content = export_statement(output, statement, format)
    except Exception as e:
        _raise_http(e, f"export of plan {plan_id}")
    filename = f"{plan_id}-{statement}.{format}"
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
