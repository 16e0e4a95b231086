"""
Projection Service
==================

Thin orchestration layer: load a plan and its startup costs from a Store,
unwrap the plan inputs via ``unwrap_for_engine``, validate them at the
boundary, run the engine, and report failed identity checks.

All computation lives in **franchise_engine** so there is exactly one source
of truth.
"""

import logging
from typing import Dict, List

from franchise_engine import calculate_projections
from franchise_engine.models import EngineInput, EngineOutput, IdentityCheckResult
from franchise_service.errors import MissingFinancialInputsError, NotFoundError
from franchise_service.services.engine_input import validate_engine_input
from franchise_service.services.plan_initialization import migrate_plan_financial_inputs, unwrap_for_engine
from franchise_service.services.sensitivity import (
    SensitivityAdjustments,
    compute_scenario_outputs,
    compute_sensitivity_outputs,
)
from franchise_service.stores.base import BaseStore
from franchise_service.utils.logging import log_structured

logger = logging.getLogger(__name__)

IDENTITY_CHECK_FAILED_EVENT = "accounting_identity_check_failed"


class ProjectionService:
    def __init__(self, store: BaseStore):
        self.store = store

    def compute_plan_outputs(self, plan_id: str) -> EngineOutput:
        """
        Orchestrates the projection for one plan.

        1. Load the plan and its startup costs (legacy items migrated on read).
        2. Unwrap plan inputs into a raw EngineInput.
        3. Validate and run the engine.
        4. Log any identity check failures.
        """
        engine_input = self.load_engine_input(plan_id)
        output = self.calculate(engine_input)
        log_identity_check_failures(plan_id, output.identity_checks)
        return output

    def compute_plan_sensitivity(
        self, plan_id: str, adjustments: SensitivityAdjustments
    ) -> Dict[str, EngineOutput]:
        engine_input = self.load_engine_input(plan_id)
        base = self.calculate(engine_input)
        log_identity_check_failures(plan_id, base.identity_checks)
        return compute_sensitivity_outputs(engine_input, adjustments, base=base)

    def compute_plan_scenarios(self, plan_id: str) -> Dict[str, EngineOutput]:
        engine_input = self.load_engine_input(plan_id)
        base = self.calculate(engine_input)
        log_identity_check_failures(plan_id, base.identity_checks)
        return compute_scenario_outputs(engine_input, base=base)

    def load_engine_input(self, plan_id: str) -> EngineInput:
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan '{plan_id}' not found")
        if not plan.get("financial_inputs"):
            raise MissingFinancialInputsError(
                "This plan doesn't have financial inputs configured yet. "
                "Complete plan setup to see projections."
            )

        startup_costs = self.store.get_startup_costs(plan_id)
        plan_inputs = migrate_plan_financial_inputs(plan["financial_inputs"])
        return unwrap_for_engine(plan_inputs, startup_costs)

    def calculate(self, engine_input: EngineInput) -> EngineOutput:
        validate_engine_input(engine_input)
        return calculate_projections(engine_input)


def log_identity_check_failures(plan_id: str, checks: List[IdentityCheckResult]) -> None:
    for check in checks:
        if check.passed:
            continue
        log_structured(
            logger,
            IDENTITY_CHECK_FAILED_EVENT,
            {
                "plan_id": plan_id,
                "check_name": check.name,
                "expected": check.expected,
                "actual": check.actual,
                "tolerance": check.tolerance,
            },
        )
