"""
Plan Service: brand / plan lifecycle on top of a Store.

Creating a plan snapshots the brand's parameters and startup cost template
into the plan; later brand edits do not change existing plans.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from franchise_service.errors import BrandNotConfiguredError, InputError, NotFoundError
from franchise_service.services.plan_initialization import (
    add_custom_startup_cost,
    build_plan_financial_inputs,
    build_plan_startup_costs,
    migrate_plan_financial_inputs,
    remove_startup_cost,
    reorder_startup_costs,
    reset_field_to_default,
    reset_startup_cost_to_default,
    update_field_value,
    update_startup_cost_amount,
)
from franchise_service.stores.base import BaseStore

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _resolve_field_parent(inputs: Dict[str, Any], path: str):
    """
    Walk a dotted path such as ``revenue.monthly_auv`` or
    ``operating_costs.cogs_pct.2`` and return (container, key).
    """
    parts = path.split(".")
    node: Any = inputs
    for part in parts[:-1]:
        node = _step(node, part, path)
    last = parts[-1]
    if isinstance(node, list):
        last = _index(node, last, path)
    elif not isinstance(node, dict) or last not in node:
        raise InputError(f"Unknown field '{path}'")
    if not isinstance(node[last], dict) or "current_value" not in node[last]:
        raise InputError(f"'{path}' is not an editable field")
    return node, last


def _step(node: Any, part: str, path: str) -> Any:
    if isinstance(node, list):
        return node[_index(node, part, path)]
    if isinstance(node, dict) and part in node:
        return node[part]
    raise InputError(f"Unknown field '{path}'")


def _index(node: list, part: str, path: str) -> int:
    if not part.isdigit() or int(part) >= len(node):
        raise InputError(f"Unknown field '{path}'")
    return int(part)


class PlanService:
    def __init__(self, store: BaseStore):
        self.store = store

    # -- brands ------------------------------------------------------------

    def get_brand(self, brand_id: str) -> Dict[str, Any]:
        brand = self.store.get_brand(brand_id)
        if brand is None:
            raise NotFoundError(f"Brand '{brand_id}' not found")
        return brand

    def save_brand(self, brand_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        brand = dict(data, id=brand_id)
        return self.store.save_brand(brand)

    # -- plans -------------------------------------------------------------

    def get_plan(self, plan_id: str) -> Dict[str, Any]:
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan '{plan_id}' not found")
        return plan

    def create_plan(self, brand_id: str, name: str) -> Dict[str, Any]:
        brand = self.get_brand(brand_id)
        if not brand.get("brand_parameters"):
            raise BrandNotConfiguredError("Brand does not have financial parameters configured")

        plan = {
            "id": str(uuid.uuid4()),
            "brand_id": brand_id,
            "name": name,
            "financial_inputs": build_plan_financial_inputs(brand["brand_parameters"]),
            "created_at": _now(),
        }
        self.store.save_plan(plan)
        self.store.save_startup_costs(plan["id"], build_plan_startup_costs(brand.get("startup_cost_template") or []))
        logger.info(f"Created plan {plan['id']} for brand {brand_id}")
        return plan

    def update_plan(
        self,
        plan_id: str,
        name: Optional[str] = None,
        financial_inputs: Optional[Dict[str, Any]] = None,
        field_updates: Optional[Sequence[Dict[str, Any]]] = None,
        field_resets: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Partial plan update.

        ``financial_inputs`` replaces the whole input tree (migrated if it is in
        the single-value format). ``field_updates`` (``{"path", "value"}``) and
        ``field_resets`` (paths) then edit individual fields.
        """
        plan = self.get_plan(plan_id)
        if name is not None:
            plan["name"] = name
        if financial_inputs is not None:
            plan["financial_inputs"] = migrate_plan_financial_inputs(financial_inputs)

        if field_updates or field_resets:
            inputs = plan.get("financial_inputs")
            if not inputs:
                raise InputError("Plan has no financial inputs to edit")
            timestamp = _now()
            for update in field_updates or []:
                parent, key = _resolve_field_parent(inputs, update["path"])
                parent[key] = update_field_value(parent[key], update["value"], timestamp)
            for path in field_resets or []:
                parent, key = _resolve_field_parent(inputs, path)
                parent[key] = reset_field_to_default(parent[key], timestamp)

        return self.store.save_plan(plan)

    # -- startup costs -----------------------------------------------------

    def get_startup_costs(self, plan_id: str) -> List[Dict[str, Any]]:
        self.get_plan(plan_id)
        return self.store.get_startup_costs(plan_id)

    def replace_startup_costs(self, plan_id: str, costs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.get_plan(plan_id)
        return self.store.save_startup_costs(plan_id, costs)

    def reset_startup_costs(self, plan_id: str) -> List[Dict[str, Any]]:
        """Rebuild the plan's startup costs from its brand's current template."""
        plan = self.get_plan(plan_id)
        brand = self.get_brand(plan["brand_id"])
        defaults = build_plan_startup_costs(brand.get("startup_cost_template") or [])
        return self.store.save_startup_costs(plan_id, defaults)

    def apply_startup_cost_action(self, plan_id: str, action: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Apply one list operation: ``add``, ``remove``, ``update_amount``,
        ``reset`` or ``reorder``.
        """
        costs = self.get_startup_costs(plan_id)
        kind = action.get("action")
        try:
            costs = self._apply_action(costs, kind, action)
        except KeyError as e:
            raise InputError(f"Startup cost action '{kind}' requires '{e.args[0]}'") from e
        return self.store.save_startup_costs(plan_id, costs)

    @staticmethod
    def _apply_action(costs: List[Dict[str, Any]], kind: Optional[str], action: Dict[str, Any]) -> List[Dict[str, Any]]:
        if kind == "add":
            return add_custom_startup_cost(costs, action["name"], action["amount"], action["capex_classification"])
        elif kind == "remove":
            return remove_startup_cost(costs, action["id"])
        elif kind == "update_amount":
            return update_startup_cost_amount(costs, action["id"], action["amount"])
        elif kind == "reset":
            return reset_startup_cost_to_default(costs, action["id"])
        elif kind == "reorder":
            return reorder_startup_costs(costs, action["ordered_ids"])
        else:
            raise InputError(f"Unknown startup cost action '{kind}'")
