import copy
import threading
from typing import Any, Dict, List, Optional

from franchise_service.stores.base import BaseStore, StoreFactory


class InMemoryStore(BaseStore):
    """Process-local store. Returns deep copies so callers never share state."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._brands: Dict[str, Dict[str, Any]] = {}
        self._plans: Dict[str, Dict[str, Any]] = {}
        self._startup_costs: Dict[str, List[Dict[str, Any]]] = {}

    def get_brand(self, brand_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._brands.get(brand_id))

    def save_brand(self, brand: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._brands[brand["id"]] = copy.deepcopy(brand)
        return brand

    def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._plans.get(plan_id))

    def save_plan(self, plan: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            self._plans[plan["id"]] = copy.deepcopy(plan)
        return plan

    def _load_startup_costs(self, plan_id: str) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            return copy.deepcopy(self._startup_costs.get(plan_id))

    def save_startup_costs(self, plan_id: str, costs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self._lock:
            self._startup_costs[plan_id] = copy.deepcopy(costs)
        return costs


StoreFactory.register("memory", InMemoryStore)
