from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from franchise_service.services.plan_initialization import migrate_startup_costs


class BaseStore(ABC):
    """Abstract base class for brand / plan persistence."""

    @abstractmethod
    def get_brand(self, brand_id: str) -> Optional[Dict[str, Any]]:
        """Return the brand (parameters + startup cost template) or None."""
        pass

    @abstractmethod
    def save_brand(self, brand: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def save_plan(self, plan: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _load_startup_costs(self, plan_id: str) -> Optional[List[Dict[str, Any]]]:
        """Raw startup cost list as persisted, possibly in a legacy shape."""
        pass

    @abstractmethod
    def save_startup_costs(self, plan_id: str, costs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        pass

    def get_startup_costs(self, plan_id: str) -> List[Dict[str, Any]]:
        """
        Startup cost line items of a plan.

        Legacy items saved without bookkeeping metadata (id, source, sort order)
        are migrated on read.
        """
        costs = self._load_startup_costs(plan_id) or []
        return migrate_startup_costs(costs)


class StoreFactory:
    """Simple factory to manage stores (Singleton Pattern)."""

    _store_classes: Dict[str, Type[BaseStore]] = {}
    _instances: Dict[str, BaseStore] = {}

    @classmethod
    def register(cls, name: str, store_cls: Type[BaseStore]) -> None:
        cls._store_classes[name] = store_cls

    @classmethod
    def get_store(cls, name: str) -> BaseStore:
        if name in cls._instances:
            return cls._instances[name]

        store_cls = cls._store_classes.get(name)
        if not store_cls:
            raise ValueError(f"Store '{name}' not found.")

        instance = store_cls()
        cls._instances[name] = instance
        return instance

    @classmethod
    def reset(cls) -> None:
        """Drop cached instances (tests)."""
        cls._instances.clear()
