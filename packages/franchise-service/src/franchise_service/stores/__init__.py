from franchise_service.stores.base import BaseStore, StoreFactory
from franchise_service.stores.memory import InMemoryStore
from franchise_service.stores.sql import SqlStore

__all__ = ["BaseStore", "StoreFactory", "InMemoryStore", "SqlStore"]
