import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from franchise_service import config
from franchise_service.stores.base import BaseStore, StoreFactory
from franchise_service.stores.sql_models import Base, BrandRecord, PlanRecord, StartupCostRecord

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """SQLite gets a single shared connection; anything else a connection pool."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            pool_pre_ping=True,
            echo=False,
        )
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=config.DB_POOL_RECYCLE,
        echo=False,
    )


class SqlStore(BaseStore):
    """
    Durable store backed by SQLAlchemy.

    Each brand, plan and startup cost list is one row holding its JSON document,
    so the documents keep the exact shape the in-memory store hands out.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url or config.DATABASE_URL
        self.engine = make_engine(self.database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"SQL store ready ({self.engine.url.get_backend_name()})")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_brand(self, brand_id: str) -> Optional[Dict[str, Any]]:
        with self.session() as db:
            record = db.get(BrandRecord, brand_id)
            return record.data if record else None

    def save_brand(self, brand: Dict[str, Any]) -> Dict[str, Any]:
        with self.session() as db:
            db.merge(BrandRecord(id=brand["id"], data=brand))
        return brand

    def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        with self.session() as db:
            record = db.get(PlanRecord, plan_id)
            return record.data if record else None

    def save_plan(self, plan: Dict[str, Any]) -> Dict[str, Any]:
        with self.session() as db:
            db.merge(PlanRecord(id=plan["id"], data=plan))
        return plan

    def _load_startup_costs(self, plan_id: str) -> Optional[List[Dict[str, Any]]]:
        with self.session() as db:
            record = db.get(StartupCostRecord, plan_id)
            return record.items if record else None

    def save_startup_costs(self, plan_id: str, costs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self.session() as db:
            db.merge(StartupCostRecord(plan_id=plan_id, items=costs))
        return costs


StoreFactory.register("sql", SqlStore)
