import datetime

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BrandRecord(Base):
    __tablename__ = "brands"

    id = Column(String, primary_key=True, index=True)
    data = Column(JSON, nullable=False)  # Brand parameters + startup cost template
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)


class PlanRecord(Base):
    __tablename__ = "plans"

    id = Column(String, primary_key=True, index=True)
    data = Column(JSON, nullable=False)  # Plan document incl. wrapped financial inputs
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)


class StartupCostRecord(Base):
    __tablename__ = "startup_costs"

    plan_id = Column(String, primary_key=True, index=True)
    items = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)
