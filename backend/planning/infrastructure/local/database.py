"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from planning.core.config import get_settings
from planning.utils.time_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class ProjectORM(Base):
    """Project ORM model."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(200), nullable=False)
    organization_id = Column(String(36), nullable=True, index=True)
    is_hobby = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=now_utc)


class OrganizationMemberORM(Base):
    """Organization membership ORM model."""

    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    organization_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    estimated_hours = Column(Float, nullable=True)
    parent_id = Column(String(36), nullable=True, index=True)
    depends_on_task_id = Column(String(36), nullable=True, index=True)
    order_in_parent = Column(Integer, nullable=True)
    assigned_to = Column(String(255), nullable=True, index=True)
    planned_start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=now_utc)


class UserCalendarORM(Base):
    """Weekly capacity calendar ORM model."""

    __tablename__ = "user_calendars"

    user_id = Column(String(255), primary_key=True)
    days_json = Column(JSON, nullable=False, default=list)
    lunch_start = Column(String(5), nullable=False, default="12:00")
    lunch_duration_minutes = Column(Integer, nullable=False, default=60)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class TaskAllocationORM(Base):
    """Task allocation ORM model."""

    __tablename__ = "task_allocations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    allocation_date = Column(Date, nullable=False, index=True)
    hours = Column(Float, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    created_at = Column(DateTime, default=now_utc)


class TaskChildAllocationORM(Base):
    """Child allocation ORM model."""

    __tablename__ = "task_child_allocations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    parent_task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    child_task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    allocation_date = Column(Date, nullable=False, index=True)
    hours = Column(Float, nullable=False)
    level = Column(Integer, nullable=False, default=1)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    created_at = Column(DateTime, default=now_utc)


class TimeEntryORM(Base):
    """Time entry ORM model."""

    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    entry_date = Column(Date, nullable=False)
    hours = Column(Float, nullable=False)
    created_at = Column(DateTime, default=now_utc)


# ===========================================
# Database Functions
# ===========================================

_engine = None


def get_engine():
    """Get async engine instance."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    return _engine


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db():
    """Close pooled connections."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
