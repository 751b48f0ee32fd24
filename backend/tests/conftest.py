"""
Shared fixtures: in-memory SQLite repositories and seed helpers.
"""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from planning.core.config import Settings
from planning.infrastructure.local.allocation_repository import SqliteAllocationRepository
from planning.infrastructure.local.calendar_repository import SqliteUserCalendarRepository
from planning.infrastructure.local.child_allocation_repository import (
    SqliteChildAllocationRepository,
)
from planning.infrastructure.local.database import Base
from planning.infrastructure.local.project_repository import SqliteProjectRepository
from planning.infrastructure.local.task_repository import SqliteTaskRepository
from planning.infrastructure.local.time_entry_repository import SqliteTimeEntryRepository
from planning.models.project import ProjectCreate
from planning.models.task import TaskCreate
from planning.services.planning_service import PlanningService


@pytest.fixture
def test_user_id() -> str:
    return "test_user"


@pytest.fixture
def settings() -> Settings:
    return Settings(DEBUG=False, CHILD_SHORTFALL_POLICY="warn", REPLAN_DEPENDENTS=True)


@pytest.fixture
async def session_factory():
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def task_repo(session_factory):
    return SqliteTaskRepository(session_factory=session_factory)


@pytest.fixture
def project_repo(session_factory):
    return SqliteProjectRepository(session_factory=session_factory)


@pytest.fixture
def calendar_repo(session_factory):
    return SqliteUserCalendarRepository(session_factory=session_factory)


@pytest.fixture
def allocation_repo(session_factory):
    return SqliteAllocationRepository(session_factory=session_factory)


@pytest.fixture
def child_allocation_repo(session_factory):
    return SqliteChildAllocationRepository(session_factory=session_factory)


@pytest.fixture
def time_entry_repo(session_factory):
    return SqliteTimeEntryRepository(session_factory=session_factory)


@pytest.fixture
def planning_service(
    task_repo,
    project_repo,
    calendar_repo,
    allocation_repo,
    child_allocation_repo,
    time_entry_repo,
    settings,
):
    return PlanningService(
        task_repo=task_repo,
        project_repo=project_repo,
        calendar_repo=calendar_repo,
        allocation_repo=allocation_repo,
        child_allocation_repo=child_allocation_repo,
        time_entry_repo=time_entry_repo,
        settings=settings,
    )


@pytest.fixture
def organization_id():
    return uuid4()


@pytest.fixture
async def work_project(project_repo, organization_id, test_user_id):
    """Work project in an organization the test user belongs to."""
    project = await project_repo.create(
        ProjectCreate(name="Client work", organization_id=organization_id)
    )
    await project_repo.add_member(organization_id, test_user_id)
    return project


@pytest.fixture
async def hobby_project(project_repo, organization_id, test_user_id):
    project = await project_repo.create(
        ProjectCreate(name="Side project", organization_id=organization_id, is_hobby=True)
    )
    await project_repo.add_member(organization_id, test_user_id)
    return project


@pytest.fixture
def make_task(task_repo, work_project):
    """Factory creating tasks in the work project by default."""

    async def _make(title: str = "Task", **kwargs):
        kwargs.setdefault("project_id", work_project.id)
        return await task_repo.create(TaskCreate(title=title, **kwargs))

    return _make
