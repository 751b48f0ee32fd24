"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from planning.core.config import get_settings
from planning.core.exceptions import AuthenticationError
from planning.interfaces.allocation_repository import IAllocationRepository
from planning.interfaces.auth_provider import IAuthProvider, User
from planning.interfaces.calendar_repository import IUserCalendarRepository
from planning.interfaces.child_allocation_repository import IChildAllocationRepository
from planning.interfaces.project_repository import IProjectRepository
from planning.interfaces.task_repository import ITaskRepository
from planning.interfaces.time_entry_repository import ITimeEntryRepository
from planning.services.planning_service import PlanningService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from planning.infrastructure.local.task_repository import SqliteTaskRepository

    return SqliteTaskRepository()


@lru_cache()
def get_project_repository() -> IProjectRepository:
    """Get project repository instance."""
    from planning.infrastructure.local.project_repository import SqliteProjectRepository

    return SqliteProjectRepository()


@lru_cache()
def get_calendar_repository() -> IUserCalendarRepository:
    """Get user calendar repository instance."""
    from planning.infrastructure.local.calendar_repository import SqliteUserCalendarRepository

    return SqliteUserCalendarRepository()


@lru_cache()
def get_allocation_repository() -> IAllocationRepository:
    """Get task allocation repository instance."""
    from planning.infrastructure.local.allocation_repository import SqliteAllocationRepository

    return SqliteAllocationRepository()


@lru_cache()
def get_child_allocation_repository() -> IChildAllocationRepository:
    """Get child allocation repository instance."""
    from planning.infrastructure.local.child_allocation_repository import (
        SqliteChildAllocationRepository,
    )

    return SqliteChildAllocationRepository()


@lru_cache()
def get_time_entry_repository() -> ITimeEntryRepository:
    """Get time entry repository instance."""
    from planning.infrastructure.local.time_entry_repository import SqliteTimeEntryRepository

    return SqliteTimeEntryRepository()


# ===========================================
# Service Dependencies
# ===========================================


def get_planning_service(
    task_repo: ITaskRepository = Depends(get_task_repository),
    project_repo: IProjectRepository = Depends(get_project_repository),
    calendar_repo: IUserCalendarRepository = Depends(get_calendar_repository),
    allocation_repo: IAllocationRepository = Depends(get_allocation_repository),
    child_allocation_repo: IChildAllocationRepository = Depends(get_child_allocation_repository),
    time_entry_repo: ITimeEntryRepository = Depends(get_time_entry_repository),
) -> PlanningService:
    """Get planning service wired to the current repositories."""
    return PlanningService(
        task_repo=task_repo,
        project_repo=project_repo,
        calendar_repo=calendar_repo,
        allocation_repo=allocation_repo,
        child_allocation_repo=child_allocation_repo,
        time_entry_repo=time_entry_repo,
    )


# ===========================================
# Auth Dependencies
# ===========================================


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    from planning.infrastructure.local.mock_auth import MockAuthProvider

    settings = get_settings()
    return MockAuthProvider(enabled=settings.AUTH_PROVIDER == "mock")


async def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    In local mode the bearer token is used as the user ID.
    """
    if not auth_provider.is_enabled():
        # Mock user for development
        return User(id="dev_user", email="dev@example.com", display_name="Developer")

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        return await auth_provider.verify_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
ProjectRepo = Annotated[IProjectRepository, Depends(get_project_repository)]
CalendarRepo = Annotated[IUserCalendarRepository, Depends(get_calendar_repository)]
AllocationRepo = Annotated[IAllocationRepository, Depends(get_allocation_repository)]
ChildAllocationRepo = Annotated[IChildAllocationRepository, Depends(get_child_allocation_repository)]
TimeEntryRepo = Annotated[ITimeEntryRepository, Depends(get_time_entry_repository)]
PlanningSvc = Annotated[PlanningService, Depends(get_planning_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]
