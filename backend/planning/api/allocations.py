"""
Task allocation API endpoints.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from planning.api.deps import (
    AllocationRepo,
    CalendarRepo,
    CurrentUser,
    PlanningSvc,
)
from planning.api.errors import to_http_exception
from planning.core.config import get_settings
from planning.core.exceptions import PlanningError
from planning.models.allocation import (
    AllocationDayDelete,
    AvailabilityDay,
    PlanResult,
    PushForwardRequest,
    TaskAllocation,
    TaskAllocationWrite,
)
from planning.models.enums import AllocationKind
from planning.services.availability_service import AvailabilityService

router = APIRouter()


@router.get("/availability/{user_id}", response_model=list[AvailabilityDay])
async def get_availability(
    user_id: str,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
    calendar_repo: CalendarRepo,
    start_date: date = Query(...),
    end_date: date = Query(...),
    kind: AllocationKind = Query(AllocationKind.WORK),
    exclude_task_id: Optional[UUID] = Query(None),
):
    """Free capacity per working day in [start_date, end_date]."""
    settings = get_settings()
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )
    if end_date - start_date > timedelta(days=settings.AVAILABILITY_MAX_WINDOW_DAYS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Range is limited to {settings.AVAILABILITY_MAX_WINDOW_DAYS} days",
        )

    calendar = await calendar_repo.get(user_id)
    service = AvailabilityService(allocation_repo, settings)
    return await service.get_availability(
        user_id, calendar, start_date, end_date, kind, exclude_task_id=exclude_task_id
    )


@router.get("/user/{user_id}/date/{day}", response_model=list[TaskAllocation])
async def get_user_day_allocations(
    user_id: str,
    day: date,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
    kind: Optional[AllocationKind] = Query(None),
):
    """A user's allocations on one date, ordered by start time."""
    return await allocation_repo.get_allocations_for_day(user_id, day, kind=kind)


@router.get("/task/{task_id}", response_model=list[TaskAllocation])
async def get_task_allocations(
    task_id: UUID,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
):
    return await allocation_repo.list_for_task(task_id)


@router.post("", response_model=list[TaskAllocation])
async def save_task_allocations(
    payload: TaskAllocationWrite,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
    service: PlanningSvc,
):
    """
    Replace a task's allocations with the given slices.

    Tasks depending on this one are moved past its new end date.
    """
    try:
        saved = await allocation_repo.replace_task_allocations(
            payload.task_id, payload.user_id, payload.allocations
        )
    except PlanningError as e:
        raise to_http_exception(e)

    if saved and get_settings().REPLAN_DEPENDENTS:
        new_end = max(row.allocation_date for row in saved)
        await service.replan_dependents(payload.task_id, new_end)
    return saved


@router.delete("/task/{task_id}")
async def delete_task_allocations(
    task_id: UUID,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
):
    """Remove a task's planning, including every child allocation below it."""
    try:
        deleted = await allocation_repo.delete_task_allocations(task_id)
    except PlanningError as e:
        raise to_http_exception(e)
    return {"deleted": deleted}


@router.delete("/delete")
async def delete_allocation_day(
    payload: AllocationDayDelete,
    user: CurrentUser,
    allocation_repo: AllocationRepo,
):
    """Remove one day of a task's allocations."""
    try:
        deleted = await allocation_repo.delete_allocation_day(
            payload.task_id, payload.user_id, payload.allocation_date
        )
    except PlanningError as e:
        raise to_http_exception(e)
    return {"deleted": deleted}


@router.post("/push-forward", response_model=PlanResult)
async def push_forward(
    payload: PushForwardRequest,
    user: CurrentUser,
    service: PlanningSvc,
):
    """Place a task at a date and shift the allocations already there."""
    try:
        return await service.push_forward(payload)
    except PlanningError as e:
        raise to_http_exception(e)
