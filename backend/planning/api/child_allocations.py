"""
Child allocation API endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from planning.api.deps import ChildAllocationRepo, CurrentUser
from planning.models.allocation import ChildAllocation, ChildAllocationBatch
from planning.models.enums import AllocationKind

router = APIRouter()


@router.post("/batch", response_model=list[ChildAllocation])
async def save_child_allocations(
    payload: ChildAllocationBatch,
    user: CurrentUser,
    repo: ChildAllocationRepo,
):
    if not payload.allocations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Allocations array is required",
        )
    return await repo.create_batch(payload.allocations)


@router.get("/parent/{parent_task_id}", response_model=list[ChildAllocation])
async def get_by_parent(
    parent_task_id: UUID,
    user: CurrentUser,
    repo: ChildAllocationRepo,
):
    return await repo.list_by_parent(parent_task_id)


@router.get("/child/{child_task_id}", response_model=list[ChildAllocation])
async def get_by_child(
    child_task_id: UUID,
    user: CurrentUser,
    repo: ChildAllocationRepo,
):
    return await repo.list_by_child(child_task_id)


@router.get("/user/{user_id}/date/{day}", response_model=list[ChildAllocation])
async def get_user_day_child_allocations(
    user_id: str,
    day: date,
    user: CurrentUser,
    repo: ChildAllocationRepo,
    kind: Optional[AllocationKind] = Query(None),
):
    return await repo.list_for_user_date(user_id, day, kind=kind)


@router.delete("/parent/{parent_task_id}")
async def delete_by_parent(
    parent_task_id: UUID,
    user: CurrentUser,
    repo: ChildAllocationRepo,
):
    """Delete child allocations below a parent at every level."""
    deleted = await repo.delete_by_parent(parent_task_id)
    return {"deleted": deleted}
