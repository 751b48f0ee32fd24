"""
Allocation models.

An allocation is one time slice of one task on one day for one user. Child
allocations break a parent's slices down through its subtask tree.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from planning.models.calendar import END_TIME_PATTERN, HHMM_PATTERN
from planning.models.enums import AllocationKind, ConflictStrategy, PlanStatus


class AllocationSlice(BaseModel):
    """A time slice produced by the allocator, not yet bound to a task."""

    allocation_date: date
    hours: float = Field(..., gt=0)
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=END_TIME_PATTERN)


class TaskAllocation(AllocationSlice):
    """Persisted allocation row."""

    id: UUID
    task_id: UUID
    user_id: str
    # Filled by reads that join the task and project
    task_title: Optional[str] = None
    kind: Optional[AllocationKind] = None


class TaskAllocationWrite(BaseModel):
    """Replace a task's allocations for a user."""

    task_id: UUID
    user_id: str
    allocations: list[AllocationSlice] = Field(default_factory=list)


class AllocationDayDelete(BaseModel):
    task_id: UUID
    user_id: str
    allocation_date: date


class ChildAllocationCreate(BaseModel):
    parent_task_id: UUID
    child_task_id: UUID
    allocation_date: date
    hours: float = Field(..., gt=0)
    level: int = Field(1, ge=1)
    start_time: str = Field(..., pattern=HHMM_PATTERN)
    end_time: str = Field(..., pattern=END_TIME_PATTERN)


class ChildAllocation(ChildAllocationCreate):
    id: UUID
    child_task_title: Optional[str] = None


class ChildAllocationBatch(BaseModel):
    allocations: list[ChildAllocationCreate] = Field(default_factory=list)


class AvailabilityDay(BaseModel):
    """Capacity left on one calendar day for one kind of work."""

    date: date
    weekday: str
    kind: AllocationKind
    max_hours: float
    allocated_hours: float
    available_hours: float
    start_time: str
    latest_end_time: Optional[str] = None


class AllocationPlan(BaseModel):
    slices: list[AllocationSlice] = Field(default_factory=list)
    total_hours: float = 0.0
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None


class ConflictInfo(BaseModel):
    """An existing allocation on the drop day."""

    task_id: UUID
    task_title: Optional[str] = None
    hours: float
    start_time: str
    end_time: str


class ChildShortfall(BaseModel):
    """A child that received less than its estimate during distribution."""

    child_task_id: UUID
    title: str
    estimated_hours: float
    allocated_hours: float


class PushForwardRequest(BaseModel):
    task_id: UUID
    user_id: str
    from_date: date
    hours_per_day: Optional[float] = Field(None, gt=0)


class PushForwardResult(BaseModel):
    allocations: list[TaskAllocation] = Field(default_factory=list)
    affected_task_ids: list[UUID] = Field(default_factory=list)


class PlanRequest(BaseModel):
    """Drop a task on a day of a user's calendar."""

    task_id: UUID
    user_id: str
    drop_date: date
    strategy: Optional[ConflictStrategy] = None
    hours_per_day: Optional[float] = Field(None, gt=0)


class PlanResult(BaseModel):
    status: PlanStatus
    task_id: UUID
    message: Optional[str] = None
    allocations: list[TaskAllocation] = Field(default_factory=list)
    child_allocations: list[ChildAllocation] = Field(default_factory=list)
    conflicts: list[ConflictInfo] = Field(default_factory=list)
    strategies: list[ConflictStrategy] = Field(default_factory=list)
    remaining_hours: Optional[float] = None
    hours_worked: Optional[float] = None
    max_daily_hours: Optional[float] = None
    suggested_hours_per_day: Optional[float] = None
    shortfalls: list[ChildShortfall] = Field(default_factory=list)
    replanned_task_ids: list[UUID] = Field(default_factory=list)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
