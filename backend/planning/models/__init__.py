"""Pydantic models (schemas) for the application."""

from planning.models.enums import AllocationKind, ConflictStrategy, PlanStatus
from planning.models.task import Task, TaskCreate
from planning.models.project import Project, ProjectCreate
from planning.models.calendar import DayCapacity, UserCalendar, UserCalendarUpdate
from planning.models.allocation import (
    AllocationPlan,
    AllocationSlice,
    AvailabilityDay,
    ChildAllocation,
    ChildAllocationCreate,
    ChildShortfall,
    ConflictInfo,
    PlanRequest,
    PlanResult,
    TaskAllocation,
)
from planning.models.time_entry import TimeEntry, TimeEntryCreate

__all__ = [
    "AllocationKind",
    "ConflictStrategy",
    "PlanStatus",
    "Task",
    "TaskCreate",
    "Project",
    "ProjectCreate",
    "DayCapacity",
    "UserCalendar",
    "UserCalendarUpdate",
    "AllocationPlan",
    "AllocationSlice",
    "AvailabilityDay",
    "ChildAllocation",
    "ChildAllocationCreate",
    "ChildShortfall",
    "ConflictInfo",
    "PlanRequest",
    "PlanResult",
    "TaskAllocation",
    "TimeEntry",
    "TimeEntryCreate",
]
