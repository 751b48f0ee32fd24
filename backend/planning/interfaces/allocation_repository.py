"""
Task allocation repository interface.

Defines the contract for allocation persistence. Writes keep each task's
planned start/end dates in step with its allocation rows.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from planning.models.allocation import AllocationSlice, PushForwardResult, TaskAllocation
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind


class IAllocationRepository(ABC):
    """Abstract interface for allocation persistence."""

    @abstractmethod
    async def get_allocations_for_range(
        self,
        user_id: str,
        start: date,
        end: date,
        kind: Optional[AllocationKind] = None,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[TaskAllocation]:
        """
        Get a user's allocations in [start, end].

        Args:
            user_id: User ID
            start: First date (inclusive)
            end: Last date (inclusive)
            kind: Only allocations of tasks in work or hobby projects
            exclude_task_id: Task whose own rows are left out

        Returns:
            Allocations ordered by date and start time
        """
        pass

    @abstractmethod
    async def get_allocations_for_day(
        self,
        user_id: str,
        day: date,
        kind: Optional[AllocationKind] = None,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[TaskAllocation]:
        """Get a user's allocations on one date, ordered by start time."""
        pass

    @abstractmethod
    async def list_for_task(self, task_id: UUID) -> list[TaskAllocation]:
        """Get all allocations of a task ordered by date and start time."""
        pass

    @abstractmethod
    async def replace_task_allocations(
        self,
        task_id: UUID,
        user_id: str,
        slices: list[AllocationSlice],
    ) -> list[TaskAllocation]:
        """
        Replace a task's allocations for a user.

        Sets the task's planned dates to the min/max slice date and assigns
        the task to the user.

        Raises:
            NotFoundError: If the task does not exist
        """
        pass

    @abstractmethod
    async def delete_task_allocations(self, task_id: UUID) -> int:
        """
        Remove a task's planning.

        Deletes the task's allocations and every child allocation below it,
        and clears planned dates on the task and its descendants.

        Returns:
            Number of allocation rows deleted
        """
        pass

    @abstractmethod
    async def delete_allocation_day(self, task_id: UUID, user_id: str, day: date) -> int:
        """
        Delete one day of a task's allocations.

        Child allocations of that task on that date go too. Planned dates are
        recomputed from what remains.

        Returns:
            Number of allocation rows deleted
        """
        pass

    @abstractmethod
    async def push_forward(
        self,
        task_id: UUID,
        user_id: str,
        from_date: date,
        total_hours: float,
        calendar: UserCalendar,
        kind: AllocationKind,
        hours_per_day: Optional[float] = None,
    ) -> PushForwardResult:
        """
        Place a task at ``from_date`` and shift everything after it.

        Runs as one transaction. The task is allocated first, then every
        other task of the same kind with allocations on or after
        ``from_date`` is re-slotted in its original order.

        Raises:
            NotFoundError: If the task does not exist
            AllocationLimitError: If re-slotting runs past the day cap
        """
        pass
