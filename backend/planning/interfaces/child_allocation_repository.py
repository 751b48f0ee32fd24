"""
Child allocation repository interface.

Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from planning.models.allocation import ChildAllocation, ChildAllocationCreate
from planning.models.enums import AllocationKind


class IChildAllocationRepository(ABC):
    """Abstract interface for child allocation persistence."""

    @abstractmethod
    async def create_batch(self, allocations: list[ChildAllocationCreate]) -> list[ChildAllocation]:
        """
        Save child allocations.

        Existing rows of every parent in the batch are replaced. Each child's
        planned dates are set from its rows.
        """
        pass

    @abstractmethod
    async def list_by_parent(self, parent_task_id: UUID) -> list[ChildAllocation]:
        """Rows whose parent is the given task, by date, level and child."""
        pass

    @abstractmethod
    async def list_by_child(self, child_task_id: UUID) -> list[ChildAllocation]:
        """Rows for a child task ordered by date."""
        pass

    @abstractmethod
    async def list_for_user_date(
        self,
        user_id: str,
        day: date,
        kind: Optional[AllocationKind] = None,
    ) -> list[ChildAllocation]:
        """Rows on a date under parents allocated to the user, by start time."""
        pass

    @abstractmethod
    async def delete_by_parent(self, parent_task_id: UUID) -> int:
        """
        Delete child rows below a parent at every level.

        Clears planned dates of the affected children.

        Returns:
            Number of rows deleted
        """
        pass
