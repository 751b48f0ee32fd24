"""
Task repository interface.

Task CRUD is owned elsewhere; the scheduler reads tasks, their hierarchy and
their dependency links.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from planning.models.task import Task, TaskCreate


class ITaskRepository(ABC):
    """Abstract interface for task reads."""

    @abstractmethod
    async def create(self, task: TaskCreate) -> Task:
        """Create a new task (used for seeding and tests)."""
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> Optional[Task]:
        """
        Get a task by ID.

        Args:
            task_id: Task ID

        Returns:
            Task if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_subtree(self, root_id: UUID) -> list[Task]:
        """
        Get a task and all of its descendants.

        Args:
            root_id: Root task ID

        Returns:
            The root followed by its descendants (breadth first)
        """
        pass

    @abstractmethod
    async def list_dependents(self, task_id: UUID) -> list[Task]:
        """Get tasks whose depends_on_task_id points at the given task."""
        pass
