"""
Time entry repository interface.

Implementations: SQLite
"""

from abc import ABC, abstractmethod
from uuid import UUID

from planning.models.time_entry import TimeEntry, TimeEntryCreate


class ITimeEntryRepository(ABC):
    @abstractmethod
    async def create(self, entry: TimeEntryCreate) -> TimeEntry:
        """Log time against a task (used for seeding and tests)."""
        pass

    @abstractmethod
    async def get_hours_worked(self, task_id: UUID) -> float:
        """Total hours logged against a task by anyone."""
        pass
