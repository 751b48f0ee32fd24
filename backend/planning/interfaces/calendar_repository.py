"""
User calendar repository interface.

Implementations: SQLite
"""

from abc import ABC, abstractmethod

from planning.models.calendar import UserCalendar, UserCalendarUpdate


class IUserCalendarRepository(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> UserCalendar:
        """Get a user's calendar, falling back to the default week."""
        pass

    @abstractmethod
    async def upsert(self, user_id: str, update: UserCalendarUpdate) -> UserCalendar:
        """Create or update a user's calendar."""
        pass
