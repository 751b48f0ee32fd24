"""
SQLite implementation of time entry repository.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import func, select

from planning.infrastructure.local.database import TimeEntryORM, get_session_factory
from planning.interfaces.time_entry_repository import ITimeEntryRepository
from planning.models.time_entry import TimeEntry, TimeEntryCreate


class SqliteTimeEntryRepository(ITimeEntryRepository):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    async def create(self, entry: TimeEntryCreate) -> TimeEntry:
        async with self._session_factory() as session:
            orm = TimeEntryORM(
                id=str(uuid4()),
                task_id=str(entry.task_id),
                user_id=entry.user_id,
                entry_date=entry.entry_date,
                hours=entry.hours,
            )
            session.add(orm)
            await session.commit()
            return TimeEntry(id=UUID(orm.id), **entry.model_dump())

    async def get_hours_worked(self, task_id: UUID) -> float:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(TimeEntryORM.hours), 0.0)).where(
                    TimeEntryORM.task_id == str(task_id)
                )
            )
            return float(result.scalar_one())
