"""
SQLite implementation of user calendar repository.
"""

from __future__ import annotations

from sqlalchemy import select

from planning.core.config import get_settings
from planning.infrastructure.local.database import UserCalendarORM, get_session_factory
from planning.interfaces.calendar_repository import IUserCalendarRepository
from planning.models.calendar import (
    DayCapacity,
    UserCalendar,
    UserCalendarUpdate,
    default_weekly_capacity,
)
from planning.utils.time_utils import now_utc


class SqliteUserCalendarRepository(IUserCalendarRepository):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _default_calendar(self, user_id: str) -> UserCalendar:
        settings = get_settings()
        return UserCalendar(
            user_id=user_id,
            days=default_weekly_capacity(
                work_start=settings.DEFAULT_WORK_START,
                hobby_start=settings.DEFAULT_HOBBY_START,
            ),
            lunch_start=settings.DEFAULT_LUNCH_START,
            lunch_duration_minutes=settings.DEFAULT_LUNCH_DURATION_MINUTES,
        )

    def _orm_to_model(self, orm: UserCalendarORM) -> UserCalendar:
        return UserCalendar(
            user_id=orm.user_id,
            days=[DayCapacity(**entry) for entry in (orm.days_json or [])],
            lunch_start=orm.lunch_start,
            lunch_duration_minutes=orm.lunch_duration_minutes,
            updated_at=orm.updated_at,
        )

    async def get(self, user_id: str) -> UserCalendar:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserCalendarORM).where(UserCalendarORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else self._default_calendar(user_id)

    async def upsert(self, user_id: str, update: UserCalendarUpdate) -> UserCalendar:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserCalendarORM).where(UserCalendarORM.user_id == user_id)
            )
            orm = result.scalar_one_or_none()
            now = now_utc()
            if orm is None:
                base = self._default_calendar(user_id)
                orm = UserCalendarORM(
                    user_id=user_id,
                    days_json=[day.model_dump(mode="json") for day in base.days],
                    lunch_start=base.lunch_start,
                    lunch_duration_minutes=base.lunch_duration_minutes,
                )
                session.add(orm)
            if update.days is not None:
                orm.days_json = [day.model_dump(mode="json") for day in update.days]
            if update.lunch_start is not None:
                orm.lunch_start = update.lunch_start
            if update.lunch_duration_minutes is not None:
                orm.lunch_duration_minutes = update.lunch_duration_minutes
            orm.updated_at = now
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
