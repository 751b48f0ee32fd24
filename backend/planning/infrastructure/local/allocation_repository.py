"""
SQLite implementation of task allocation repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from planning.core.config import get_settings
from planning.core.exceptions import NotFoundError
from planning.core.logger import setup_logger
from planning.infrastructure.local.child_allocation_repository import (
    delete_child_rows_below,
    descendant_ids,
    refresh_child_planned_dates,
)
from planning.infrastructure.local.database import (
    ProjectORM,
    TaskAllocationORM,
    TaskChildAllocationORM,
    TaskORM,
    get_session_factory,
)
from planning.interfaces.allocation_repository import IAllocationRepository
from planning.models.allocation import AllocationSlice, PushForwardResult, TaskAllocation
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind
from planning.utils.slot_filler import SlotFiller

logger = setup_logger(__name__)


def _kind_of(is_hobby: Optional[bool]) -> AllocationKind:
    return AllocationKind.HOBBY if is_hobby else AllocationKind.WORK


class SqliteAllocationRepository(IAllocationRepository):
    """SQLite implementation of allocation repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(
        self,
        orm: TaskAllocationORM,
        title: Optional[str] = None,
        is_hobby: Optional[bool] = None,
    ) -> TaskAllocation:
        """Convert ORM object to Pydantic model."""
        return TaskAllocation(
            id=UUID(orm.id),
            task_id=UUID(orm.task_id),
            user_id=orm.user_id,
            allocation_date=orm.allocation_date,
            hours=orm.hours,
            start_time=orm.start_time,
            end_time=orm.end_time,
            task_title=title,
            kind=_kind_of(is_hobby) if is_hobby is not None else None,
        )

    def _joined_query(self):
        return (
            select(TaskAllocationORM, TaskORM.title, ProjectORM.is_hobby)
            .join(TaskORM, TaskORM.id == TaskAllocationORM.task_id)
            .join(ProjectORM, ProjectORM.id == TaskORM.project_id)
        )

    def _filter(
        self,
        query,
        kind: Optional[AllocationKind],
        exclude_task_id: Optional[UUID],
    ):
        if kind is not None:
            query = query.where(ProjectORM.is_hobby == (kind == AllocationKind.HOBBY))
        if exclude_task_id is not None:
            query = query.where(TaskAllocationORM.task_id != str(exclude_task_id))
        return query

    async def get_allocations_for_range(
        self,
        user_id: str,
        start: date,
        end: date,
        kind: Optional[AllocationKind] = None,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[TaskAllocation]:
        async with self._session_factory() as session:
            query = self._joined_query().where(
                and_(
                    TaskAllocationORM.user_id == user_id,
                    TaskAllocationORM.allocation_date >= start,
                    TaskAllocationORM.allocation_date <= end,
                )
            )
            query = self._filter(query, kind, exclude_task_id).order_by(
                TaskAllocationORM.allocation_date, TaskAllocationORM.start_time
            )
            result = await session.execute(query)
            return [self._orm_to_model(orm, title, hobby) for orm, title, hobby in result.all()]

    async def get_allocations_for_day(
        self,
        user_id: str,
        day: date,
        kind: Optional[AllocationKind] = None,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[TaskAllocation]:
        return await self.get_allocations_for_range(user_id, day, day, kind, exclude_task_id)

    async def list_for_task(self, task_id: UUID) -> list[TaskAllocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                self._joined_query()
                .where(TaskAllocationORM.task_id == str(task_id))
                .order_by(TaskAllocationORM.allocation_date, TaskAllocationORM.start_time)
            )
            return [self._orm_to_model(orm, title, hobby) for orm, title, hobby in result.all()]

    async def _get_task_orm(self, session: AsyncSession, task_id: UUID) -> TaskORM:
        result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Task {task_id} not found")
        return orm

    async def _refresh_planned_dates(self, session: AsyncSession, task_id: str) -> None:
        result = await session.execute(
            select(
                func.min(TaskAllocationORM.allocation_date),
                func.max(TaskAllocationORM.allocation_date),
            ).where(TaskAllocationORM.task_id == task_id)
        )
        start, end = result.one()
        await session.execute(
            update(TaskORM)
            .where(TaskORM.id == task_id)
            .values(planned_start_date=start, planned_end_date=end)
        )

    def _insert_slices(
        self,
        session: AsyncSession,
        task_id: str,
        user_id: str,
        slices: list[AllocationSlice],
    ) -> list[TaskAllocationORM]:
        rows = []
        for item in slices:
            orm = TaskAllocationORM(
                id=str(uuid4()),
                task_id=task_id,
                user_id=user_id,
                allocation_date=item.allocation_date,
                hours=item.hours,
                start_time=item.start_time,
                end_time=item.end_time,
            )
            session.add(orm)
            rows.append(orm)
        return rows

    async def replace_task_allocations(
        self,
        task_id: UUID,
        user_id: str,
        slices: list[AllocationSlice],
    ) -> list[TaskAllocation]:
        async with self._session_factory() as session:
            task = await self._get_task_orm(session, task_id)

            await session.execute(
                delete(TaskAllocationORM).where(TaskAllocationORM.task_id == task.id)
            )
            touched_children = await delete_child_rows_below(session, task.id)
            rows = self._insert_slices(session, task.id, user_id, slices)

            if slices:
                dates = [item.allocation_date for item in slices]
                task.planned_start_date = min(dates)
                task.planned_end_date = max(dates)
                task.assigned_to = user_id
            else:
                task.planned_start_date = None
                task.planned_end_date = None

            await refresh_child_planned_dates(
                session, [child_id for child_id in touched_children if child_id != task.id]
            )
            await session.commit()
            logger.info(f"Saved {len(rows)} allocations for task {task_id} (user {user_id})")
            return [self._orm_to_model(orm, task.title) for orm in rows]

    async def delete_task_allocations(self, task_id: UUID) -> int:
        async with self._session_factory() as session:
            task = await self._get_task_orm(session, task_id)

            result = await session.execute(
                delete(TaskAllocationORM).where(TaskAllocationORM.task_id == task.id)
            )
            deleted = result.rowcount or 0
            await delete_child_rows_below(session, task.id)

            subtree = await descendant_ids(session, task.id)
            await session.execute(
                update(TaskORM)
                .where(TaskORM.id.in_(subtree))
                .values(planned_start_date=None, planned_end_date=None)
            )
            await session.commit()
            logger.info(f"Removed planning of task {task_id} ({deleted} allocations)")
            return deleted

    async def delete_allocation_day(self, task_id: UUID, user_id: str, day: date) -> int:
        async with self._session_factory() as session:
            task = await self._get_task_orm(session, task_id)

            result = await session.execute(
                delete(TaskAllocationORM).where(
                    and_(
                        TaskAllocationORM.task_id == task.id,
                        TaskAllocationORM.user_id == user_id,
                        TaskAllocationORM.allocation_date == day,
                    )
                )
            )
            deleted = result.rowcount or 0

            result = await session.execute(
                select(TaskChildAllocationORM.child_task_id).where(
                    and_(
                        TaskChildAllocationORM.parent_task_id == task.id,
                        TaskChildAllocationORM.allocation_date == day,
                    )
                )
            )
            children = sorted(set(result.scalars().all()))
            await session.execute(
                delete(TaskChildAllocationORM).where(
                    and_(
                        TaskChildAllocationORM.parent_task_id == task.id,
                        TaskChildAllocationORM.allocation_date == day,
                    )
                )
            )

            await self._refresh_planned_dates(session, task.id)
            await refresh_child_planned_dates(session, children)
            await session.commit()
            return deleted

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
        settings = get_settings()
        async with self._session_factory() as session:
            task = await self._get_task_orm(session, task_id)

            # Tasks of the same kind holding slots from the date on, in original order
            first_date = func.min(TaskAllocationORM.allocation_date)
            first_start = func.min(TaskAllocationORM.start_time)
            result = await session.execute(
                select(
                    TaskAllocationORM.task_id,
                    func.sum(TaskAllocationORM.hours),
                    first_date,
                    first_start,
                )
                .join(TaskORM, TaskORM.id == TaskAllocationORM.task_id)
                .join(ProjectORM, ProjectORM.id == TaskORM.project_id)
                .where(
                    and_(
                        TaskAllocationORM.user_id == user_id,
                        TaskAllocationORM.allocation_date >= from_date,
                        TaskAllocationORM.task_id != task.id,
                        ProjectORM.is_hobby == (kind == AllocationKind.HOBBY),
                    )
                )
                .group_by(TaskAllocationORM.task_id)
                .order_by(first_date, first_start, TaskAllocationORM.task_id)
            )
            affected = [(row[0], float(row[1] or 0.0)) for row in result.all()]

            touched_children: set[str] = set()
            await session.execute(
                delete(TaskAllocationORM).where(TaskAllocationORM.task_id == task.id)
            )
            touched_children.update(await delete_child_rows_below(session, task.id))
            for affected_id, _ in affected:
                await session.execute(
                    delete(TaskAllocationORM).where(
                        and_(
                            TaskAllocationORM.task_id == affected_id,
                            TaskAllocationORM.user_id == user_id,
                            TaskAllocationORM.allocation_date >= from_date,
                        )
                    )
                )
                touched_children.update(
                    await delete_child_rows_below(session, affected_id, from_date=from_date)
                )

            filler = SlotFiller(calendar, kind, settings.MAX_DAYS_TO_PROCESS)
            new_slices = filler.fill(total_hours, from_date, per_day_cap=hours_per_day)
            new_rows = self._insert_slices(session, task.id, user_id, new_slices)
            task.assigned_to = user_id

            for affected_id, hours in affected:
                if hours <= 0:
                    continue
                self._insert_slices(session, affected_id, user_id, filler.fill(hours, from_date))

            await session.flush()
            await self._refresh_planned_dates(session, task.id)
            for affected_id, _ in affected:
                await self._refresh_planned_dates(session, affected_id)
            planned_ids = {task.id, *(affected_id for affected_id, _ in affected)}
            await refresh_child_planned_dates(
                session, [child_id for child_id in touched_children if child_id not in planned_ids]
            )
            await session.commit()

            logger.info(
                f"Push-forward from {from_date}: placed task {task_id} "
                f"({total_hours:.2f}h) and re-slotted {len(affected)} tasks"
            )
            return PushForwardResult(
                allocations=[self._orm_to_model(orm, task.title) for orm in new_rows],
                affected_task_ids=[UUID(affected_id) for affected_id, _ in affected],
            )
