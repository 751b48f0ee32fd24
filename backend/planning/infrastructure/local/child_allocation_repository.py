"""
SQLite implementation of child allocation repository.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from planning.infrastructure.local.database import (
    ProjectORM,
    TaskAllocationORM,
    TaskChildAllocationORM,
    TaskORM,
    get_session_factory,
)
from planning.interfaces.child_allocation_repository import IChildAllocationRepository
from planning.models.allocation import ChildAllocation, ChildAllocationCreate
from planning.models.enums import AllocationKind


def child_orm_to_model(orm: TaskChildAllocationORM, title: Optional[str] = None) -> ChildAllocation:
    return ChildAllocation(
        id=UUID(orm.id),
        parent_task_id=UUID(orm.parent_task_id),
        child_task_id=UUID(orm.child_task_id),
        allocation_date=orm.allocation_date,
        hours=orm.hours,
        level=orm.level,
        start_time=orm.start_time,
        end_time=orm.end_time,
        child_task_title=title,
    )


async def descendant_ids(session: AsyncSession, task_id: str) -> list[str]:
    """IDs of a task and every task below it."""
    found = [task_id]
    seen = {task_id}
    frontier = [task_id]
    while frontier:
        result = await session.execute(select(TaskORM.id).where(TaskORM.parent_id.in_(frontier)))
        frontier = [row for row in result.scalars().all() if row not in seen]
        seen.update(frontier)
        found.extend(frontier)
    return found


async def delete_child_rows_below(
    session: AsyncSession,
    task_id: str,
    from_date: Optional[date] = None,
) -> list[str]:
    """
    Delete child rows owned by a task's subtree, and rows naming it as child.

    Args:
        session: Open session (caller commits)
        task_id: Subtree root
        from_date: Only rows on or after this date

    Returns:
        IDs of child tasks that lost rows
    """
    subtree = await descendant_ids(session, task_id)
    condition = (TaskChildAllocationORM.parent_task_id.in_(subtree)) | (
        TaskChildAllocationORM.child_task_id == task_id
    )
    if from_date is not None:
        condition = and_(condition, TaskChildAllocationORM.allocation_date >= from_date)

    result = await session.execute(select(TaskChildAllocationORM.child_task_id).where(condition))
    affected = sorted(set(result.scalars().all()))
    await session.execute(delete(TaskChildAllocationORM).where(condition))
    return affected


async def refresh_child_planned_dates(session: AsyncSession, child_ids: Iterable[str]) -> None:
    """Set children's planned dates from their remaining child rows."""
    for child_id in child_ids:
        result = await session.execute(
            select(TaskChildAllocationORM.allocation_date).where(
                TaskChildAllocationORM.child_task_id == child_id
            )
        )
        dates = list(result.scalars().all())
        await session.execute(
            update(TaskORM)
            .where(TaskORM.id == child_id)
            .values(
                planned_start_date=min(dates) if dates else None,
                planned_end_date=max(dates) if dates else None,
            )
        )


class SqliteChildAllocationRepository(IChildAllocationRepository):
    """SQLite implementation of child allocation repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    async def create_batch(self, allocations: list[ChildAllocationCreate]) -> list[ChildAllocation]:
        if not allocations:
            return []
        async with self._session_factory() as session:
            parent_ids = {str(allocation.parent_task_id) for allocation in allocations}
            await session.execute(
                delete(TaskChildAllocationORM).where(
                    TaskChildAllocationORM.parent_task_id.in_(parent_ids)
                )
            )

            rows = []
            dates_by_child: dict[str, list[date]] = defaultdict(list)
            for allocation in allocations:
                orm = TaskChildAllocationORM(
                    id=str(uuid4()),
                    parent_task_id=str(allocation.parent_task_id),
                    child_task_id=str(allocation.child_task_id),
                    allocation_date=allocation.allocation_date,
                    hours=allocation.hours,
                    level=allocation.level,
                    start_time=allocation.start_time,
                    end_time=allocation.end_time,
                )
                session.add(orm)
                rows.append(orm)
                dates_by_child[orm.child_task_id].append(orm.allocation_date)

            for child_id, dates in dates_by_child.items():
                await session.execute(
                    update(TaskORM)
                    .where(TaskORM.id == child_id)
                    .values(planned_start_date=min(dates), planned_end_date=max(dates))
                )
            await session.commit()
            return [child_orm_to_model(orm) for orm in rows]

    async def list_by_parent(self, parent_task_id: UUID) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskChildAllocationORM, TaskORM.title)
                .join(TaskORM, TaskORM.id == TaskChildAllocationORM.child_task_id)
                .where(TaskChildAllocationORM.parent_task_id == str(parent_task_id))
                .order_by(
                    TaskChildAllocationORM.allocation_date,
                    TaskChildAllocationORM.level,
                    TaskChildAllocationORM.start_time,
                )
            )
            return [child_orm_to_model(orm, title) for orm, title in result.all()]

    async def list_by_child(self, child_task_id: UUID) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskChildAllocationORM)
                .where(TaskChildAllocationORM.child_task_id == str(child_task_id))
                .order_by(TaskChildAllocationORM.allocation_date, TaskChildAllocationORM.start_time)
            )
            return [child_orm_to_model(orm) for orm in result.scalars().all()]

    async def list_for_user_date(
        self,
        user_id: str,
        day: date,
        kind: Optional[AllocationKind] = None,
    ) -> list[ChildAllocation]:
        async with self._session_factory() as session:
            query = (
                select(TaskAllocationORM.task_id)
                .join(TaskORM, TaskORM.id == TaskAllocationORM.task_id)
                .join(ProjectORM, ProjectORM.id == TaskORM.project_id)
                .where(
                    and_(
                        TaskAllocationORM.user_id == user_id,
                        TaskAllocationORM.allocation_date == day,
                    )
                )
            )
            if kind is not None:
                query = query.where(ProjectORM.is_hobby == (kind == AllocationKind.HOBBY))
            result = await session.execute(query.distinct())
            frontier = list(result.scalars().all())

            # Follow the hierarchy down from the user's allocated parents
            collected = []
            seen = set(frontier)
            while frontier:
                result = await session.execute(
                    select(TaskChildAllocationORM, TaskORM.title)
                    .join(TaskORM, TaskORM.id == TaskChildAllocationORM.child_task_id)
                    .where(
                        and_(
                            TaskChildAllocationORM.parent_task_id.in_(frontier),
                            TaskChildAllocationORM.allocation_date == day,
                        )
                    )
                )
                frontier = []
                for orm, title in result.all():
                    collected.append(child_orm_to_model(orm, title))
                    if orm.child_task_id not in seen:
                        seen.add(orm.child_task_id)
                        frontier.append(orm.child_task_id)

            collected.sort(key=lambda row: (row.start_time, row.level))
            return collected

    async def delete_by_parent(self, parent_task_id: UUID) -> int:
        async with self._session_factory() as session:
            parents = [str(parent_task_id)]
            seen = set(parents)
            row_ids: list[str] = []
            child_ids: list[str] = []
            while parents:
                result = await session.execute(
                    select(TaskChildAllocationORM).where(
                        TaskChildAllocationORM.parent_task_id.in_(parents)
                    )
                )
                parents = []
                for orm in result.scalars().all():
                    row_ids.append(orm.id)
                    if orm.child_task_id not in seen:
                        seen.add(orm.child_task_id)
                        parents.append(orm.child_task_id)
                        child_ids.append(orm.child_task_id)

            if row_ids:
                await session.execute(
                    delete(TaskChildAllocationORM).where(TaskChildAllocationORM.id.in_(row_ids))
                )
            await refresh_child_planned_dates(session, child_ids)
            await session.commit()
            return len(row_ids)
