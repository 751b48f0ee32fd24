"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from planning.interfaces.task_repository import ITaskRepository
from planning.models.task import Task, TaskCreate
from planning.infrastructure.local.database import TaskORM, get_session_factory


def task_orm_to_model(orm: TaskORM) -> Task:
    """Convert ORM object to Pydantic model."""
    return Task(
        id=UUID(orm.id),
        title=orm.title,
        project_id=UUID(orm.project_id),
        estimated_hours=orm.estimated_hours,
        parent_id=UUID(orm.parent_id) if orm.parent_id else None,
        depends_on_task_id=UUID(orm.depends_on_task_id) if orm.depends_on_task_id else None,
        order_in_parent=orm.order_in_parent,
        assigned_to=orm.assigned_to,
        planned_start_date=orm.planned_start_date,
        planned_end_date=orm.planned_end_date,
    )


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    async def create(self, task: TaskCreate) -> Task:
        """Create a new task."""
        async with self._session_factory() as session:
            orm = TaskORM(
                id=str(uuid4()),
                project_id=str(task.project_id),
                title=task.title,
                estimated_hours=task.estimated_hours,
                parent_id=str(task.parent_id) if task.parent_id else None,
                depends_on_task_id=str(task.depends_on_task_id) if task.depends_on_task_id else None,
                order_in_parent=task.order_in_parent,
                assigned_to=task.assigned_to,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return task_orm_to_model(orm)

    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            return task_orm_to_model(orm) if orm else None

    async def list_subtree(self, root_id: UUID) -> list[Task]:
        """Get a task and its descendants, level by level."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(root_id)))
            root = result.scalar_one_or_none()
            if root is None:
                return []

            tasks = [task_orm_to_model(root)]
            seen = {root.id}
            frontier = [root.id]
            while frontier:
                result = await session.execute(
                    select(TaskORM)
                    .where(TaskORM.parent_id.in_(frontier))
                    .order_by(TaskORM.created_at, TaskORM.id)
                )
                frontier = []
                for orm in result.scalars().all():
                    # A cyclic parent link stops here; TaskTree reports it
                    if orm.id in seen:
                        continue
                    seen.add(orm.id)
                    frontier.append(orm.id)
                    tasks.append(task_orm_to_model(orm))
            return tasks

    async def list_dependents(self, task_id: UUID) -> list[Task]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(TaskORM.depends_on_task_id == str(task_id))
                .order_by(TaskORM.created_at, TaskORM.id)
            )
            return [task_orm_to_model(orm) for orm in result.scalars().all()]
