"""
Dependency gate.

A task that depends on another may only start after the prerequisite's
planned end date.
"""

from datetime import date, timedelta

from planning.core.exceptions import (
    DependencyConstraintError,
    DependencyNotPlannedError,
    NotFoundError,
)
from planning.interfaces.task_repository import ITaskRepository
from planning.models.task import Task


class DependencyGate:
    def __init__(self, task_repo: ITaskRepository):
        self._task_repo = task_repo

    async def check(self, task: Task, proposed_start: date) -> None:
        """
        Validate a proposed start date against the task's prerequisite.

        Raises:
            DependencyNotPlannedError: Prerequisite has no planned end date
            DependencyConstraintError: Start is on or before the prerequisite's end
        """
        if task.depends_on_task_id is None:
            return

        prerequisite = await self._task_repo.get(task.depends_on_task_id)
        if prerequisite is None:
            raise NotFoundError(f"Dependency task {task.depends_on_task_id} not found")

        if prerequisite.planned_end_date is None:
            raise DependencyNotPlannedError(
                f'"{task.title}" depends on "{prerequisite.title}", which is not planned yet',
                dependency_task_id=prerequisite.id,
                dependency_title=prerequisite.title,
            )

        if proposed_start <= prerequisite.planned_end_date:
            earliest = prerequisite.planned_end_date + timedelta(days=1)
            raise DependencyConstraintError(
                f'"{task.title}" cannot start before {earliest.isoformat()}: '
                f'"{prerequisite.title}" ends on {prerequisite.planned_end_date.isoformat()}',
                dependency_task_id=prerequisite.id,
                dependency_end=prerequisite.planned_end_date,
                earliest_start=earliest,
            )
