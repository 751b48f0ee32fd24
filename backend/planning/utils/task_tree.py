"""
Task hierarchy arena.

Tasks are stored by id with parent to children links. Every walk tracks the
ids it has visited and raises TaskHierarchyError when a cycle shows up.
"""

from collections import defaultdict
from typing import Iterable, Optional
from uuid import UUID

from planning.core.exceptions import TaskHierarchyError
from planning.models.task import Task


class TaskTree:
    """Arena of tasks keyed by id."""

    def __init__(self, tasks: Iterable[Task]):
        self._tasks: dict[UUID, Task] = {}
        self._children: dict[UUID, list[UUID]] = defaultdict(list)
        for task in tasks:
            if task.id in self._tasks:
                continue
            self._tasks[task.id] = task
            if task.parent_id is not None:
                self._children[task.parent_id].append(task.id)

    def __contains__(self, task_id: UUID) -> bool:
        return task_id in self._tasks

    def get(self, task_id: UUID) -> Optional[Task]:
        return self._tasks.get(task_id)

    def is_parent(self, task_id: UUID) -> bool:
        return bool(self._children.get(task_id))

    def children_of(self, task_id: UUID) -> list[Task]:
        """Direct children ordered by order_in_parent, then insertion order."""
        ids = self._children.get(task_id, [])
        indexed = list(enumerate(self._tasks[child_id] for child_id in ids))
        indexed.sort(
            key=lambda item: (
                item[1].order_in_parent is None,
                item[1].order_in_parent or 0,
                item[0],
            )
        )
        return [task for _, task in indexed]

    def descendants(self, task_id: UUID) -> list[Task]:
        """All descendants, depth first, in child order."""
        result: list[Task] = []
        visited: set[UUID] = {task_id}

        def walk(current: UUID) -> None:
            for child in self.children_of(current):
                if child.id in visited:
                    raise TaskHierarchyError(
                        f"Cycle detected in task hierarchy at {child.id}", child.id
                    )
                visited.add(child.id)
                result.append(child)
                walk(child.id)

        walk(task_id)
        return result

    def leaf_descendants(self, task_id: UUID) -> list[Task]:
        """Descendants that have no children of their own."""
        return [task for task in self.descendants(task_id) if not self.is_parent(task.id)]

    def leaf_estimate_total(self, task_id: UUID) -> float:
        """Sum of leaf estimates below a task; leaves without an estimate count as 0."""
        return sum(task.estimated_hours or 0.0 for task in self.leaf_descendants(task_id))

    def effective_estimate(self, task_id: UUID) -> Optional[float]:
        """
        Estimate used when distributing a parent's time to this task.

        A task's own estimate wins. Otherwise the sum of its leaf estimates
        is used. Returns None when neither is available.
        """
        task = self._tasks.get(task_id)
        if task is None:
            return None
        if task.estimated_hours:
            return task.estimated_hours
        if self.is_parent(task_id):
            total = self.leaf_estimate_total(task_id)
            return total if total > 0 else None
        return None
