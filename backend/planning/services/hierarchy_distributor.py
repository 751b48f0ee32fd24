"""
Hierarchical distribution of a parent's schedule to its subtasks.

Children are filled strictly one after another in child order: the first
child consumes the parent's time until its estimate is met, the next child
continues from that exact day and clock time. Child rows follow the parent's
own clock segments, so a gap in the parent's day (such as lunch) splits the
child row too. A child that has children of its own hands its fresh slices
down one level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from planning.core.config import Settings, get_settings
from planning.core.exceptions import DistributionError, TaskHierarchyError
from planning.core.logger import setup_logger
from planning.models.allocation import AllocationSlice, ChildAllocationCreate, ChildShortfall
from planning.utils.day_window import MIN_SEGMENT_MINUTES
from planning.utils.task_tree import TaskTree
from planning.utils.time_utils import format_hhmm, parse_hhmm

logger = setup_logger(__name__)

# A segment of the pool counts as used up at or below this many hours
DAY_EXHAUSTED_HOURS = 0.01
MIN_SLICE_HOURS = 0.005


@dataclass
class _PoolSegment:
    allocation_date: date
    remaining_hours: float
    current_minutes: float

    @property
    def end_minutes(self) -> float:
        return self.current_minutes + self.remaining_hours * 60


@dataclass
class DistributionResult:
    child_allocations: list[ChildAllocationCreate] = field(default_factory=list)
    shortfalls: list[ChildShortfall] = field(default_factory=list)


class HierarchyDistributor:
    """Breaks a parent's allocation slices down through its subtask tree."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    def distribute(
        self,
        parent_id: UUID,
        parent_slices: Sequence[AllocationSlice],
        tree: TaskTree,
        level: int = 1,
    ) -> DistributionResult:
        """
        Distribute a parent's slices to its children, recursively.

        Args:
            parent_id: Parent task ID
            parent_slices: The parent's persisted slices
            tree: Arena holding the parent and its descendants
            level: Depth of the direct children (1 for the dropped task)

        Returns:
            Child allocation records for every level, plus shortfalls

        Raises:
            TaskHierarchyError: If the tree contains a cycle
            DistributionError: If a child falls short and the policy is "error"
        """
        result = DistributionResult()
        self._distribute(parent_id, parent_slices, tree, level, result, set())

        if result.shortfalls and self._settings.CHILD_SHORTFALL_POLICY == "error":
            raise DistributionError(
                f"{len(result.shortfalls)} subtasks received less than their estimate",
                details=[shortfall.model_dump(mode="json") for shortfall in result.shortfalls],
            )
        return result

    def _build_pool(self, slices: Sequence[AllocationSlice]) -> list[_PoolSegment]:
        """Order the parent's slices into clock segments, merging touching ones."""
        pool: list[_PoolSegment] = []
        ordered = sorted(slices, key=lambda item: (item.allocation_date, parse_hhmm(item.start_time)))
        for item in ordered:
            start = float(parse_hhmm(item.start_time))
            last = pool[-1] if pool else None
            if (
                last is not None
                and last.allocation_date == item.allocation_date
                and abs(last.end_minutes - start) < MIN_SEGMENT_MINUTES
            ):
                last.remaining_hours += item.hours
                continue
            pool.append(
                _PoolSegment(
                    allocation_date=item.allocation_date,
                    remaining_hours=item.hours,
                    current_minutes=start,
                )
            )
        return pool

    def _distribute(
        self,
        parent_id: UUID,
        slices: Sequence[AllocationSlice],
        tree: TaskTree,
        level: int,
        result: DistributionResult,
        visited: set[UUID],
    ) -> None:
        if parent_id in visited:
            raise TaskHierarchyError(f"Cycle detected in task hierarchy at {parent_id}", parent_id)
        visited.add(parent_id)

        children = tree.children_of(parent_id)
        if not children:
            return

        pool = self._build_pool(slices)
        parent_total = sum(item.hours for item in slices)
        estimates = {child.id: tree.effective_estimate(child.id) for child in children}
        children_total = sum(value or 0.0 for value in estimates.values())
        if children_total > parent_total + DAY_EXHAUSTED_HOURS:
            logger.warning(
                f"Children of {parent_id} need {children_total:.2f}h "
                f"but only {parent_total:.2f}h is allocated"
            )

        index = 0
        for child in children:
            estimate = estimates[child.id]
            if not estimate or estimate <= 0:
                logger.info(f'Skipping subtask "{child.title}": no estimated hours')
                continue

            child_remaining = estimate
            child_slices: list[AllocationSlice] = []
            while child_remaining > MIN_SLICE_HOURS and index < len(pool):
                segment = pool[index]
                if segment.remaining_hours <= MIN_SLICE_HOURS:
                    index += 1
                    continue

                take = min(child_remaining, segment.remaining_hours)
                start = segment.current_minutes
                end = start + take * 60
                start_time, end_time = format_hhmm(start), format_hhmm(end)
                result.child_allocations.append(
                    ChildAllocationCreate(
                        parent_task_id=parent_id,
                        child_task_id=child.id,
                        allocation_date=segment.allocation_date,
                        hours=round(take, 2),
                        level=level,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )
                child_slices.append(
                    AllocationSlice(
                        allocation_date=segment.allocation_date,
                        hours=take,
                        start_time=start_time,
                        end_time=end_time,
                    )
                )

                child_remaining -= take
                segment.remaining_hours -= take
                segment.current_minutes = end
                if segment.remaining_hours <= DAY_EXHAUSTED_HOURS:
                    index += 1

            allocated = estimate - child_remaining
            if child_remaining > DAY_EXHAUSTED_HOURS:
                logger.warning(
                    f'Subtask "{child.title}" still needs {child_remaining:.2f}h '
                    f"but parent {parent_id} has no more time"
                )
                result.shortfalls.append(
                    ChildShortfall(
                        child_task_id=child.id,
                        title=child.title,
                        estimated_hours=estimate,
                        allocated_hours=round(allocated, 2),
                    )
                )

            if tree.is_parent(child.id) and child_slices:
                self._distribute(child.id, child_slices, tree, level + 1, result, visited)
