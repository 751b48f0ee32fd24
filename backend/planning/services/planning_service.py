"""
Planning orchestration.

Runs a drop of a task onto a day of a user's calendar end to end:

1. Access check and dependency gate
2. Remaining hours (leaf estimates for parents) and capacity checks
3. Conflict detection and the hours-per-day negotiation
4. Availability, allocation and the parent write
5. Re-read and distribution to subtasks
6. Re-planning of dependent tasks

Steps that need a user decision return an outcome instead of raising, so the
caller can resubmit with a strategy or an hours-per-day cap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional
from uuid import UUID

from planning.core.config import Settings, get_settings
from planning.core.exceptions import (
    AllocationError,
    NoAccessError,
    NoCapacityError,
    NoRemainingHoursError,
    NotFoundError,
    PlanningError,
)
from planning.core.logger import setup_logger
from planning.interfaces.allocation_repository import IAllocationRepository
from planning.interfaces.calendar_repository import IUserCalendarRepository
from planning.interfaces.child_allocation_repository import IChildAllocationRepository
from planning.interfaces.project_repository import IProjectRepository
from planning.interfaces.task_repository import ITaskRepository
from planning.interfaces.time_entry_repository import ITimeEntryRepository
from planning.models.allocation import (
    ChildAllocation,
    ChildShortfall,
    PlanRequest,
    PlanResult,
    PushForwardRequest,
    TaskAllocation,
)
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind, ConflictStrategy, PlanStatus
from planning.models.project import Project
from planning.models.task import Task
from planning.services.allocator import SingleTaskAllocator
from planning.services.availability_service import AvailabilityService
from planning.services.conflict_detector import ConflictDetector
from planning.services.dependency_gate import DependencyGate
from planning.services.hierarchy_distributor import HierarchyDistributor
from planning.utils.calendar_capacity import max_daily_hours, resolve_capacity
from planning.utils.day_window import MIN_WORK_HOURS
from planning.utils.task_tree import TaskTree
from planning.utils.time_utils import weekday_index, weekday_name

logger = setup_logger(__name__)

ProgressCallback = Callable[[str, int], None]


@dataclass
class _PlanContext:
    task: Task
    project: Project
    kind: AllocationKind
    tree: TaskTree
    is_parent: bool
    estimated_hours: float
    hours_worked: float
    calendar: UserCalendar
    max_daily_hours: float

    @property
    def remaining_hours(self) -> float:
        return self.estimated_hours - self.hours_worked


@dataclass
class _DistributionOutcome:
    child_allocations: list[ChildAllocation]
    shortfalls: list[ChildShortfall]
    error: Optional[str] = None


class PlanningService:
    """Service that plans tasks onto a user's calendar."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        calendar_repo: IUserCalendarRepository,
        allocation_repo: IAllocationRepository,
        child_allocation_repo: IChildAllocationRepository,
        time_entry_repo: ITimeEntryRepository,
        settings: Optional[Settings] = None,
    ):
        self._task_repo = task_repo
        self._project_repo = project_repo
        self._calendar_repo = calendar_repo
        self._allocation_repo = allocation_repo
        self._child_allocation_repo = child_allocation_repo
        self._time_entry_repo = time_entry_repo
        self._settings = settings or get_settings()

        self.availability = AvailabilityService(allocation_repo, self._settings)
        self.allocator = SingleTaskAllocator(self._settings)
        self.conflicts = ConflictDetector(allocation_repo, self._settings)
        self.distributor = HierarchyDistributor(self._settings)
        self.dependency_gate = DependencyGate(task_repo)

    # ===========================================
    # Public entry points
    # ===========================================

    async def plan(
        self,
        request: PlanRequest,
        progress: Optional[ProgressCallback] = None,
    ) -> PlanResult:
        """
        Drop a task on a day.

        Raises:
            NotFoundError: Task or project missing
            NoAccessError: User has no access to the task's project
            DependencyNotPlannedError / DependencyConstraintError: Gate failed
            NoRemainingHoursError: Logged time covers the estimate
            NoCapacityError: No hours of the task's kind on the drop day
            PartialAllocationError / AllocationLimitError: Allocation failed
        """
        report = progress or (lambda step, percent: None)

        report("checking", 5)
        ctx = await self._prepare(request.task_id, request.user_id, request.drop_date)

        if request.strategy is None:
            check = await self.conflicts.check(
                request.user_id, request.drop_date, ctx.kind, exclude_task_id=ctx.task.id
            )
            if check.has_conflicts:
                logger.info(
                    f"Drop of {ctx.task.id} on {request.drop_date} conflicts with "
                    f"{', '.join(check.task_names)}"
                )
                return PlanResult(
                    status=PlanStatus.CONFLICT,
                    task_id=ctx.task.id,
                    message=f"{request.drop_date.isoformat()} already has allocations",
                    conflicts=check.conflicts,
                    strategies=[ConflictStrategy.PUSH_FORWARD, ConflictStrategy.PLAN_WHEN_AVAILABLE],
                    remaining_hours=ctx.remaining_hours,
                    hours_worked=ctx.hours_worked,
                    max_daily_hours=ctx.max_daily_hours,
                )

        per_day_cap: Optional[float] = None
        if request.hours_per_day is not None:
            per_day_cap = self.conflicts.clamp_hours_per_day(request.hours_per_day, ctx.max_daily_hours)

        # Push-forward never prompts for hours per day
        if request.strategy == ConflictStrategy.PUSH_FORWARD:
            return await self._push_forward(ctx, request.user_id, request.drop_date, per_day_cap, report)

        # Logged time only forces the prompt for leaf tasks
        prompt_worked = 0.0 if ctx.is_parent else ctx.hours_worked
        if per_day_cap is None and self.conflicts.needs_hours_per_day_prompt(
            ctx.remaining_hours, ctx.max_daily_hours, prompt_worked
        ):
            return PlanResult(
                status=PlanStatus.NEEDS_HOURS_PER_DAY,
                task_id=ctx.task.id,
                message="Choose how many hours per day to plan",
                remaining_hours=ctx.remaining_hours,
                hours_worked=ctx.hours_worked,
                max_daily_hours=ctx.max_daily_hours,
                suggested_hours_per_day=self.conflicts.suggested_hours_per_day(
                    ctx.remaining_hours, ctx.max_daily_hours
                ),
            )

        report("allocating", 30)
        availability = await self.availability.get_availability_for_hours(
            request.user_id,
            ctx.calendar,
            request.drop_date,
            ctx.remaining_hours,
            ctx.kind,
            exclude_task_id=ctx.task.id,
        )
        plan = self.allocator.allocate(
            ctx.remaining_hours,
            availability,
            ctx.calendar,
            ctx.kind,
            request.drop_date,
            per_day_cap=per_day_cap,
        )

        report("saving", 60)
        allocations = await self._allocation_repo.replace_task_allocations(
            ctx.task.id, request.user_id, plan.slices
        )
        logger.info(
            f"Planned {ctx.task.id} for {request.user_id}: {plan.total_hours:.2f}h "
            f"{plan.planned_start_date} to {plan.planned_end_date}"
        )

        return await self._finish(
            ctx, PlanStatus.PLANNED, allocations, report, plan.planned_end_date
        )

    async def push_forward(
        self,
        request: PushForwardRequest,
        progress: Optional[ProgressCallback] = None,
    ) -> PlanResult:
        """Place a task at a date and shift everything already there."""
        report = progress or (lambda step, percent: None)
        report("checking", 5)
        ctx = await self._prepare(request.task_id, request.user_id, request.from_date)
        per_day_cap = None
        if request.hours_per_day is not None:
            per_day_cap = self.conflicts.clamp_hours_per_day(request.hours_per_day, ctx.max_daily_hours)
        return await self._push_forward(ctx, request.user_id, request.from_date, per_day_cap, report)

    async def replan_dependents(
        self,
        task_id: UUID,
        new_end_date: date,
        visited: Optional[set[UUID]] = None,
    ) -> list[UUID]:
        """
        Move dependents that now start too early to after ``new_end_date``.

        Each dependent keeps its total allocated hours. Recurses through the
        dependency chain.

        Returns:
            IDs of re-planned tasks, in the order they were moved
        """
        visited = visited if visited is not None else {task_id}
        replanned: list[UUID] = []

        for dependent in await self._task_repo.list_dependents(task_id):
            if dependent.id in visited:
                logger.warning(f"Dependency cycle through task {dependent.id}; not re-planned")
                continue
            visited.add(dependent.id)

            rows = await self._allocation_repo.list_for_task(dependent.id)
            if not rows:
                continue
            if min(row.allocation_date for row in rows) > new_end_date:
                continue

            user_id = rows[0].user_id or dependent.assigned_to
            total_hours = sum(row.hours for row in rows)
            project = await self._project_repo.get(dependent.project_id)
            if not user_id or not project or total_hours < MIN_WORK_HOURS:
                continue

            calendar = await self._calendar_repo.get(user_id)
            start = new_end_date + timedelta(days=1)
            availability = await self.availability.get_availability_for_hours(
                user_id, calendar, start, total_hours, project.kind, exclude_task_id=dependent.id
            )
            try:
                plan = self.allocator.allocate(total_hours, availability, calendar, project.kind, start)
            except AllocationError as e:
                logger.error(f"Could not re-plan dependent task {dependent.id}: {e.message}")
                continue

            persisted = await self._allocation_repo.replace_task_allocations(
                dependent.id, user_id, plan.slices
            )
            logger.info(
                f"Re-planned dependent {dependent.id} to {plan.planned_start_date}"
                f" - {plan.planned_end_date}"
            )
            await self._distribute_children(dependent.id, persisted)
            replanned.append(dependent.id)
            if plan.planned_end_date is not None:
                replanned.extend(
                    await self.replan_dependents(dependent.id, plan.planned_end_date, visited)
                )

        return replanned

    # ===========================================
    # Pipeline steps
    # ===========================================

    async def _prepare(self, task_id: UUID, user_id: str, start: date) -> _PlanContext:
        task = await self._task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        project = await self._project_repo.get(task.project_id)
        if not project:
            raise NotFoundError(f"Project {task.project_id} not found")

        if not await self._project_repo.user_has_access(user_id, project.id):
            raise NoAccessError(f"User {user_id} has no access to project {project.name}")

        await self.dependency_gate.check(task, start)

        tree = TaskTree(await self._task_repo.list_subtree(task.id))
        is_parent = tree.is_parent(task.id)
        if is_parent:
            leaves = tree.leaf_descendants(task.id)
            estimated = sum(leaf.estimated_hours or 0.0 for leaf in leaves)
            worked = 0.0
            for leaf in leaves:
                worked += await self._time_entry_repo.get_hours_worked(leaf.id)
        else:
            estimated = task.estimated_hours or 0.0
            worked = await self._time_entry_repo.get_hours_worked(task.id)

        if estimated - worked < MIN_WORK_HOURS:
            raise NoRemainingHoursError(
                f'"{task.title}" has no remaining hours to plan '
                f"(estimated {estimated:.2f}h, worked {worked:.2f}h)",
                estimated_hours=estimated,
                hours_worked=worked,
            )

        kind = project.kind
        calendar = await self._calendar_repo.get(user_id)
        max_daily = max_daily_hours(calendar, kind)
        if max_daily <= 0:
            raise NoCapacityError(f"User {user_id} has no {kind.value.lower()} hours configured")
        if not resolve_capacity(calendar, weekday_index(start), kind).is_working:
            raise NoCapacityError(
                f"{weekday_name(start).capitalize()} is not a {kind.value.lower()} day "
                f"for user {user_id}"
            )

        return _PlanContext(
            task=task,
            project=project,
            kind=kind,
            tree=tree,
            is_parent=is_parent,
            estimated_hours=estimated,
            hours_worked=worked,
            calendar=calendar,
            max_daily_hours=max_daily,
        )

    async def _push_forward(
        self,
        ctx: _PlanContext,
        user_id: str,
        from_date: date,
        per_day_cap: Optional[float],
        report: ProgressCallback,
    ) -> PlanResult:
        report("pushing forward", 30)
        result = await self._allocation_repo.push_forward(
            ctx.task.id,
            user_id,
            from_date,
            ctx.remaining_hours,
            ctx.calendar,
            ctx.kind,
            hours_per_day=per_day_cap,
        )

        # Affected parents lost their child rows from the date on
        for affected_id in result.affected_task_ids:
            rows = await self._allocation_repo.list_for_task(affected_id)
            outcome = await self._distribute_children(affected_id, rows)
            if outcome.error:
                logger.error(f"Re-distribution of {affected_id} failed: {outcome.error}")

        planned_end = max((row.allocation_date for row in result.allocations), default=None)
        plan_result = await self._finish(
            ctx, PlanStatus.PUSHED_FORWARD, result.allocations, report, planned_end
        )
        plan_result.replanned_task_ids = result.affected_task_ids + plan_result.replanned_task_ids
        return plan_result

    async def _finish(
        self,
        ctx: _PlanContext,
        status: PlanStatus,
        allocations: list[TaskAllocation],
        report: ProgressCallback,
        planned_end: Optional[date],
    ) -> PlanResult:
        child_allocations: list[ChildAllocation] = []
        shortfalls: list[ChildShortfall] = []
        message = None

        if ctx.is_parent:
            report("distributing", 75)
            # Re-read so distribution sees the persisted schedule
            persisted = await self._allocation_repo.list_for_task(ctx.task.id)
            outcome = await self._distribute_children(ctx.task.id, persisted)
            child_allocations, shortfalls = outcome.child_allocations, outcome.shortfalls
            if outcome.error:
                status = PlanStatus.DISTRIBUTION_FAILED
                message = outcome.error

        replanned: list[UUID] = []
        if self._settings.REPLAN_DEPENDENTS and planned_end is not None:
            report("re-planning dependents", 90)
            replanned = await self.replan_dependents(ctx.task.id, planned_end)

        task = await self._task_repo.get(ctx.task.id)
        report("done", 100)
        return PlanResult(
            status=status,
            task_id=ctx.task.id,
            message=message,
            allocations=allocations,
            child_allocations=child_allocations,
            shortfalls=shortfalls,
            remaining_hours=ctx.remaining_hours,
            hours_worked=ctx.hours_worked,
            max_daily_hours=ctx.max_daily_hours,
            replanned_task_ids=replanned,
            planned_start_date=task.planned_start_date if task else None,
            planned_end_date=task.planned_end_date if task else None,
        )

    async def _distribute_children(
        self,
        parent_id: UUID,
        parent_rows: list[TaskAllocation],
    ) -> _DistributionOutcome:
        """Distribute a persisted parent schedule and save the child rows."""
        tree = TaskTree(await self._task_repo.list_subtree(parent_id))
        if not tree.is_parent(parent_id) or not parent_rows:
            return _DistributionOutcome([], [])

        try:
            result = self.distributor.distribute(parent_id, parent_rows, tree)
            saved = await self._child_allocation_repo.create_batch(result.child_allocations)
        except PlanningError as e:
            logger.error(f"Distribution to subtasks of {parent_id} failed: {e.message}")
            return _DistributionOutcome([], [], error=e.message)

        logger.info(f"Distributed {len(saved)} child allocations below {parent_id}")
        return _DistributionOutcome(saved, result.shortfalls)
