"""
Unit tests for the planning service, run against in-memory repositories.
"""

from datetime import date
from uuid import uuid4

import pytest

from factories import MONDAY, SUNDAY, TUESDAY, WEDNESDAY
from planning.core.config import Settings
from planning.core.exceptions import (
    DependencyConstraintError,
    NoAccessError,
    NoCapacityError,
    NoRemainingHoursError,
    PartialAllocationError,
)
from planning.models.allocation import PlanRequest, PushForwardRequest
from planning.models.calendar import DayCapacity, UserCalendarUpdate
from planning.models.enums import ConflictStrategy, PlanStatus
from planning.models.project import ProjectCreate
from planning.models.task import TaskCreate
from planning.models.time_entry import TimeEntryCreate
from planning.services.planning_service import PlanningService

THURSDAY = date(2024, 3, 7)
FRIDAY = date(2024, 3, 8)


def _spans(allocations):
    return [(a.allocation_date, a.start_time, a.end_time) for a in allocations]


def _request(task, user_id, day, **kwargs):
    return PlanRequest(task_id=task.id, user_id=user_id, drop_date=day, **kwargs)


@pytest.mark.asyncio
async def test_small_task_is_planned_directly(planning_service, task_repo, make_task, test_user_id):
    task = await make_task("Quick fix", estimated_hours=3)

    result = await planning_service.plan(_request(task, test_user_id, MONDAY))

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [(MONDAY, "09:00", "12:00")]
    assert result.planned_start_date == MONDAY
    assert result.planned_end_date == MONDAY
    assert (await task_repo.get(task.id)).assigned_to == test_user_id


@pytest.mark.asyncio
async def test_large_task_asks_for_hours_per_day(
    planning_service, allocation_repo, make_task, test_user_id
):
    task = await make_task("Report", estimated_hours=10)

    result = await planning_service.plan(_request(task, test_user_id, MONDAY))

    assert result.status == PlanStatus.NEEDS_HOURS_PER_DAY
    assert result.remaining_hours == 10
    assert result.max_daily_hours == 8
    assert result.suggested_hours_per_day == 2.0
    assert await allocation_repo.list_for_task(task.id) == []


@pytest.mark.asyncio
async def test_large_task_with_hours_per_day(planning_service, make_task, test_user_id):
    task = await make_task("Report", estimated_hours=10)
    steps = []

    result = await planning_service.plan(
        _request(task, test_user_id, MONDAY, hours_per_day=8),
        progress=lambda step, percent: steps.append((step, percent)),
    )

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [
        (MONDAY, "09:00", "12:00"),
        (MONDAY, "13:00", "18:00"),
        (TUESDAY, "09:00", "11:00"),
    ]
    assert result.planned_end_date == TUESDAY
    assert steps[-1] == ("done", 100)


@pytest.mark.asyncio
async def test_logged_time_reduces_remaining_hours(
    planning_service, time_entry_repo, make_task, test_user_id
):
    task = await make_task("Report", estimated_hours=5)
    await time_entry_repo.create(
        TimeEntryCreate(task_id=task.id, user_id=test_user_id, entry_date=date(2024, 3, 1), hours=3)
    )

    prompt = await planning_service.plan(_request(task, test_user_id, MONDAY))
    result = await planning_service.plan(_request(task, test_user_id, MONDAY, hours_per_day=8))

    assert prompt.status == PlanStatus.NEEDS_HOURS_PER_DAY
    assert prompt.hours_worked == 3
    assert result.remaining_hours == 2
    assert _spans(result.allocations) == [(MONDAY, "09:00", "11:00")]


@pytest.mark.asyncio
async def test_drop_on_busy_day_reports_conflict(planning_service, make_task, test_user_id):
    busy = await make_task("Busy", estimated_hours=3)
    await planning_service.plan(_request(busy, test_user_id, MONDAY))
    task = await make_task("New", estimated_hours=2)

    result = await planning_service.plan(_request(task, test_user_id, MONDAY))

    assert result.status == PlanStatus.CONFLICT
    assert [c.task_title for c in result.conflicts] == ["Busy"]
    assert result.strategies == [
        ConflictStrategy.PUSH_FORWARD,
        ConflictStrategy.PLAN_WHEN_AVAILABLE,
    ]
    assert result.allocations == []


@pytest.mark.asyncio
async def test_plan_when_available_fills_after_existing(planning_service, make_task, test_user_id):
    busy = await make_task("Busy", estimated_hours=3)
    await planning_service.plan(_request(busy, test_user_id, MONDAY))
    task = await make_task("New", estimated_hours=2)

    result = await planning_service.plan(
        _request(task, test_user_id, MONDAY, strategy=ConflictStrategy.PLAN_WHEN_AVAILABLE)
    )

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [(MONDAY, "13:00", "15:00")]


@pytest.mark.asyncio
async def test_push_forward_moves_existing_work(
    planning_service, allocation_repo, make_task, test_user_id
):
    busy = await make_task("Busy", estimated_hours=3)
    await planning_service.plan(_request(busy, test_user_id, MONDAY))
    task = await make_task("New", estimated_hours=2)

    result = await planning_service.plan(
        _request(task, test_user_id, MONDAY, strategy=ConflictStrategy.PUSH_FORWARD)
    )

    assert result.status == PlanStatus.PUSHED_FORWARD
    assert _spans(result.allocations) == [(MONDAY, "09:00", "11:00")]
    assert busy.id in result.replanned_task_ids
    moved = await allocation_repo.list_for_task(busy.id)
    assert _spans(moved) == [(MONDAY, "11:00", "12:00"), (MONDAY, "13:00", "15:00")]


@pytest.mark.asyncio
async def test_push_forward_entry_point(planning_service, make_task, test_user_id):
    task = await make_task("New", estimated_hours=6)

    result = await planning_service.push_forward(
        PushForwardRequest(task_id=task.id, user_id=test_user_id, from_date=TUESDAY, hours_per_day=4)
    )

    assert result.status == PlanStatus.PUSHED_FORWARD
    assert result.planned_start_date == TUESDAY
    assert result.planned_end_date == WEDNESDAY


@pytest.mark.asyncio
async def test_redrop_does_not_conflict_with_itself(planning_service, make_task, test_user_id):
    task = await make_task("Quick fix", estimated_hours=3)
    await planning_service.plan(_request(task, test_user_id, MONDAY))

    result = await planning_service.plan(_request(task, test_user_id, MONDAY))

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [(MONDAY, "09:00", "12:00")]


@pytest.mark.asyncio
async def test_user_outside_organization_is_rejected(
    planning_service, project_repo, task_repo, test_user_id
):
    project = await project_repo.create(ProjectCreate(name="Private", organization_id=uuid4()))
    task = await task_repo.create(TaskCreate(title="Secret", project_id=project.id, estimated_hours=2))

    with pytest.raises(NoAccessError):
        await planning_service.plan(_request(task, test_user_id, MONDAY))


@pytest.mark.asyncio
async def test_fully_logged_task_has_nothing_to_plan(
    planning_service, time_entry_repo, make_task, test_user_id
):
    task = await make_task("Done already", estimated_hours=2)
    await time_entry_repo.create(
        TimeEntryCreate(task_id=task.id, user_id=test_user_id, entry_date=date(2024, 3, 1), hours=2)
    )

    with pytest.raises(NoRemainingHoursError):
        await planning_service.plan(_request(task, test_user_id, MONDAY))


@pytest.mark.asyncio
async def test_task_without_estimate_has_nothing_to_plan(planning_service, make_task, test_user_id):
    task = await make_task("Unsized")

    with pytest.raises(NoRemainingHoursError):
        await planning_service.plan(_request(task, test_user_id, MONDAY))


@pytest.mark.asyncio
async def test_drop_on_non_working_day(planning_service, make_task, test_user_id):
    task = await make_task("Weekend", estimated_hours=2)

    with pytest.raises(NoCapacityError):
        await planning_service.plan(_request(task, test_user_id, SUNDAY))


@pytest.mark.asyncio
async def test_hobby_task_without_hobby_hours(planning_service, make_task, hobby_project, test_user_id):
    task = await make_task("Guitar", project_id=hobby_project.id, estimated_hours=1)

    with pytest.raises(NoCapacityError):
        await planning_service.plan(_request(task, test_user_id, MONDAY))


@pytest.mark.asyncio
async def test_parent_schedule_is_distributed(
    planning_service, task_repo, child_allocation_repo, make_task, test_user_id
):
    parent = await make_task("Feature")
    first = await make_task("Design", parent_id=parent.id, estimated_hours=3, order_in_parent=1)
    second = await make_task("Build", parent_id=parent.id, estimated_hours=1, order_in_parent=2)

    result = await planning_service.plan(_request(parent, test_user_id, MONDAY))

    assert result.status == PlanStatus.PLANNED
    assert result.remaining_hours == 4
    assert [(c.child_task_id, c.hours) for c in result.child_allocations] == [
        (first.id, 3.0),
        (second.id, 1.0),
    ]
    assert result.shortfalls == []
    stored = await child_allocation_repo.list_by_parent(parent.id)
    assert len(stored) == 2
    assert (await task_repo.get(second.id)).planned_start_date == MONDAY


@pytest.mark.asyncio
async def test_dependency_gate_blocks_early_start(planning_service, make_task, test_user_id):
    design = await make_task("Design", estimated_hours=10)
    await planning_service.plan(_request(design, test_user_id, MONDAY, hours_per_day=8))
    build = await make_task("Build", estimated_hours=2, depends_on_task_id=design.id)

    with pytest.raises(DependencyConstraintError) as exc_info:
        await planning_service.plan(_request(build, test_user_id, TUESDAY))

    assert exc_info.value.earliest_start == WEDNESDAY


@pytest.mark.asyncio
async def test_dependents_move_when_prerequisite_slips(
    planning_service, allocation_repo, task_repo, make_task, test_user_id
):
    design = await make_task("Design", estimated_hours=10)
    await planning_service.plan(_request(design, test_user_id, MONDAY, hours_per_day=8))
    build = await make_task("Build", estimated_hours=2, depends_on_task_id=design.id)
    await planning_service.plan(_request(build, test_user_id, WEDNESDAY))

    result = await planning_service.plan(
        _request(
            design,
            test_user_id,
            WEDNESDAY,
            hours_per_day=8,
            strategy=ConflictStrategy.PLAN_WHEN_AVAILABLE,
        )
    )

    assert result.planned_end_date == THURSDAY
    assert result.replanned_task_ids == [build.id]
    assert _spans(await allocation_repo.list_for_task(build.id)) == [(FRIDAY, "09:00", "11:00")]
    assert (await task_repo.get(build.id)).planned_start_date == FRIDAY


@pytest.mark.asyncio
async def test_partial_allocation_writes_nothing(
    task_repo,
    project_repo,
    calendar_repo,
    allocation_repo,
    child_allocation_repo,
    time_entry_repo,
    make_task,
    test_user_id,
):
    # A four-day window from Thursday only holds two working days
    service = PlanningService(
        task_repo=task_repo,
        project_repo=project_repo,
        calendar_repo=calendar_repo,
        allocation_repo=allocation_repo,
        child_allocation_repo=child_allocation_repo,
        time_entry_repo=time_entry_repo,
        settings=Settings(AVAILABILITY_WINDOW_MULTIPLIER=1.0, AVAILABILITY_MIN_WINDOW_DAYS=1),
    )
    task = await make_task("Big", estimated_hours=20)

    with pytest.raises(PartialAllocationError) as exc_info:
        await service.plan(_request(task, test_user_id, THURSDAY, hours_per_day=8))

    assert exc_info.value.hours_remaining == pytest.approx(4)
    assert await allocation_repo.list_for_task(task.id) == []


@pytest.mark.asyncio
async def test_distribution_failure_keeps_parent_schedule(
    task_repo,
    project_repo,
    calendar_repo,
    allocation_repo,
    child_allocation_repo,
    time_entry_repo,
    make_task,
    test_user_id,
):
    service = PlanningService(
        task_repo=task_repo,
        project_repo=project_repo,
        calendar_repo=calendar_repo,
        allocation_repo=allocation_repo,
        child_allocation_repo=child_allocation_repo,
        time_entry_repo=time_entry_repo,
        settings=Settings(CHILD_SHORTFALL_POLICY="error"),
    )
    parent = await make_task("Feature")
    # The phase claims more than its only leaf adds up to
    phase = await make_task("Phase", parent_id=parent.id, estimated_hours=5, order_in_parent=1)
    await make_task("Leaf", parent_id=phase.id, estimated_hours=2, order_in_parent=1)

    result = await service.plan(_request(parent, test_user_id, MONDAY))

    assert result.status == PlanStatus.DISTRIBUTION_FAILED
    assert result.message
    assert _spans(await allocation_repo.list_for_task(parent.id)) == [(MONDAY, "09:00", "11:00")]
    assert await child_allocation_repo.list_by_parent(parent.id) == []


@pytest.mark.asyncio
async def test_estimate_with_sub_minute_fraction_is_planned(
    planning_service, allocation_repo, make_task, test_user_id
):
    task = await make_task("Odd estimate", estimated_hours=3.00004)

    result = await planning_service.plan(_request(task, test_user_id, MONDAY))

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [(MONDAY, "09:00", "12:00")]
    assert all(row.hours > 0 for row in await allocation_repo.list_for_task(task.id))


@pytest.mark.asyncio
async def test_child_rows_follow_parent_lunch_break(planning_service, make_task, test_user_id):
    parent = await make_task("Feature")
    design = await make_task("Design", parent_id=parent.id, estimated_hours=5, order_in_parent=1)
    build = await make_task("Build", parent_id=parent.id, estimated_hours=3, order_in_parent=2)

    result = await planning_service.plan(_request(parent, test_user_id, MONDAY, hours_per_day=8))

    assert _spans(result.allocations) == [(MONDAY, "09:00", "12:00"), (MONDAY, "13:00", "18:00")]
    assert [
        (c.child_task_id, c.start_time, c.end_time, c.hours) for c in result.child_allocations
    ] == [
        (design.id, "09:00", "12:00", 3.0),
        (design.id, "13:00", "15:00", 2.0),
        (build.id, "15:00", "18:00", 3.0),
    ]


@pytest.mark.asyncio
async def test_hobby_hours_overlapping_lunch_stay_whole(
    planning_service, calendar_repo, allocation_repo, make_task, hobby_project, test_user_id
):
    days = [
        DayCapacity(
            work_hours=8 if 1 <= weekday <= 5 else 0,
            work_start="09:00",
            hobby_hours=2,
            hobby_start="11:00",
        )
        for weekday in range(7)
    ]
    await calendar_repo.upsert(test_user_id, UserCalendarUpdate(days=days))
    work = await make_task("Report", estimated_hours=3)
    await planning_service.plan(_request(work, test_user_id, MONDAY))
    hobby = await make_task("Guitar", project_id=hobby_project.id, estimated_hours=3)

    result = await planning_service.plan(_request(hobby, test_user_id, MONDAY, hours_per_day=2))

    assert result.status == PlanStatus.PLANNED
    assert _spans(result.allocations) == [
        (MONDAY, "11:00", "13:00"),
        (TUESDAY, "11:00", "12:00"),
    ]
    assert _spans(await allocation_repo.list_for_task(work.id)) == [(MONDAY, "09:00", "12:00")]


@pytest.mark.asyncio
async def test_push_forward_skips_hours_per_day_prompt(
    planning_service, allocation_repo, make_task, test_user_id
):
    busy = await make_task("Busy", estimated_hours=3)
    await planning_service.plan(_request(busy, test_user_id, MONDAY))
    task = await make_task("Report", estimated_hours=10)

    result = await planning_service.plan(
        _request(task, test_user_id, MONDAY, strategy=ConflictStrategy.PUSH_FORWARD)
    )

    assert result.status == PlanStatus.PUSHED_FORWARD
    assert _spans(result.allocations) == [
        (MONDAY, "09:00", "12:00"),
        (MONDAY, "13:00", "18:00"),
        (TUESDAY, "09:00", "11:00"),
    ]
    assert busy.id in result.replanned_task_ids
    assert (await allocation_repo.list_for_task(busy.id))[0].allocation_date == TUESDAY


@pytest.mark.asyncio
async def test_logged_leaf_time_does_not_prompt_for_parent(
    planning_service, time_entry_repo, make_task, test_user_id
):
    parent = await make_task("Feature")
    design = await make_task("Design", parent_id=parent.id, estimated_hours=2, order_in_parent=1)
    await make_task("Build", parent_id=parent.id, estimated_hours=2, order_in_parent=2)
    await time_entry_repo.create(
        TimeEntryCreate(task_id=design.id, user_id=test_user_id, entry_date=date(2024, 3, 1), hours=1)
    )

    result = await planning_service.plan(_request(parent, test_user_id, MONDAY))

    assert result.status == PlanStatus.PLANNED
    assert result.hours_worked == 1
    assert _spans(result.allocations) == [(MONDAY, "09:00", "12:00")]
