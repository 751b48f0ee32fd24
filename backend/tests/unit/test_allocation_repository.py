"""
Unit tests for the allocation repository.
"""

from uuid import uuid4

import pytest

from factories import MONDAY, TUESDAY, weekday_calendar
from planning.core.exceptions import NotFoundError
from planning.models.allocation import AllocationSlice, ChildAllocationCreate
from planning.models.enums import AllocationKind


def _slice(day, start, end, hours):
    return AllocationSlice(allocation_date=day, hours=hours, start_time=start, end_time=end)


@pytest.mark.asyncio
async def test_replace_sets_planned_dates(allocation_repo, task_repo, make_task, test_user_id):
    """Test writing allocations updates the task's planned range."""
    task = await make_task("Report", estimated_hours=10)

    saved = await allocation_repo.replace_task_allocations(
        task.id,
        test_user_id,
        [
            _slice(MONDAY, "09:00", "12:00", 3),
            _slice(MONDAY, "13:00", "18:00", 5),
            _slice(TUESDAY, "09:00", "11:00", 2),
        ],
    )

    assert len(saved) == 3
    refreshed = await task_repo.get(task.id)
    assert refreshed.planned_start_date == MONDAY
    assert refreshed.planned_end_date == TUESDAY
    assert refreshed.assigned_to == test_user_id


@pytest.mark.asyncio
async def test_replace_overwrites_previous_rows(allocation_repo, make_task, test_user_id):
    task = await make_task("Report", estimated_hours=2)
    await allocation_repo.replace_task_allocations(
        task.id, test_user_id, [_slice(MONDAY, "09:00", "11:00", 2)]
    )

    await allocation_repo.replace_task_allocations(
        task.id, test_user_id, [_slice(TUESDAY, "13:00", "15:00", 2)]
    )

    rows = await allocation_repo.list_for_task(task.id)
    assert [(r.allocation_date, r.start_time) for r in rows] == [(TUESDAY, "13:00")]
    assert rows[0].task_title == "Report"
    assert rows[0].kind == AllocationKind.WORK


@pytest.mark.asyncio
async def test_replace_unknown_task_raises(allocation_repo, test_user_id):
    with pytest.raises(NotFoundError):
        await allocation_repo.replace_task_allocations(
            uuid4(), test_user_id, [_slice(MONDAY, "09:00", "11:00", 2)]
        )


@pytest.mark.asyncio
async def test_range_filters_by_kind_and_excluded_task(
    allocation_repo, task_repo, make_task, hobby_project, test_user_id
):
    work = await make_task("Work")
    other_work = await make_task("Other work")
    hobby = await make_task("Guitar", project_id=hobby_project.id)
    await allocation_repo.replace_task_allocations(
        work.id, test_user_id, [_slice(MONDAY, "09:00", "11:00", 2)]
    )
    await allocation_repo.replace_task_allocations(
        other_work.id, test_user_id, [_slice(MONDAY, "11:00", "12:00", 1)]
    )
    await allocation_repo.replace_task_allocations(
        hobby.id, test_user_id, [_slice(MONDAY, "19:00", "20:00", 1)]
    )

    work_rows = await allocation_repo.get_allocations_for_range(
        test_user_id, MONDAY, TUESDAY, kind=AllocationKind.WORK, exclude_task_id=work.id
    )
    hobby_rows = await allocation_repo.get_allocations_for_day(
        test_user_id, MONDAY, kind=AllocationKind.HOBBY
    )
    all_rows = await allocation_repo.get_allocations_for_range(test_user_id, MONDAY, MONDAY)

    assert [r.task_id for r in work_rows] == [other_work.id]
    assert [r.task_id for r in hobby_rows] == [hobby.id]
    assert hobby_rows[0].kind == AllocationKind.HOBBY
    assert len(all_rows) == 3


@pytest.mark.asyncio
async def test_delete_task_allocations_clears_subtree(
    allocation_repo, child_allocation_repo, task_repo, make_task, test_user_id
):
    parent = await make_task("Parent")
    child = await make_task("Child", parent_id=parent.id, estimated_hours=2, order_in_parent=1)
    await allocation_repo.replace_task_allocations(
        parent.id, test_user_id, [_slice(MONDAY, "09:00", "11:00", 2)]
    )
    await child_allocation_repo.create_batch(
        [
            ChildAllocationCreate(
                parent_task_id=parent.id,
                child_task_id=child.id,
                allocation_date=MONDAY,
                hours=2,
                start_time="09:00",
                end_time="11:00",
            )
        ]
    )

    deleted = await allocation_repo.delete_task_allocations(parent.id)

    assert deleted == 1
    assert await allocation_repo.list_for_task(parent.id) == []
    assert await child_allocation_repo.list_by_parent(parent.id) == []
    for task_id in (parent.id, child.id):
        task = await task_repo.get(task_id)
        assert task.planned_start_date is None
        assert task.planned_end_date is None


@pytest.mark.asyncio
async def test_delete_day_recomputes_planned_range(
    allocation_repo, task_repo, make_task, test_user_id
):
    task = await make_task("Report")
    await allocation_repo.replace_task_allocations(
        task.id,
        test_user_id,
        [_slice(MONDAY, "09:00", "17:00", 7), _slice(TUESDAY, "09:00", "11:00", 2)],
    )

    deleted = await allocation_repo.delete_allocation_day(task.id, test_user_id, TUESDAY)

    assert deleted == 1
    refreshed = await task_repo.get(task.id)
    assert refreshed.planned_start_date == MONDAY
    assert refreshed.planned_end_date == MONDAY


@pytest.mark.asyncio
async def test_push_forward_reslots_existing_tasks(
    allocation_repo, task_repo, make_task, hobby_project, test_user_id
):
    """Test the new task takes the morning and the old one moves later."""
    existing = await make_task("Existing")
    hobby = await make_task("Guitar", project_id=hobby_project.id)
    new = await make_task("Urgent")
    await allocation_repo.replace_task_allocations(
        existing.id,
        test_user_id,
        [_slice(MONDAY, "09:00", "12:00", 3), _slice(MONDAY, "13:00", "15:00", 2)],
    )
    await allocation_repo.replace_task_allocations(
        hobby.id, test_user_id, [_slice(MONDAY, "19:00", "20:00", 1)]
    )

    result = await allocation_repo.push_forward(
        new.id, test_user_id, MONDAY, 4, weekday_calendar(), AllocationKind.WORK
    )

    assert result.affected_task_ids == [existing.id]
    assert [(a.allocation_date, a.start_time, a.end_time) for a in result.allocations] == [
        (MONDAY, "09:00", "12:00"),
        (MONDAY, "13:00", "14:00"),
    ]
    moved = await allocation_repo.list_for_task(existing.id)
    assert [(r.allocation_date, r.start_time, r.end_time) for r in moved] == [
        (MONDAY, "14:00", "18:00"),
        (TUESDAY, "09:00", "10:00"),
    ]
    assert (await task_repo.get(existing.id)).planned_end_date == TUESDAY
    assert len(await allocation_repo.list_for_task(hobby.id)) == 1


@pytest.mark.asyncio
async def test_push_forward_keeps_rows_before_the_date(
    allocation_repo, make_task, test_user_id
):
    existing = await make_task("Existing")
    new = await make_task("Urgent")
    await allocation_repo.replace_task_allocations(
        existing.id,
        test_user_id,
        [_slice(MONDAY, "09:00", "17:00", 7), _slice(TUESDAY, "09:00", "11:00", 2)],
    )

    await allocation_repo.push_forward(
        new.id, test_user_id, TUESDAY, 2, weekday_calendar(), AllocationKind.WORK, hours_per_day=2
    )

    moved = await allocation_repo.list_for_task(existing.id)
    assert [(r.allocation_date, r.start_time, r.hours) for r in moved] == [
        (MONDAY, "09:00", 7),
        (TUESDAY, "11:00", 1),
        (TUESDAY, "13:00", 1),
    ]
    new_rows = await allocation_repo.list_for_task(new.id)
    assert [(r.start_time, r.end_time) for r in new_rows] == [("09:00", "11:00")]
