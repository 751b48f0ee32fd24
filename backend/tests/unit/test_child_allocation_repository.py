"""
Unit tests for the child allocation repository.
"""

import pytest

from factories import MONDAY, TUESDAY
from planning.models.allocation import AllocationSlice, ChildAllocationCreate
from planning.models.enums import AllocationKind


def _row(parent, child, day, start, end, hours, level=1):
    return ChildAllocationCreate(
        parent_task_id=parent.id,
        child_task_id=child.id,
        allocation_date=day,
        hours=hours,
        level=level,
        start_time=start,
        end_time=end,
    )


@pytest.fixture
async def hierarchy(make_task):
    """Root -> Phase -> Step, plus a second leaf under Root."""
    root = await make_task("Root")
    phase = await make_task("Phase", parent_id=root.id, order_in_parent=1)
    step = await make_task("Step", parent_id=phase.id, estimated_hours=2, order_in_parent=1)
    leaf = await make_task("Leaf", parent_id=root.id, estimated_hours=1, order_in_parent=2)
    return root, phase, step, leaf


@pytest.mark.asyncio
async def test_create_batch_sets_child_planned_dates(child_allocation_repo, task_repo, hierarchy):
    root, phase, step, leaf = hierarchy

    saved = await child_allocation_repo.create_batch(
        [
            _row(root, phase, MONDAY, "09:00", "11:00", 2),
            _row(root, leaf, TUESDAY, "09:00", "10:00", 1),
        ]
    )

    assert len(saved) == 2
    assert (await task_repo.get(phase.id)).planned_start_date == MONDAY
    assert (await task_repo.get(leaf.id)).planned_end_date == TUESDAY


@pytest.mark.asyncio
async def test_create_batch_replaces_rows_of_same_parent(child_allocation_repo, hierarchy):
    root, phase, _, leaf = hierarchy
    await child_allocation_repo.create_batch([_row(root, phase, MONDAY, "09:00", "11:00", 2)])

    await child_allocation_repo.create_batch([_row(root, leaf, TUESDAY, "09:00", "10:00", 1)])

    rows = await child_allocation_repo.list_by_parent(root.id)
    assert [(r.child_task_id, r.child_task_title) for r in rows] == [(leaf.id, "Leaf")]


@pytest.mark.asyncio
async def test_create_empty_batch_is_noop(child_allocation_repo):
    assert await child_allocation_repo.create_batch([]) == []


@pytest.mark.asyncio
async def test_list_by_child_orders_by_date(child_allocation_repo, hierarchy):
    root, phase, _, _ = hierarchy
    await child_allocation_repo.create_batch(
        [
            _row(root, phase, TUESDAY, "09:00", "10:00", 1),
            _row(root, phase, MONDAY, "13:00", "14:00", 1),
        ]
    )

    rows = await child_allocation_repo.list_by_child(phase.id)

    assert [r.allocation_date for r in rows] == [MONDAY, TUESDAY]


@pytest.mark.asyncio
async def test_delete_by_parent_is_recursive(child_allocation_repo, task_repo, hierarchy):
    root, phase, step, _ = hierarchy
    await child_allocation_repo.create_batch([_row(root, phase, MONDAY, "09:00", "11:00", 2)])
    await child_allocation_repo.create_batch(
        [_row(phase, step, MONDAY, "09:00", "11:00", 2, level=2)]
    )

    deleted = await child_allocation_repo.delete_by_parent(root.id)

    assert deleted == 2
    assert await child_allocation_repo.list_by_child(step.id) == []
    step_task = await task_repo.get(step.id)
    assert step_task.planned_start_date is None


@pytest.mark.asyncio
async def test_list_for_user_date_follows_hierarchy(
    allocation_repo, child_allocation_repo, hierarchy, test_user_id
):
    root, phase, step, leaf = hierarchy
    await allocation_repo.replace_task_allocations(
        root.id,
        test_user_id,
        [AllocationSlice(allocation_date=MONDAY, hours=3, start_time="09:00", end_time="12:00")],
    )
    await child_allocation_repo.create_batch(
        [
            _row(root, phase, MONDAY, "09:00", "11:00", 2),
            _row(root, leaf, MONDAY, "11:00", "12:00", 1),
        ]
    )
    await child_allocation_repo.create_batch(
        [_row(phase, step, MONDAY, "09:00", "11:00", 2, level=2)]
    )

    rows = await child_allocation_repo.list_for_user_date(test_user_id, MONDAY)
    hobby_rows = await child_allocation_repo.list_for_user_date(
        test_user_id, MONDAY, kind=AllocationKind.HOBBY
    )

    assert [(r.child_task_title, r.level) for r in rows] == [
        ("Phase", 1),
        ("Step", 2),
        ("Leaf", 1),
    ]
    assert hobby_rows == []
