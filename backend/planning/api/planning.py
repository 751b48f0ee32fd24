"""
Planning API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter

from planning.api.deps import CurrentUser, PlanningSvc
from planning.api.errors import to_http_exception
from planning.core.exceptions import PlanningError
from planning.models.allocation import PlanRequest, PlanResult

router = APIRouter()


@router.post("/drop", response_model=PlanResult)
async def drop_task(
    payload: PlanRequest,
    user: CurrentUser,
    service: PlanningSvc,
):
    """
    Plan a task from a drop onto a calendar day.

    Returns CONFLICT or NEEDS_HOURS_PER_DAY when the caller has to choose a
    strategy or a per-day cap; resubmit with the choice filled in.
    """
    try:
        return await service.plan(payload)
    except PlanningError as e:
        raise to_http_exception(e)
