"""
User calendar API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter

from planning.api.deps import CalendarRepo, CurrentUser
from planning.models.calendar import UserCalendar, UserCalendarUpdate

router = APIRouter()


@router.get("/{user_id}/calendar", response_model=UserCalendar)
async def get_calendar(
    user_id: str,
    user: CurrentUser,
    repo: CalendarRepo,
):
    return await repo.get(user_id)


@router.put("/{user_id}/calendar", response_model=UserCalendar)
async def update_calendar(
    user_id: str,
    payload: UserCalendarUpdate,
    user: CurrentUser,
    repo: CalendarRepo,
):
    return await repo.upsert(user_id, payload)
