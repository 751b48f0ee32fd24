"""
Availability calculation.

Works out, day by day, how much of a user's work or hobby window is still
free once existing allocations are taken into account.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional
from uuid import UUID

from planning.core.config import Settings, get_settings
from planning.core.logger import setup_logger
from planning.interfaces.allocation_repository import IAllocationRepository
from planning.models.allocation import AvailabilityDay, TaskAllocation
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind
from planning.utils.calendar_capacity import average_daily_hours, resolve_capacity
from planning.utils.time_utils import (
    format_hhmm,
    iter_days,
    parse_hhmm,
    weekday_index,
    weekday_name,
)

logger = setup_logger(__name__)


def compute_availability(
    calendar: UserCalendar,
    kind: AllocationKind,
    start: date,
    end: date,
    existing: Iterable[TaskAllocation],
) -> list[AvailabilityDay]:
    """
    Build the availability timeline for [start, end].

    ``existing`` must already be filtered to the kind and exclude the task
    being planned. Non-working days are left out.
    """
    by_date: dict[date, list[TaskAllocation]] = defaultdict(list)
    for allocation in existing:
        by_date[allocation.allocation_date].append(allocation)

    days: list[AvailabilityDay] = []
    for day in iter_days(start, end):
        window = resolve_capacity(calendar, weekday_index(day), kind)
        if not window.is_working:
            continue

        rows = by_date.get(day, [])
        allocated = sum(row.hours for row in rows)
        latest_end = max((parse_hhmm(row.end_time) for row in rows), default=None)

        available = max(0.0, window.max_hours - allocated)
        if latest_end is not None:
            available = min(available, window.remaining_minutes(latest_end) / 60)

        days.append(
            AvailabilityDay(
                date=day,
                weekday=weekday_name(day),
                kind=kind,
                max_hours=window.max_hours,
                allocated_hours=round(allocated, 4),
                available_hours=available,
                start_time=format_hhmm(window.start),
                latest_end_time=format_hhmm(latest_end) if latest_end is not None else None,
            )
        )
    return days


def availability_window_days(
    total_hours: float,
    calendar: UserCalendar,
    kind: AllocationKind,
    settings: Optional[Settings] = None,
) -> int:
    """
    Number of days to fetch so ``total_hours`` fit even under contention.

    The naive day count (hours / average daily hours) is multiplied, floored
    at the minimum span and capped at the maximum span.
    """
    settings = settings or get_settings()
    average = max(average_daily_hours(calendar, kind), settings.MIN_AVERAGE_DAILY_HOURS)
    naive_days = math.ceil(total_hours / average)
    window = max(
        math.ceil(naive_days * settings.AVAILABILITY_WINDOW_MULTIPLIER),
        settings.AVAILABILITY_MIN_WINDOW_DAYS,
    )
    return min(window, settings.AVAILABILITY_MAX_WINDOW_DAYS)


class AvailabilityService:
    """Reads allocations and turns them into an availability timeline."""

    def __init__(
        self,
        allocation_repo: IAllocationRepository,
        settings: Optional[Settings] = None,
    ):
        self._allocation_repo = allocation_repo
        self._settings = settings or get_settings()

    async def get_availability(
        self,
        user_id: str,
        calendar: UserCalendar,
        start: date,
        end: date,
        kind: AllocationKind,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[AvailabilityDay]:
        existing = await self._allocation_repo.get_allocations_for_range(
            user_id, start, end, kind=kind, exclude_task_id=exclude_task_id
        )
        return compute_availability(calendar, kind, start, end, existing)

    async def get_availability_for_hours(
        self,
        user_id: str,
        calendar: UserCalendar,
        start: date,
        total_hours: float,
        kind: AllocationKind,
        exclude_task_id: Optional[UUID] = None,
    ) -> list[AvailabilityDay]:
        """Availability over a window sized for ``total_hours``."""
        window_days = availability_window_days(total_hours, calendar, kind, self._settings)
        end = start + timedelta(days=window_days - 1)
        logger.debug(
            f"Fetching availability for {user_id} ({kind.value}) "
            f"{start} to {end} for {total_hours:.2f}h"
        )
        return await self.get_availability(
            user_id, calendar, start, end, kind, exclude_task_id=exclude_task_id
        )
