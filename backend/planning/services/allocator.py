"""
Single-task allocator.

Greedily slices a task's remaining hours over an availability timeline,
one day at a time, splitting work slices around lunch.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from planning.core.config import Settings, get_settings
from planning.core.exceptions import AllocationLimitError, PartialAllocationError
from planning.core.logger import setup_logger
from planning.models.allocation import AllocationPlan, AllocationSlice, AvailabilityDay
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind
from planning.utils.calendar_capacity import resolve_capacity
from planning.utils.day_window import MIN_WORK_HOURS
from planning.utils.time_utils import format_hhmm, parse_hhmm, weekday_index

logger = setup_logger(__name__)


class SingleTaskAllocator:
    """Turns remaining hours plus availability into allocation slices."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    def allocate(
        self,
        remaining_hours: float,
        availability: list[AvailabilityDay],
        calendar: UserCalendar,
        kind: AllocationKind,
        start_date: date,
        per_day_cap: Optional[float] = None,
    ) -> AllocationPlan:
        """
        Slice ``remaining_hours`` across the availability timeline.

        Args:
            remaining_hours: Estimate minus hours already worked
            availability: Timeline from the availability calculator
            calendar: The user's weekly calendar
            kind: Work or hobby capacity
            start_date: First date that may receive hours
            per_day_cap: Negotiated hours per day; clamped to each day's max

        Returns:
            Plan with slices ordered by date and clock time

        Raises:
            AllocationLimitError: If the walk exceeds the days-processed cap
            PartialAllocationError: If availability runs out first
        """
        max_days = self._settings.MAX_DAYS_TO_PROCESS
        remaining = remaining_hours
        slices: list[AllocationSlice] = []
        total_available = 0.0
        days_processed = 0

        for day in sorted(availability, key=lambda item: item.date):
            if remaining < MIN_WORK_HOURS:
                break
            if day.date < start_date:
                continue

            days_processed += 1
            if days_processed > max_days:
                raise AllocationLimitError(
                    f"Exceeded {max_days} days while allocating; "
                    f"{remaining:.2f}h still unplaced",
                    days_processed=days_processed - 1,
                )

            total_available += day.available_hours
            if day.available_hours < MIN_WORK_HOURS:
                continue

            window = resolve_capacity(calendar, weekday_index(day.date), kind)
            if not window.is_working:
                continue

            start = float(window.start)
            if day.latest_end_time is not None:
                start = max(start, float(parse_hhmm(day.latest_end_time)))
            start = window.skip_lunch(start)

            day_max = window.max_hours
            cap = day_max if per_day_cap is None else min(per_day_cap, day_max)
            hours = min(
                remaining,
                day.available_hours,
                cap,
                day_max,
                window.remaining_minutes(start) / 60,
            )
            if hours < MIN_WORK_HOURS:
                continue

            for segment in window.place(start, hours):
                slices.append(
                    AllocationSlice(
                        allocation_date=day.date,
                        hours=round(segment.hours, 4),
                        start_time=format_hhmm(segment.start),
                        end_time=format_hhmm(segment.end),
                    )
                )
            remaining -= hours

        if remaining >= MIN_WORK_HOURS:
            logger.error(
                f"Partial allocation: {remaining:.2f}h of {remaining_hours:.2f}h unplaced, "
                f"{total_available:.2f}h available from {start_date}"
            )
            raise PartialAllocationError(
                f"Only {remaining_hours - remaining:.2f}h of {remaining_hours:.2f}h "
                f"could be placed",
                hours_remaining=remaining,
                total_available_hours=total_available,
            )

        dates = [item.allocation_date for item in slices]
        return AllocationPlan(
            slices=slices,
            total_hours=round(sum(item.hours for item in slices), 4),
            planned_start_date=min(dates) if dates else None,
            planned_end_date=max(dates) if dates else None,
        )
