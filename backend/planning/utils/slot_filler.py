"""
Sequential slot filling.

Packs tasks one after another into a user's calendar, starting each day at
the next free clock time for that day. Used when a day's schedule is rebuilt
from scratch, so existing rows are not consulted.
"""

from datetime import date, timedelta
from typing import Optional

from planning.core.exceptions import AllocationLimitError
from planning.models.allocation import AllocationSlice
from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind
from planning.utils.calendar_capacity import resolve_capacity
from planning.utils.day_window import MIN_WORK_HOURS
from planning.utils.time_utils import format_hhmm, weekday_index


class SlotFiller:
    """Tracks the next free minute per date for one kind of capacity."""

    def __init__(self, calendar: UserCalendar, kind: AllocationKind, max_days: int):
        self._calendar = calendar
        self._kind = kind
        self._max_days = max_days
        self._slots: dict[date, float] = {}

    def fill(
        self,
        hours: float,
        from_date: date,
        per_day_cap: Optional[float] = None,
    ) -> list[AllocationSlice]:
        """
        Place ``hours`` from ``from_date`` onwards.

        Raises:
            AllocationLimitError: If more than ``max_days`` days are walked
        """
        slices: list[AllocationSlice] = []
        remaining = hours
        current = from_date
        days_walked = 0

        while remaining >= MIN_WORK_HOURS:
            days_walked += 1
            if days_walked > self._max_days:
                raise AllocationLimitError(
                    f"Could not place {remaining:.2f}h within {self._max_days} days",
                    days_processed=days_walked - 1,
                )

            window = resolve_capacity(self._calendar, weekday_index(current), self._kind)
            if not window.is_working:
                current += timedelta(days=1)
                continue

            slot = window.skip_lunch(self._slots.get(current, window.start))
            available = window.remaining_minutes(slot) / 60
            if per_day_cap is not None:
                available = min(available, min(per_day_cap, window.max_hours))
            if available < MIN_WORK_HOURS:
                current += timedelta(days=1)
                continue

            take = min(remaining, available)
            segments = window.place(slot, take)
            for segment in segments:
                slices.append(
                    AllocationSlice(
                        allocation_date=current,
                        hours=round(segment.hours, 4),
                        start_time=format_hhmm(segment.start),
                        end_time=format_hhmm(segment.end),
                    )
                )
            if segments:
                self._slots[current] = window.skip_lunch(segments[-1].end)
            remaining -= take
            current += timedelta(days=1)

        return slices
