"""
Calendar capacity resolution.

Turns a user's weekly calendar into the working window for a given weekday
and kind of work. Lunch only applies to work capacity.
"""

from planning.models.calendar import UserCalendar
from planning.models.enums import AllocationKind
from planning.utils.day_window import DayWindow
from planning.utils.time_utils import parse_hhmm


def resolve_capacity(calendar: UserCalendar, weekday: int, kind: AllocationKind) -> DayWindow:
    """
    Resolve the day window for a weekday (Sunday=0).

    A window with ``max_minutes == 0`` is a non-working day.
    """
    day = calendar.day(weekday)
    if kind == AllocationKind.HOBBY:
        return DayWindow.build(parse_hhmm(day.hobby_start), day.hobby_hours)
    return DayWindow.build(
        parse_hhmm(day.work_start),
        day.work_hours,
        lunch_start=parse_hhmm(calendar.lunch_start),
        lunch_duration=calendar.lunch_duration_minutes,
    )


def max_daily_hours(calendar: UserCalendar, kind: AllocationKind) -> float:
    """Largest single-day capacity of the given kind."""
    return max(resolve_capacity(calendar, weekday, kind).max_hours for weekday in range(7))


def average_daily_hours(calendar: UserCalendar, kind: AllocationKind) -> float:
    """Weekly capacity of the given kind spread over seven days."""
    return sum(resolve_capacity(calendar, weekday, kind).max_hours for weekday in range(7)) / 7
