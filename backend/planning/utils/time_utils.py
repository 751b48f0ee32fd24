"""
Clock and calendar helpers.

Time-of-day values are integer minutes since midnight inside the scheduler.
They are converted to and from "HH:MM" strings only at the model boundary.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator

from planning.models.calendar import WEEKDAY_NAMES

MINUTES_PER_DAY = 24 * 60


def now_utc() -> datetime:
    """Current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def parse_hhmm(value: str) -> int:
    """
    Parse an "HH:MM" string into minutes since midnight.

    Example:
        >>> parse_hhmm("13:30")
        810
    """
    hours, _, minutes = value.strip().partition(":")
    return int(hours) * 60 + int(minutes or 0)


def format_hhmm(minutes: float) -> str:
    """
    Format minutes since midnight as "HH:MM".

    Sub-minute remainders are rounded to the nearest minute. Values are kept
    inside a single day; 1440 renders as "24:00".

    Example:
        >>> format_hhmm(779.6)
        '13:00'
    """
    total = min(max(int(round(minutes)), 0), MINUTES_PER_DAY)
    return f"{total // 60:02d}:{total % 60:02d}"


def weekday_index(day: date) -> int:
    """Weekday index with Sunday=0 ... Saturday=6."""
    return (day.weekday() + 1) % 7


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[weekday_index(day)]


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
