"""
Per-user weekly capacity calendar.

Days are indexed Sunday=0 ... Saturday=6. Clock times are "HH:MM" strings at
this boundary and converted to minutes by the scheduler.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
# End times may reach midnight
END_TIME_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"

WEEKDAY_NAMES = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]

DEFAULT_WORK_START = "09:00"
DEFAULT_HOBBY_START = "19:00"
DEFAULT_LUNCH_START = "12:00"
DEFAULT_LUNCH_DURATION_MINUTES = 60
DEFAULT_WORK_HOURS = 8.0


class DayCapacity(BaseModel):
    """Hours a user can give one weekday, per kind."""

    work_hours: float = Field(0.0, ge=0, le=24)
    work_start: str = Field(DEFAULT_WORK_START, pattern=HHMM_PATTERN)
    hobby_hours: float = Field(0.0, ge=0, le=24)
    hobby_start: str = Field(DEFAULT_HOBBY_START, pattern=HHMM_PATTERN)


def default_weekly_capacity(
    work_start: str = DEFAULT_WORK_START,
    hobby_start: str = DEFAULT_HOBBY_START,
) -> list[DayCapacity]:
    """Monday to Friday at full working hours, weekends off."""
    return [
        DayCapacity(
            work_hours=DEFAULT_WORK_HOURS if 1 <= weekday <= 5 else 0.0,
            work_start=work_start,
            hobby_hours=0.0,
            hobby_start=hobby_start,
        )
        for weekday in range(7)
    ]


def _check_week(days: list[DayCapacity]) -> list[DayCapacity]:
    if len(days) != 7:
        raise ValueError("A calendar needs exactly 7 days (Sunday first)")
    return days


class UserCalendar(BaseModel):
    user_id: str
    days: list[DayCapacity] = Field(default_factory=default_weekly_capacity)
    lunch_start: str = Field(DEFAULT_LUNCH_START, pattern=HHMM_PATTERN)
    lunch_duration_minutes: int = Field(DEFAULT_LUNCH_DURATION_MINUTES, ge=0, le=240)
    updated_at: Optional[datetime] = None

    @field_validator("days")
    @classmethod
    def validate_days(cls, days: list[DayCapacity]) -> list[DayCapacity]:
        return _check_week(days)

    def day(self, weekday: int) -> DayCapacity:
        return self.days[weekday]


class UserCalendarUpdate(BaseModel):
    days: Optional[list[DayCapacity]] = None
    lunch_start: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    lunch_duration_minutes: Optional[int] = Field(None, ge=0, le=240)

    @field_validator("days")
    @classmethod
    def validate_days(cls, days: Optional[list[DayCapacity]]) -> Optional[list[DayCapacity]]:
        if days is None:
            return days
        return _check_week(days)
