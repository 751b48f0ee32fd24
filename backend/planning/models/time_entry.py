"""
Time entry models.

Logged effort is owned by the timesheet module; the scheduler only reads the
per-task sum.
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field


class TimeEntryCreate(BaseModel):
    task_id: UUID
    user_id: str
    entry_date: date
    hours: float = Field(..., gt=0)


class TimeEntry(TimeEntryCreate):
    id: UUID
