"""
Task model definitions.

Only the fields the scheduler reads or writes are modelled here; task CRUD
belongs to the surrounding platform.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class TaskBase(BaseModel):
    """Base task fields shared across create/read."""

    title: str = Field(..., min_length=1, max_length=500)
    project_id: UUID
    estimated_hours: Optional[float] = Field(None, ge=0, description="Estimated effort in hours")
    parent_id: Optional[UUID] = Field(None, description="Parent task ID (for subtasks)")
    depends_on_task_id: Optional[UUID] = Field(
        None, description="Task that must finish before this one starts"
    )
    order_in_parent: Optional[int] = Field(
        None, ge=1, description="1-based order among siblings"
    )


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    assigned_to: Optional[str] = None


class Task(TaskBase):
    """Complete task schema."""

    id: UUID
    assigned_to: Optional[str] = None
    # Written only by allocation writes
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None

    class Config:
        from_attributes = True
