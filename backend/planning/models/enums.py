"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class AllocationKind(str, Enum):
    """
    Capacity bucket a task draws from.

    Derived from the owning project's hobby flag. Work and hobby hours never
    compete for the same slots.
    """

    WORK = "WORK"
    HOBBY = "HOBBY"


class ConflictStrategy(str, Enum):
    """How to resolve a drop onto a day that already has allocations."""

    PUSH_FORWARD = "PUSH_FORWARD"
    PLAN_WHEN_AVAILABLE = "PLAN_WHEN_AVAILABLE"


class PlanStatus(str, Enum):
    """Outcome of a planning request."""

    PLANNED = "PLANNED"
    PUSHED_FORWARD = "PUSHED_FORWARD"
    CONFLICT = "CONFLICT"
    NEEDS_HOURS_PER_DAY = "NEEDS_HOURS_PER_DAY"
    DISTRIBUTION_FAILED = "DISTRIBUTION_FAILED"
