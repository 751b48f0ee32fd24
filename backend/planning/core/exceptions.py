"""
Custom exceptions for the application.

The allocation errors mirror what the planning view reports to the user.
Each one carries enough detail to retry with adjusted inputs.
"""

from datetime import date
from typing import Any, Optional


class PlanningError(Exception):
    """Base exception for the planning backend."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PlanningError):
    """Resource not found."""

    pass


class ValidationError(PlanningError):
    """Validation error."""

    pass


class AuthenticationError(PlanningError):
    """Authentication failed."""

    pass


class AuthorizationError(PlanningError):
    """Authorization failed."""

    pass


class ForbiddenError(AuthorizationError):
    """Forbidden operation (authorization denied)."""

    pass


class BusinessLogicError(PlanningError):
    """Business logic constraint violation."""

    pass


# ===========================================
# Allocation errors
# ===========================================


class AllocationError(BusinessLogicError):
    """Base class for failures detected before an allocation is written."""

    title = "Allocation Error"


class NoAccessError(ForbiddenError):
    """Target user has no organizational access to the task's project."""

    title = "No Access"


class NoCapacityError(AllocationError):
    """The target day (or the whole calendar) has no hours for the task's kind."""

    title = "No Capacity"


class DependencyNotPlannedError(AllocationError):
    """The prerequisite task has no planned end date yet."""

    title = "Dependency Not Planned"

    def __init__(self, message: str, dependency_task_id: Any, dependency_title: str):
        super().__init__(
            message,
            details={
                "dependency_task_id": str(dependency_task_id),
                "dependency_title": dependency_title,
            },
        )
        self.dependency_task_id = dependency_task_id
        self.dependency_title = dependency_title


class DependencyConstraintError(AllocationError):
    """The proposed start is not strictly after the prerequisite's planned end."""

    title = "Dependency Constraint"

    def __init__(
        self,
        message: str,
        dependency_task_id: Any,
        dependency_end: date,
        earliest_start: date,
    ):
        super().__init__(
            message,
            details={
                "dependency_task_id": str(dependency_task_id),
                "dependency_end": dependency_end.isoformat(),
                "earliest_start": earliest_start.isoformat(),
            },
        )
        self.dependency_task_id = dependency_task_id
        self.dependency_end = dependency_end
        self.earliest_start = earliest_start


class NoRemainingHoursError(AllocationError):
    """Estimated hours are already covered by logged time."""

    title = "No Remaining Hours"

    def __init__(self, message: str, estimated_hours: float, hours_worked: float):
        super().__init__(
            message,
            details={"estimated_hours": estimated_hours, "hours_worked": hours_worked},
        )
        self.estimated_hours = estimated_hours
        self.hours_worked = hours_worked


class PartialAllocationError(AllocationError):
    """Availability ran out before the remaining hours were placed."""

    title = "Partial Allocation"

    def __init__(self, message: str, hours_remaining: float, total_available_hours: float):
        super().__init__(
            message,
            details={
                "hours_remaining": round(hours_remaining, 2),
                "total_available_hours": round(total_available_hours, 2),
            },
        )
        self.hours_remaining = hours_remaining
        self.total_available_hours = total_available_hours


class AllocationLimitError(AllocationError):
    """The day walk exceeded its hard cap."""

    title = "Allocation Error"

    def __init__(self, message: str, days_processed: int):
        super().__init__(message, details={"days_processed": days_processed})
        self.days_processed = days_processed


class TaskHierarchyError(BusinessLogicError):
    """The parent links of a task tree form a cycle."""

    def __init__(self, message: str, task_id: Any):
        super().__init__(message, details={"task_id": str(task_id)})
        self.task_id = task_id


class DistributionError(PlanningError):
    """Child distribution failed after the parent schedule was written."""

    pass
