"""
Translation of planning errors into HTTP responses.
"""

from fastapi import HTTPException, status

from planning.core.exceptions import (
    AllocationError,
    AuthorizationError,
    DependencyConstraintError,
    DependencyNotPlannedError,
    NotFoundError,
    PlanningError,
    TaskHierarchyError,
    ValidationError,
)


def to_http_exception(error: PlanningError) -> HTTPException:
    """Map a planning error onto a status code and a structured detail."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, AuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, (DependencyNotPlannedError, DependencyConstraintError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (AllocationError, TaskHierarchyError)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST

    return HTTPException(
        status_code=code,
        detail={
            "error": type(error).__name__,
            "title": getattr(error, "title", None),
            "message": error.message,
            "details": error.details,
        },
    )
