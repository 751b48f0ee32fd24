"""Abstract interfaces for infrastructure abstraction."""

from planning.interfaces.allocation_repository import IAllocationRepository
from planning.interfaces.auth_provider import IAuthProvider
from planning.interfaces.calendar_repository import IUserCalendarRepository
from planning.interfaces.child_allocation_repository import IChildAllocationRepository
from planning.interfaces.project_repository import IProjectRepository
from planning.interfaces.task_repository import ITaskRepository
from planning.interfaces.time_entry_repository import ITimeEntryRepository

__all__ = [
    "IAllocationRepository",
    "IAuthProvider",
    "IChildAllocationRepository",
    "IProjectRepository",
    "ITaskRepository",
    "ITimeEntryRepository",
    "IUserCalendarRepository",
]
