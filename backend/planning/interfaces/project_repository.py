"""
Project repository interface.

Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from planning.models.project import Project, ProjectCreate


class IProjectRepository(ABC):
    """Abstract interface for project reads and organization access checks."""

    @abstractmethod
    async def create(self, project: ProjectCreate) -> Project:
        """Create a new project (used for seeding and tests)."""
        pass

    @abstractmethod
    async def get(self, project_id: UUID) -> Optional[Project]:
        """Get a project by ID."""
        pass

    @abstractmethod
    async def add_member(self, organization_id: UUID, user_id: str) -> None:
        """Grant a user membership of an organization."""
        pass

    @abstractmethod
    async def user_has_access(self, user_id: str, project_id: UUID) -> bool:
        """
        Check organizational access to a project.

        Args:
            user_id: User to check
            project_id: Project ID

        Returns:
            True when the user belongs to the project's organization
        """
        pass
