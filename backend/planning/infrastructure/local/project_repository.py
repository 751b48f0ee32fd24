"""
SQLite implementation of Project repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from planning.interfaces.project_repository import IProjectRepository
from planning.models.project import Project, ProjectCreate
from planning.infrastructure.local.database import (
    OrganizationMemberORM,
    ProjectORM,
    get_session_factory,
)


class SqliteProjectRepository(IProjectRepository):
    """SQLite implementation of project repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ProjectORM) -> Project:
        return Project(
            id=UUID(orm.id),
            name=orm.name,
            organization_id=UUID(orm.organization_id) if orm.organization_id else None,
            is_hobby=bool(orm.is_hobby),
        )

    async def create(self, project: ProjectCreate) -> Project:
        async with self._session_factory() as session:
            orm = ProjectORM(
                id=str(uuid4()),
                name=project.name,
                organization_id=str(project.organization_id) if project.organization_id else None,
                is_hobby=project.is_hobby,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, project_id: UUID) -> Optional[Project]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProjectORM).where(ProjectORM.id == str(project_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def add_member(self, organization_id: UUID, user_id: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(OrganizationMemberORM).where(
                    and_(
                        OrganizationMemberORM.organization_id == str(organization_id),
                        OrganizationMemberORM.user_id == user_id,
                    )
                )
            )
            if result.scalar_one_or_none():
                return
            session.add(
                OrganizationMemberORM(
                    id=str(uuid4()),
                    organization_id=str(organization_id),
                    user_id=user_id,
                )
            )
            await session.commit()

    async def user_has_access(self, user_id: str, project_id: UUID) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ProjectORM).where(ProjectORM.id == str(project_id))
            )
            project = result.scalar_one_or_none()
            if project is None:
                return False
            # Projects outside any organization are open to everyone
            if not project.organization_id:
                return True
            result = await session.execute(
                select(OrganizationMemberORM.id).where(
                    and_(
                        OrganizationMemberORM.organization_id == project.organization_id,
                        OrganizationMemberORM.user_id == user_id,
                    )
                )
            )
            return result.first() is not None
