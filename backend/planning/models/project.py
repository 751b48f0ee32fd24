"""
Project model definitions.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from planning.models.enums import AllocationKind


class ProjectBase(BaseModel):
    """Base project fields."""

    name: str = Field(..., min_length=1, max_length=200)
    organization_id: Optional[UUID] = None
    is_hobby: bool = Field(False, description="Hobby projects draw from hobby capacity")


class ProjectCreate(ProjectBase):
    """Schema for creating a new project."""

    pass


class Project(ProjectBase):
    """Complete project schema."""

    id: UUID

    @property
    def kind(self) -> AllocationKind:
        return AllocationKind.HOBBY if self.is_hobby else AllocationKind.WORK

    class Config:
        from_attributes = True
