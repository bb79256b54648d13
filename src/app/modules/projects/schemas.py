"""Pydantic schemas for project operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH


class ProjectCreate(BaseModel):
    """Schema for creating a project. The caller's membership becomes the owner."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    owner_id: UUID | None = None


class ProjectResponse(BaseModel):
    """Schema for project responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    description: str | None
    owner_id: UUID
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime
    matrix_count: int = 0


class ProjectStats(BaseModel):
    matrix_count: int
    task_count: int
    assignment_count: int
