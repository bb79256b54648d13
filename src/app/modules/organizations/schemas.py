"""Pydantic schemas for organization operations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import (
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    MIN_SLUG_LENGTH,
    SLUG_PATTERN,
)
from app.modules.organizations.models import OrganizationType


class OrganizationCreate(BaseModel):
    """Schema for creating an organization."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    slug: str = Field(
        ...,
        min_length=MIN_SLUG_LENGTH,
        max_length=MAX_SLUG_LENGTH,
        pattern=SLUG_PATTERN,
        description="Lowercase letters, digits and hyphens",
    )
    type: OrganizationType = OrganizationType.CLIENT
    settings: dict[str, Any] = Field(default_factory=dict)


class OrganizationUpdate(BaseModel):
    """Schema for updating an organization."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    settings: dict[str, Any] | None = None


class OrganizationResponse(BaseModel):
    """Schema for organization responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    type: OrganizationType
    settings: dict[str, Any]
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime


class OrganizationStats(BaseModel):
    """Counts shown on an organization dashboard."""

    member_count: int
    project_count: int
    matrix_count: int
    active_task_count: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entries."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    user_id: UUID | None
    action: str
    resource_type: str
    resource_id: str | None
    changes: dict[str, Any] | None
    created_at: datetime

