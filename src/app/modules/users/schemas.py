"""Pydantic schemas for user operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from app.core.permissions.roles import AccessLevel


class UserResponse(BaseModel):
    """Schema for user responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str | None
    created_at: datetime


class CurrentUserResponse(UserResponse):
    """The caller's profile plus any consultancy grant they hold."""

    is_consultancy: bool = False
    can_access_all_orgs: bool = False
    access_level: AccessLevel | None = None
