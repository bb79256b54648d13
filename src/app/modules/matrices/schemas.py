"""Pydantic schemas for matrix and task group operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_COLOR_LENGTH, MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from app.modules.assignments.schemas import AssignmentResponse, ValidationSummaryResponse
from app.modules.members.schemas import MemberResponse
from app.modules.tasks.schemas import TaskResponse


class MatrixCreate(BaseModel):
    """Schema for creating a matrix. New matrices start at version 1."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class MatrixUpdate(BaseModel):
    """Schema for updating a matrix. Every update bumps the version."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class MatrixDuplicate(BaseModel):
    new_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class MatrixResponse(BaseModel):
    """Schema for matrix responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    name: str
    description: str | None
    version: int
    archived_at: datetime | None
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime
    task_count: int = 0
    assignment_count: int = 0


class TaskGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    color: str | None = Field(None, max_length=MAX_COLOR_LENGTH)


class TaskGroupResponse(BaseModel):
    """Schema for task group responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    matrix_id: UUID
    name: str
    description: str | None
    color: str | None
    created_at: datetime
    task_count: int = 0


class MatrixGrid(BaseModel):
    """Everything needed to render one matrix grid in a single read."""

    matrix: MatrixResponse
    tasks: list[TaskResponse]
    members: list[MemberResponse]
    assignments: list[AssignmentResponse]
    task_groups: list[TaskGroupResponse]
    validation: ValidationSummaryResponse
