"""Pydantic schemas for assignments and RACI validation results."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_BULK_ITEMS, MAX_NOTES_LENGTH, MAX_WORKLOAD, MIN_WORKLOAD
from app.modules.assignments.models import RaciRole
from app.modules.assignments.validation import RaciRuleCode


class AssignmentCreate(BaseModel):
    """Schema for assigning a member a RACI role on a task."""

    task_id: UUID
    member_id: UUID
    raci_role: RaciRole
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)
    workload: int | None = Field(None, ge=MIN_WORKLOAD, le=MAX_WORKLOAD)


class AssignmentUpdate(BaseModel):
    """Schema for updating an assignment. The role is re-validated when it changes."""

    raci_role: RaciRole | None = None
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)
    workload: int | None = Field(None, ge=MIN_WORKLOAD, le=MAX_WORKLOAD)


class BulkAssignmentCreate(BaseModel):
    assignments: list[AssignmentCreate] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


class AssignmentResponse(BaseModel):
    """Schema for assignment responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    matrix_id: UUID
    task_id: UUID
    member_id: UUID
    raci_role: RaciRole
    notes: str | None
    workload: int | None
    assigned_by: UUID | None
    assigned_at: datetime
    created_at: datetime
    updated_at: datetime


class RoleBreakdown(BaseModel):
    RESPONSIBLE: int = 0
    ACCOUNTABLE: int = 0
    CONSULTED: int = 0
    INFORMED: int = 0


class PriorityBreakdown(BaseModel):
    CRITICAL: int = 0
    HIGH: int = 0
    MEDIUM: int = 0
    LOW: int = 0


class MemberAssignmentStats(BaseModel):
    """A member's live assignments in one matrix.

    ``recorded_workload`` sums only workloads that were filled in.
    """

    member_id: UUID
    total_assignments: int
    by_role: RoleBreakdown
    by_priority: PriorityBreakdown
    recorded_workload: int


class ValidationFindingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: UUID
    task_name: str
    message: str
    code: RaciRuleCode


class ValidationResultResponse(BaseModel):
    """Errors and warnings in current matrix state. Warnings never affect validity."""

    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    errors: list[ValidationFindingResponse]
    warnings: list[ValidationFindingResponse]


class ValidationSummaryResponse(ValidationResultResponse):
    """Counts by rule code for dashboards."""

    total_tasks: int
    error_count: int
    warning_count: int
    errors_by_type: dict[str, int]
    warnings_by_type: dict[str, int]


class TaskIssuesResponse(BaseModel):
    """Task ids to highlight in the grid."""

    model_config = ConfigDict(from_attributes=True)

    tasks_with_errors: list[UUID]
    tasks_with_warnings: list[UUID]
    details: ValidationResultResponse
