"""Pydantic schemas for member operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.constants import MAX_JOB_TITLE_LENGTH
from app.core.permissions.roles import MemberRole
from app.modules.assignments.models import RaciRole
from app.modules.organizations.models import Member, MemberStatus
from app.modules.tasks.models import TaskPriority, TaskStatus
from app.modules.users.models import User


class MemberCreate(BaseModel):
    """Schema for adding an existing user to an organization."""

    user_id: UUID
    role: MemberRole = MemberRole.MEMBER
    job_title: str = Field(..., min_length=1, max_length=MAX_JOB_TITLE_LENGTH)
    department_labels: list[str] = Field(default_factory=list)


class MemberUpdate(BaseModel):
    """Schema for updating a member.

    Only provided fields are changed.
    """

    role: MemberRole | None = None
    job_title: str | None = Field(None, min_length=1, max_length=MAX_JOB_TITLE_LENGTH)
    department_labels: list[str] | None = None
    status: MemberStatus | None = None


class MemberUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str | None


class MemberResponse(BaseModel):
    """Schema for member responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    organization_id: UUID
    role: MemberRole
    job_title: str | None
    department_labels: list[str]
    status: MemberStatus
    created_at: datetime
    updated_at: datetime
    user: MemberUser | None = None
    assignment_count: int = 0

    @classmethod
    def build(
        cls,
        member: Member,
        user: User | None = None,
        assignment_count: int = 0,
    ) -> "MemberResponse":
        response = cls.model_validate(member)
        response.user = MemberUser.model_validate(user) if user is not None else None
        response.assignment_count = assignment_count
        return response


class RoleCounts(BaseModel):
    RESPONSIBLE: int = 0
    ACCOUNTABLE: int = 0
    CONSULTED: int = 0
    INFORMED: int = 0


class WorkloadAssignment(BaseModel):
    """One open assignment counted in a member's workload."""

    assignment_id: UUID
    task_id: UUID
    task_name: str
    raci_role: RaciRole
    workload: int | None
    task_status: TaskStatus
    task_priority: TaskPriority
    due_date: datetime | None


class MemberWorkloadResponse(BaseModel):
    """Open assignments of a member with their summed recorded workload.

    Assignments without a recorded workload add nothing to
    ``total_workload``.
    """

    member_id: UUID
    total_assignments: int
    by_role: RoleCounts
    total_workload: int
    assignments: list[WorkloadAssignment]
