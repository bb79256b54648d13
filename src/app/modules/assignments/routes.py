"""Assignment API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from app.core.permissions.scopes import MatrixAccess
from app.modules.assignments.models import RaciRole
from app.modules.assignments.schemas import (
    AssignmentCreate,
    AssignmentResponse,
    AssignmentUpdate,
    BulkAssignmentCreate,
    MemberAssignmentStats,
)
from app.modules.assignments.services import AssignmentSvc


router = APIRouter(prefix="/matrices/{matrix_id}/assignments", tags=["assignments"])


@router.get("", response_model=list[AssignmentResponse], summary="List assignments")
async def list_assignments(
    matrix_id: UUID,
    access: MatrixAccess,
    service: AssignmentSvc,
    task_id: UUID | None = None,
    member_id: UUID | None = None,
    raci_role: RaciRole | None = None,
) -> list[AssignmentResponse]:
    """List live assignments, optionally filtered by task, member or role."""
    assignments = await service.list_assignments(matrix_id, task_id, member_id, raci_role)
    return [AssignmentResponse.model_validate(assignment) for assignment in assignments]


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
    description="Assigns a RACI role. Rejected when it would add a second Accountable "
    "or repeat a member's role on the task.",
)
async def create_assignment(
    matrix_id: UUID,
    data: AssignmentCreate,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> AssignmentResponse:
    """Create an assignment."""
    assignment = await service.create_assignment(access, data)
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/bulk",
    response_model=list[AssignmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Bulk create assignments",
    description="Creates every assignment or none of them.",
)
async def bulk_create_assignments(
    matrix_id: UUID,
    data: BulkAssignmentCreate,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> list[AssignmentResponse]:
    """Create several assignments in one transaction."""
    assignments = await service.bulk_create(access, data.assignments)
    return [AssignmentResponse.model_validate(assignment) for assignment in assignments]


@router.get(
    "/members/{member_id}/stats",
    response_model=MemberAssignmentStats,
    summary="Member assignment statistics",
)
async def get_member_stats(
    matrix_id: UUID,
    member_id: UUID,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> MemberAssignmentStats:
    """Count a member's assignments in the matrix by role and priority."""
    return await service.get_member_stats(matrix_id, member_id)


@router.get("/{assignment_id}", response_model=AssignmentResponse, summary="Get assignment")
async def get_assignment(
    matrix_id: UUID,
    assignment_id: UUID,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> AssignmentResponse:
    """Get an assignment by ID."""
    assignment = await service.get_assignment(matrix_id, assignment_id)
    return AssignmentResponse.model_validate(assignment)


@router.patch(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Update assignment",
)
async def update_assignment(
    matrix_id: UUID,
    assignment_id: UUID,
    data: AssignmentUpdate,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> AssignmentResponse:
    """Update an assignment's role, notes or workload."""
    assignment = await service.update_assignment(access, assignment_id, data)
    return AssignmentResponse.model_validate(assignment)


@router.delete(
    "/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete assignment",
)
async def delete_assignment(
    matrix_id: UUID,
    assignment_id: UUID,
    access: MatrixAccess,
    service: AssignmentSvc,
) -> None:
    """Soft-delete an assignment."""
    await service.delete_assignment(access, assignment_id)
