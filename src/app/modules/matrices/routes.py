"""Matrix and task group API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from app.core.permissions.scopes import MatrixAccess, ProjectAccess
from app.modules.assignments.schemas import (
    TaskIssuesResponse,
    ValidationResultResponse,
    ValidationSummaryResponse,
)
from app.modules.assignments.validation import Validator
from app.modules.matrices.schemas import (
    MatrixCreate,
    MatrixDuplicate,
    MatrixGrid,
    MatrixResponse,
    MatrixUpdate,
    TaskGroupCreate,
    TaskGroupResponse,
)
from app.modules.matrices.services import MatrixSvc


router = APIRouter(tags=["matrices"])


@router.get(
    "/projects/{project_id}/matrices",
    response_model=list[MatrixResponse],
    summary="List matrices",
)
async def list_matrices(
    project_id: UUID,
    access: ProjectAccess,
    service: MatrixSvc,
    include_archived: bool = False,
) -> list[MatrixResponse]:
    """List a project's matrices, most recently updated first."""
    return await service.list_matrices(project_id, include_archived)


@router.post(
    "/projects/{project_id}/matrices",
    response_model=MatrixResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create matrix",
)
async def create_matrix(
    project_id: UUID,
    data: MatrixCreate,
    access: ProjectAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Create a matrix at version 1."""
    matrix = await service.create_matrix(access, data)
    return MatrixResponse.model_validate(matrix)


@router.get("/matrices/{matrix_id}", response_model=MatrixResponse, summary="Get matrix")
async def get_matrix(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Get a matrix with its task and assignment counts."""
    return await service.get_matrix_detail(matrix_id)


@router.patch("/matrices/{matrix_id}", response_model=MatrixResponse, summary="Update matrix")
async def update_matrix(
    matrix_id: UUID,
    data: MatrixUpdate,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Update a matrix and bump its version."""
    matrix = await service.update_matrix(access, matrix_id, data)
    return MatrixResponse.model_validate(matrix)


@router.delete(
    "/matrices/{matrix_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete matrix",
)
async def delete_matrix(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> None:
    """Mark a matrix deleted."""
    await service.delete_matrix(access, matrix_id)


@router.post(
    "/matrices/{matrix_id}/archive",
    response_model=MatrixResponse,
    summary="Archive matrix",
)
async def archive_matrix(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Archive a matrix. Archived matrices stay readable and restorable."""
    matrix = await service.archive_matrix(access, matrix_id)
    return MatrixResponse.model_validate(matrix)


@router.post(
    "/matrices/{matrix_id}/restore",
    response_model=MatrixResponse,
    summary="Restore matrix",
)
async def restore_matrix(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Restore an archived matrix."""
    matrix = await service.restore_matrix(access, matrix_id)
    return MatrixResponse.model_validate(matrix)


@router.post(
    "/matrices/{matrix_id}/duplicate",
    response_model=MatrixResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate matrix",
    description="Copies task groups, live tasks and live assignments into a new matrix.",
)
async def duplicate_matrix(
    matrix_id: UUID,
    data: MatrixDuplicate,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixResponse:
    """Deep-copy a matrix."""
    matrix = await service.duplicate_matrix(access, matrix_id, data.new_name)
    return await service.get_matrix_detail(matrix.id)


@router.get("/matrices/{matrix_id}/grid", response_model=MatrixGrid, summary="Matrix grid data")
async def get_matrix_grid(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> MatrixGrid:
    """Get everything needed to render the RACI grid."""
    return await service.get_grid(access, matrix_id)


@router.get(
    "/matrices/{matrix_id}/validation",
    response_model=ValidationResultResponse,
    summary="Validate matrix",
)
async def validate_matrix(
    matrix_id: UUID,
    access: MatrixAccess,
    validator: Validator,
) -> ValidationResultResponse:
    """Check every live task of the matrix against the RACI rules."""
    result = await validator.validate_matrix(matrix_id)
    return ValidationResultResponse.model_validate(result)


@router.get(
    "/matrices/{matrix_id}/validation/summary",
    response_model=ValidationSummaryResponse,
    summary="Validation summary",
)
async def get_validation_summary(
    matrix_id: UUID,
    access: MatrixAccess,
    validator: Validator,
) -> ValidationSummaryResponse:
    """Count validation findings by rule code."""
    summary = await validator.get_validation_summary(matrix_id)
    return ValidationSummaryResponse.model_validate(summary)


@router.get(
    "/matrices/{matrix_id}/validation/issues",
    response_model=TaskIssuesResponse,
    summary="Tasks with issues",
)
async def get_tasks_with_issues(
    matrix_id: UUID,
    access: MatrixAccess,
    validator: Validator,
) -> TaskIssuesResponse:
    """List the ids of tasks carrying errors and warnings."""
    issues = await validator.get_tasks_with_issues(matrix_id)
    return TaskIssuesResponse.model_validate(issues)


@router.get(
    "/matrices/{matrix_id}/task-groups",
    response_model=list[TaskGroupResponse],
    summary="List task groups",
)
async def list_task_groups(
    matrix_id: UUID,
    access: MatrixAccess,
    service: MatrixSvc,
) -> list[TaskGroupResponse]:
    """List the matrix's task groups with their live task counts."""
    return await service.list_task_groups(matrix_id)


@router.post(
    "/matrices/{matrix_id}/task-groups",
    response_model=TaskGroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task group",
)
async def create_task_group(
    matrix_id: UUID,
    data: TaskGroupCreate,
    access: MatrixAccess,
    service: MatrixSvc,
) -> TaskGroupResponse:
    """Create a task group in the matrix."""
    return await service.create_task_group(access, matrix_id, data)
