"""Task API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from app.core.permissions.scopes import MatrixAccess
from app.modules.assignments.schemas import ValidationResultResponse
from app.modules.assignments.validation import Validator
from app.modules.tasks.schemas import (
    BulkTaskCreate,
    TaskCreate,
    TaskNode,
    TaskReorder,
    TaskResponse,
    TaskUpdate,
)
from app.modules.tasks.services import TaskSvc


router = APIRouter(prefix="/matrices/{matrix_id}/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse], summary="List tasks")
async def list_tasks(
    matrix_id: UUID,
    access: MatrixAccess,
    service: TaskSvc,
    include_deleted: bool = False,
) -> list[TaskResponse]:
    """List the matrix's tasks ordered by order index."""
    return await service.list_tasks(matrix_id, include_deleted)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
)
async def create_task(
    matrix_id: UUID,
    data: TaskCreate,
    access: MatrixAccess,
    service: TaskSvc,
) -> TaskResponse:
    """Create a task, optionally under a parent and inside task groups."""
    return await service.create_task(access, data)


@router.post(
    "/bulk",
    response_model=list[TaskResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Bulk create tasks",
    description="Creates every task or none of them.",
)
async def bulk_create_tasks(
    matrix_id: UUID,
    data: BulkTaskCreate,
    access: MatrixAccess,
    service: TaskSvc,
) -> list[TaskResponse]:
    """Create several tasks in one transaction."""
    return await service.bulk_create(access, data)


@router.post("/reorder", response_model=list[TaskResponse], summary="Reorder tasks")
async def reorder_tasks(
    matrix_id: UUID,
    data: TaskReorder,
    access: MatrixAccess,
    service: TaskSvc,
) -> list[TaskResponse]:
    """Set each task's order index to its position in the supplied list."""
    return await service.reorder_tasks(access, data.task_ids)


@router.get("/hierarchy", response_model=list[TaskNode], summary="Task hierarchy")
async def get_task_hierarchy(
    matrix_id: UUID,
    access: MatrixAccess,
    service: TaskSvc,
) -> list[TaskNode]:
    """Get root tasks with their children nested."""
    return await service.get_hierarchy(matrix_id)


@router.get("/{task_id}", response_model=TaskResponse, summary="Get task")
async def get_task(
    matrix_id: UUID,
    task_id: UUID,
    access: MatrixAccess,
    service: TaskSvc,
) -> TaskResponse:
    """Get a task by ID."""
    return await service.get_task_detail(matrix_id, task_id)


@router.patch("/{task_id}", response_model=TaskResponse, summary="Update task")
async def update_task(
    matrix_id: UUID,
    task_id: UUID,
    data: TaskUpdate,
    access: MatrixAccess,
    service: TaskSvc,
) -> TaskResponse:
    """Update a task."""
    return await service.update_task(access, task_id, data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete task")
async def delete_task(
    matrix_id: UUID,
    task_id: UUID,
    access: MatrixAccess,
    service: TaskSvc,
) -> None:
    """Soft-delete a task."""
    await service.delete_task(access, task_id)


@router.get(
    "/{task_id}/validation",
    response_model=ValidationResultResponse,
    summary="Validate task",
)
async def validate_task(
    matrix_id: UUID,
    task_id: UUID,
    access: MatrixAccess,
    service: TaskSvc,
    validator: Validator,
) -> ValidationResultResponse:
    """Check one task against the RACI rules."""
    result = await service.validate_task(validator, matrix_id, task_id)
    return ValidationResultResponse.model_validate(result)
