"""Task service for business logic.

Tasks form a forest inside one matrix. Parents are resolved from a flat
id -> parent map, and every re-parenting walks the ancestors of the new
parent so a task can never become its own ancestor.
"""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditSink, ResourceType, diff_changes, snapshot
from app.core.database import atomic
from app.core.errors import BadRequestError, NotFoundError
from app.core.permissions.context import AccessContext
from app.modules.assignments.validation import RaciValidator, ValidationResult
from app.modules.tasks.models import Task, TaskStatus
from app.modules.tasks.repos import TaskRepo
from app.modules.tasks.schemas import (
    BulkTaskCreate,
    TaskCreate,
    TaskNode,
    TaskResponse,
    TaskUpdate,
)


logger = structlog.get_logger()


def _apply_status(task: Task, status: TaskStatus) -> None:
    """Set a task's status, stamping or clearing ``completed_at``."""
    if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
        task.completed_at = datetime.now(UTC)
    elif status != TaskStatus.COMPLETED:
        task.completed_at = None
    task.status = status


def creates_cycle(
    task_id: UUID,
    new_parent_id: UUID,
    parents: dict[UUID, UUID | None],
) -> bool:
    """Check whether ``new_parent_id`` is ``task_id`` or one of its descendants.

    Args:
        task_id: The task being re-parented
        new_parent_id: The proposed parent
        parents: Map of task id to parent id for the matrix

    Returns:
        True if the move would make the task its own ancestor
    """
    seen: set[UUID] = set()
    current: UUID | None = new_parent_id
    while current is not None and current not in seen:
        if current == task_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def build_hierarchy(tasks: list[TaskResponse]) -> list[TaskNode]:
    """Nest tasks under their parents.

    Tasks whose parent is not in ``tasks`` (none, or deleted) become roots.
    Input order is kept among siblings.
    """
    nodes = {task.id: TaskNode(**task.model_dump()) for task in tasks}
    roots: list[TaskNode] = []
    for task in tasks:
        node = nodes[task.id]
        parent = nodes.get(task.parent_task_id) if task.parent_task_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


class TaskService:
    """Service for task operations inside one matrix."""

    def __init__(
        self,
        db: DBSession,
        repo: TaskRepo,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.audit = audit

    async def get_task(self, matrix_id: UUID, task_id: UUID, include_deleted: bool = False) -> Task:
        """Get a task of the matrix.

        Raises:
            NotFoundError: If the task is missing, deleted or in another matrix
        """
        task = await self.repo.get_in_matrix(task_id, matrix_id, include_deleted)
        if task is None:
            raise NotFoundError(
                "Task not found",
                resource="task",
                resource_id=str(task_id),
            )
        return task

    async def get_task_detail(self, matrix_id: UUID, task_id: UUID) -> TaskResponse:
        task = await self.get_task(matrix_id, task_id)
        groups = await self.repo.group_ids_by_task([task.id])
        return TaskResponse.build(task, groups.get(task.id))

    async def list_tasks(
        self, matrix_id: UUID, include_deleted: bool = False
    ) -> list[TaskResponse]:
        """List tasks in display order with their group ids."""
        tasks = await self.repo.list_for_matrix(matrix_id, include_deleted)
        groups = await self.repo.group_ids_by_task(task.id for task in tasks)
        return [TaskResponse.build(task, groups.get(task.id)) for task in tasks]

    async def get_hierarchy(self, matrix_id: UUID) -> list[TaskNode]:
        return build_hierarchy(await self.list_tasks(matrix_id))

    async def create_task(self, access: AccessContext, data: TaskCreate) -> TaskResponse:
        """Create a task and its group memberships in one transaction.

        Raises:
            BadRequestError: If the parent or a group is not in the matrix
        """
        matrix_id = access.require_matrix_id()
        if data.parent_task_id is not None:
            await self._require_parent(matrix_id, data.parent_task_id)
        await self._require_groups(matrix_id, data.group_ids)

        order_index = data.order_index
        if order_index is None:
            order_index = await self._next_order_index(matrix_id)

        task = Task(
            matrix_id=matrix_id,
            name=data.name,
            description=data.description,
            parent_task_id=data.parent_task_id,
            priority=data.priority,
            due_date=data.due_date,
            estimated_hours=data.estimated_hours,
            order_index=order_index,
        )
        _apply_status(task, data.status)

        async with atomic(self.db):
            task = await self.repo.create(task)
            if data.group_ids:
                await self.repo.replace_memberships(task.id, data.group_ids)

        logger.info("task_created", task_id=str(task.id), matrix_id=str(matrix_id))
        await self.audit.record(
            access,
            AuditAction.CREATE_TASK,
            ResourceType.TASK,
            task.id,
            {"created": snapshot(task)},
        )
        return TaskResponse.build(task, list(dict.fromkeys(data.group_ids)))

    async def update_task(
        self,
        access: AccessContext,
        task_id: UUID,
        data: TaskUpdate,
    ) -> TaskResponse:
        """Update a task.

        Raises:
            NotFoundError: If the task is not a live task of the matrix
            BadRequestError: On self-parenting, cycles, or unknown parents/groups
        """
        matrix_id = access.require_matrix_id()
        task = await self.get_task(matrix_id, task_id)
        fields = data.model_dump(exclude_unset=True)

        new_parent = fields.get("parent_task_id")
        if new_parent is not None:
            if new_parent == task.id:
                raise BadRequestError("Task cannot be its own parent", error_code="self_parent")
            await self._require_parent(matrix_id, new_parent)
            if creates_cycle(task.id, new_parent, await self.repo.parent_links(matrix_id)):
                raise BadRequestError(
                    "Task cannot be moved under one of its own subtasks",
                    error_code="task_cycle",
                )

        group_ids = fields.pop("group_ids", None)
        if group_ids is not None:
            await self._require_groups(matrix_id, group_ids)

        before = snapshot(task)
        async with atomic(self.db):
            for field, value in fields.items():
                if field == "status":
                    if value is not None:
                        _apply_status(task, value)
                elif field in ("name", "priority", "order_index") and value is None:
                    continue
                else:
                    setattr(task, field, value)
            task = await self.repo.update(task)
            if group_ids is not None:
                await self.repo.replace_memberships(task.id, group_ids)

        changes = diff_changes(before, snapshot(task))
        if group_ids is not None:
            changes["group_ids"] = {"after": [str(group_id) for group_id in group_ids]}
        await self.audit.record(
            access, AuditAction.UPDATE_TASK, ResourceType.TASK, task.id, changes
        )

        groups = await self.repo.group_ids_by_task([task.id])
        return TaskResponse.build(task, groups.get(task.id))

    async def delete_task(self, access: AccessContext, task_id: UUID) -> None:
        """Soft-delete one task. Its children are left in place."""
        task = await self.get_task(access.require_matrix_id(), task_id)
        name = task.name

        async with atomic(self.db):
            task.deleted_at = datetime.now(UTC)
            await self.repo.update(task)

        await self.audit.record(
            access,
            AuditAction.DELETE_TASK,
            ResourceType.TASK,
            task_id,
            {"deleted": {"name": name}},
        )

    async def reorder_tasks(
        self, access: AccessContext, task_ids: list[UUID]
    ) -> list[TaskResponse]:
        """Set each task's order index to its position in ``task_ids``.

        Raises:
            BadRequestError: If an id is repeated or not a live task of the matrix
        """
        matrix_id = access.require_matrix_id()
        if len(set(task_ids)) != len(task_ids):
            raise BadRequestError("Task ids must be unique", error_code="duplicate_task_ids")

        tasks = {task.id: task for task in await self.repo.list_for_matrix(matrix_id)}
        unknown = [str(task_id) for task_id in task_ids if task_id not in tasks]
        if unknown:
            raise BadRequestError(
                "Some tasks do not belong to this matrix",
                error_code="invalid_task_ids",
                details={"task_ids": unknown},
            )

        async with atomic(self.db):
            for position, task_id in enumerate(task_ids):
                tasks[task_id].order_index = position
            await self.db.flush()

        await self.audit.record(
            access,
            AuditAction.REORDER_TASKS,
            ResourceType.TASK,
            matrix_id,
            {"order": [str(task_id) for task_id in task_ids]},
        )
        return await self.list_tasks(matrix_id)

    async def bulk_create(self, access: AccessContext, data: BulkTaskCreate) -> list[TaskResponse]:
        """Create several tasks, all or none.

        Every parent is checked before anything is written.

        Raises:
            BadRequestError: If any item names a parent that is not a live task of the matrix
        """
        matrix_id = access.require_matrix_id()
        errors: list[str] = []
        for position, item in enumerate(data.tasks):
            if item.parent_task_id is None:
                continue
            if await self.repo.get_in_matrix(item.parent_task_id, matrix_id) is None:
                errors.append(f"Task {position}: Parent task not found or deleted")
        if errors:
            raise BadRequestError(
                "Validation errors:\n" + "\n".join(errors),
                error_code="bulk_validation_failed",
                details={"errors": errors},
            )

        order_index = await self._next_order_index(matrix_id)
        created: list[Task] = []
        async with atomic(self.db):
            for offset, item in enumerate(data.tasks):
                task = Task(
                    matrix_id=matrix_id,
                    name=item.name,
                    description=item.description,
                    parent_task_id=item.parent_task_id,
                    priority=item.priority,
                    order_index=order_index + offset,
                )
                _apply_status(task, item.status)
                self.db.add(task)
                created.append(task)
            await self.db.flush()
            for task in created:
                await self.db.refresh(task)

        logger.info("tasks_bulk_created", matrix_id=str(matrix_id), count=len(created))
        await self.audit.record(
            access,
            AuditAction.BULK_CREATE_TASKS,
            ResourceType.TASK,
            matrix_id,
            {"created": {"count": len(created)}},
        )
        return [TaskResponse.build(task) for task in created]

    async def validate_task(
        self,
        validator: RaciValidator,
        matrix_id: UUID,
        task_id: UUID,
    ) -> ValidationResult:
        """Run the RACI rules against one task's live assignments."""
        return await validator.validate_task(await self.get_task(matrix_id, task_id))

    async def _next_order_index(self, matrix_id: UUID) -> int:
        current = await self.repo.max_order_index(matrix_id)
        return 0 if current is None else current + 1

    async def _require_parent(self, matrix_id: UUID, parent_id: UUID) -> None:
        if await self.repo.get_in_matrix(parent_id, matrix_id) is None:
            raise BadRequestError(
                "Parent task not found or deleted",
                error_code="invalid_parent",
                details={"parent_task_id": str(parent_id)},
            )

    async def _require_groups(self, matrix_id: UUID, group_ids: list[UUID]) -> None:
        found = await self.repo.group_ids_in_matrix(group_ids, matrix_id)
        missing = [str(group_id) for group_id in dict.fromkeys(group_ids) if group_id not in found]
        if missing:
            raise BadRequestError(
                "Some task groups do not belong to this matrix",
                error_code="invalid_task_groups",
                details={"group_ids": missing},
            )


# Type alias for dependency injection
TaskSvc = Annotated[TaskService, Depends(TaskService)]
