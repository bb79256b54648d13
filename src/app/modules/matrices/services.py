"""Matrix service for business logic."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID, uuid4

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditSink, ResourceType, diff_changes, snapshot
from app.core.database import atomic
from app.core.errors import NotFoundError
from app.core.permissions.context import AccessContext
from app.modules.assignments.models import Assignment
from app.modules.assignments.repos import AssignmentRepo
from app.modules.assignments.schemas import AssignmentResponse, ValidationSummaryResponse
from app.modules.assignments.validation import Validator
from app.modules.matrices.models import Matrix, TaskGroup
from app.modules.matrices.repos import MatrixRepo
from app.modules.matrices.schemas import (
    MatrixCreate,
    MatrixGrid,
    MatrixResponse,
    MatrixUpdate,
    TaskGroupCreate,
    TaskGroupResponse,
)
from app.modules.members.repos import MemberRepo
from app.modules.members.schemas import MemberResponse
from app.modules.organizations.models import MemberStatus
from app.modules.tasks.models import Task, TaskGroupMembership
from app.modules.tasks.repos import TaskRepo
from app.modules.tasks.schemas import TaskResponse


logger = structlog.get_logger()


class MatrixService:
    """Service for matrix lifecycle, grid reads and duplication."""

    def __init__(
        self,
        db: DBSession,
        repo: MatrixRepo,
        tasks: TaskRepo,
        assignments: AssignmentRepo,
        members: MemberRepo,
        validator: Validator,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.tasks = tasks
        self.assignments = assignments
        self.members = members
        self.validator = validator
        self.audit = audit

    async def get_matrix(self, matrix_id: UUID) -> Matrix:
        """Get a matrix that has not been deleted.

        Raises:
            NotFoundError: If the matrix is missing or deleted
        """
        matrix = await self.repo.get_live(matrix_id)
        if matrix is None:
            raise NotFoundError(
                "Matrix not found",
                resource="matrix",
                resource_id=str(matrix_id),
                error_code="matrix_not_found",
            )
        return matrix

    async def get_matrix_detail(self, matrix_id: UUID) -> MatrixResponse:
        matrix = await self.get_matrix(matrix_id)
        counts = await self.repo.count_contents([matrix.id])
        return self._response(matrix, counts)

    async def list_matrices(
        self,
        project_id: UUID,
        include_archived: bool = False,
    ) -> list[MatrixResponse]:
        matrices = await self.repo.list_for_project(project_id, include_archived)
        counts = await self.repo.count_contents([matrix.id for matrix in matrices])
        return [self._response(matrix, counts) for matrix in matrices]

    async def create_matrix(self, access: AccessContext, data: MatrixCreate) -> Matrix:
        project_id = access.require_project_id()
        async with atomic(self.db):
            matrix = await self.repo.create(
                Matrix(
                    project_id=project_id,
                    name=data.name,
                    description=data.description,
                    version=1,
                )
            )

        logger.info("matrix_created", matrix_id=str(matrix.id))
        await self.audit.record(
            access,
            AuditAction.CREATE_MATRIX,
            ResourceType.MATRIX,
            matrix.id,
            {"created": snapshot(matrix)},
        )
        return matrix

    async def update_matrix(
        self,
        access: AccessContext,
        matrix_id: UUID,
        data: MatrixUpdate,
    ) -> Matrix:
        """Update a matrix; the version goes up by one whatever changed."""
        matrix = await self.get_matrix(matrix_id)
        before = snapshot(matrix)

        async with atomic(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "name" and value is None:
                    continue
                setattr(matrix, field, value)
            matrix = await self.repo.bump_version(matrix)

        await self.audit.record(
            access,
            AuditAction.UPDATE_MATRIX,
            ResourceType.MATRIX,
            matrix.id,
            diff_changes(before, snapshot(matrix)),
        )
        return matrix

    async def archive_matrix(self, access: AccessContext, matrix_id: UUID) -> Matrix:
        matrix = await self.get_matrix(matrix_id)
        async with atomic(self.db):
            matrix.archived_at = datetime.now(UTC)
            matrix = await self.repo.update(matrix)

        await self.audit.record(access, AuditAction.ARCHIVE_MATRIX, ResourceType.MATRIX, matrix.id)
        return matrix

    async def restore_matrix(self, access: AccessContext, matrix_id: UUID) -> Matrix:
        matrix = await self.get_matrix(matrix_id)
        async with atomic(self.db):
            matrix.archived_at = None
            matrix = await self.repo.update(matrix)

        await self.audit.record(access, AuditAction.RESTORE_MATRIX, ResourceType.MATRIX, matrix.id)
        return matrix

    async def delete_matrix(self, access: AccessContext, matrix_id: UUID) -> None:
        """Mark a matrix deleted. Deleted matrices disappear from every read."""
        matrix = await self.get_matrix(matrix_id)
        name = matrix.name
        async with atomic(self.db):
            matrix.deleted_at = datetime.now(UTC)
            await self.repo.update(matrix)

        logger.info("matrix_deleted", matrix_id=str(matrix_id))
        await self.audit.record(
            access,
            AuditAction.DELETE_MATRIX,
            ResourceType.MATRIX,
            matrix_id,
            {"deleted": {"name": name}},
        )

    async def get_grid(self, access: AccessContext, matrix_id: UUID) -> MatrixGrid:
        """Read the matrix, its tasks, the active members, assignments, groups and validation."""
        matrix = await self.get_matrix_detail(matrix_id)

        tasks = await self.tasks.list_for_matrix(matrix_id)
        group_ids = await self.tasks.group_ids_by_task(task.id for task in tasks)
        member_rows = await self.members.list_with_users(
            access.organization_id, MemberStatus.ACTIVE
        )
        member_counts = await self.members.count_live_assignments(access.organization_id)
        assignments = await self.assignments.list_for_matrix(matrix_id)
        groups = await self.repo.list_task_groups(matrix_id)
        summary = await self.validator.get_validation_summary(matrix_id)

        return MatrixGrid(
            matrix=matrix,
            tasks=[TaskResponse.build(task, group_ids.get(task.id)) for task in tasks],
            members=[
                MemberResponse.build(member, user, member_counts.get(member.id, 0))
                for member, user in member_rows
            ],
            assignments=[AssignmentResponse.model_validate(a) for a in assignments],
            task_groups=[self._group_response(group, count) for group, count in groups],
            validation=ValidationSummaryResponse.model_validate(summary),
        )

    async def duplicate_matrix(
        self,
        access: AccessContext,
        matrix_id: UUID,
        new_name: str,
    ) -> Matrix:
        """Deep-copy a matrix in one transaction.

        Task groups, live tasks (with their parent links and group
        memberships) and live assignments get new ids. Copied
        assignments are stamped with the duplicating caller.

        Args:
            access: The caller's access context
            matrix_id: The matrix to copy
            new_name: Name of the copy

        Returns:
            The new matrix, at version 1
        """
        source = await self.get_matrix(matrix_id)
        groups, tasks, memberships, assignments = await self.repo.load_copy_source(matrix_id)

        copy = Matrix(
            id=uuid4(),
            project_id=source.project_id,
            name=new_name,
            description=source.description,
            version=1,
        )
        group_ids = {group.id: uuid4() for group in groups}
        task_ids = {task.id: uuid4() for task in tasks}

        async with atomic(self.db):
            self.db.add(copy)
            self.db.add_all(
                TaskGroup(
                    id=group_ids[group.id],
                    matrix_id=copy.id,
                    name=group.name,
                    description=group.description,
                    color=group.color,
                )
                for group in groups
            )
            copied_tasks = [
                (
                    task,
                    Task(
                        id=task_ids[task.id],
                        matrix_id=copy.id,
                        name=task.name,
                        description=task.description,
                        status=task.status,
                        priority=task.priority,
                        order_index=task.order_index,
                        due_date=task.due_date,
                        estimated_hours=task.estimated_hours,
                        completed_at=task.completed_at,
                    ),
                )
                for task in tasks
            ]
            self.db.add_all(new_task for _, new_task in copied_tasks)
            await self.db.flush()

            # Parents are linked once every copied row exists
            for task, new_task in copied_tasks:
                if task.parent_task_id in task_ids:
                    new_task.parent_task_id = task_ids[task.parent_task_id]

            self.db.add_all(
                TaskGroupMembership(
                    task_id=task_ids[membership.task_id],
                    task_group_id=group_ids[membership.task_group_id],
                )
                for membership in memberships
                if membership.task_id in task_ids and membership.task_group_id in group_ids
            )
            self.db.add_all(
                Assignment(
                    matrix_id=copy.id,
                    task_id=task_ids[assignment.task_id],
                    member_id=assignment.member_id,
                    raci_role=assignment.raci_role,
                    notes=assignment.notes,
                    workload=assignment.workload,
                    assigned_by=access.user_id,
                )
                for assignment in assignments
            )
            await self.db.flush()
            await self.db.refresh(copy)

        logger.info(
            "matrix_duplicated",
            source_matrix_id=str(matrix_id),
            matrix_id=str(copy.id),
            tasks=len(tasks),
            assignments=len(assignments),
        )
        await self.audit.record(
            access,
            AuditAction.DUPLICATE_MATRIX,
            ResourceType.MATRIX,
            copy.id,
            {
                "created": {
                    "name": copy.name,
                    "duplicated_from": str(matrix_id),
                    "task_count": len(tasks),
                    "assignment_count": len(assignments),
                }
            },
        )
        return copy

    async def list_task_groups(self, matrix_id: UUID) -> list[TaskGroupResponse]:
        groups = await self.repo.list_task_groups(matrix_id)
        return [self._group_response(group, count) for group, count in groups]

    async def create_task_group(
        self,
        access: AccessContext,
        matrix_id: UUID,
        data: TaskGroupCreate,
    ) -> TaskGroupResponse:
        matrix = await self.get_matrix(matrix_id)
        async with atomic(self.db):
            group = await self.repo.create_task_group(
                TaskGroup(
                    matrix_id=matrix.id,
                    name=data.name,
                    description=data.description,
                    color=data.color,
                )
            )

        await self.audit.record(
            access,
            AuditAction.CREATE_TASK_GROUP,
            ResourceType.TASK_GROUP,
            group.id,
            {"created": snapshot(group)},
        )
        return self._group_response(group, 0)

    @staticmethod
    def _response(matrix: Matrix, counts: dict[UUID, tuple[int, int]]) -> MatrixResponse:
        task_count, assignment_count = counts.get(matrix.id, (0, 0))
        return MatrixResponse.model_validate(matrix).model_copy(
            update={"task_count": task_count, "assignment_count": assignment_count}
        )

    @staticmethod
    def _group_response(group: TaskGroup, task_count: int) -> TaskGroupResponse:
        return TaskGroupResponse.model_validate(group).model_copy(update={"task_count": task_count})


# Type alias for dependency injection
MatrixSvc = Annotated[MatrixService, Depends(MatrixService)]
