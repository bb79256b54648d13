"""Matrix and task group repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from app.api.dependencies import DBSession
from app.modules.assignments.models import Assignment
from app.modules.matrices.models import Matrix, TaskGroup
from app.modules.tasks.models import Task, TaskGroupMembership


class MatrixRepository:
    """Repository for Matrix and TaskGroup database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, matrix: Matrix) -> Matrix:
        """Create a new matrix.

        Args:
            matrix: Matrix instance to create

        Returns:
            The created matrix with ID populated
        """
        self.session.add(matrix)
        await self.session.flush()
        await self.session.refresh(matrix)
        return matrix

    async def get_live(self, matrix_id: UUID) -> Matrix | None:
        """Get a matrix that has not been deleted."""
        result = await self.session.execute(
            select(Matrix).where(Matrix.id == matrix_id, Matrix.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def list_for_project(
        self,
        project_id: UUID,
        include_archived: bool = False,
    ) -> list[Matrix]:
        """List a project's live matrices, most recently updated first.

        Args:
            project_id: The project's UUID
            include_archived: Include archived matrices

        Returns:
            Matrices
        """
        stmt = select(Matrix).where(
            Matrix.project_id == project_id,
            Matrix.deleted_at.is_(None),
        )
        if not include_archived:
            stmt = stmt.where(Matrix.archived_at.is_(None))
        stmt = stmt.order_by(Matrix.updated_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_contents(self, matrix_ids: list[UUID]) -> dict[UUID, tuple[int, int]]:
        """Count live tasks and live assignments per matrix.

        Returns:
            Map of matrix id to (task_count, assignment_count)
        """
        if not matrix_ids:
            return {}
        task_result = await self.session.execute(
            select(Task.matrix_id, func.count())
            .where(Task.matrix_id.in_(matrix_ids), Task.deleted_at.is_(None))
            .group_by(Task.matrix_id)
        )
        assignment_result = await self.session.execute(
            select(Assignment.matrix_id, func.count())
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.matrix_id.in_(matrix_ids),
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
            .group_by(Assignment.matrix_id)
        )
        tasks = dict(task_result.all())
        assignments = dict(assignment_result.all())
        return {
            matrix_id: (tasks.get(matrix_id, 0), assignments.get(matrix_id, 0))
            for matrix_id in matrix_ids
        }

    async def bump_version(self, matrix: Matrix) -> Matrix:
        """Flush pending changes with the version raised by exactly one."""
        matrix.version = Matrix.version + 1
        await self.session.flush()
        await self.session.refresh(matrix)
        return matrix

    async def update(self, matrix: Matrix) -> Matrix:
        """Flush changes to a matrix.

        Args:
            matrix: Matrix instance with updated fields

        Returns:
            The updated matrix
        """
        await self.session.flush()
        await self.session.refresh(matrix)
        return matrix

    async def list_task_groups(self, matrix_id: UUID) -> list[tuple[TaskGroup, int]]:
        """List a matrix's task groups with the number of live tasks in each."""
        member_counts = (
            select(TaskGroupMembership.task_group_id, func.count().label("task_count"))
            .join(Task, Task.id == TaskGroupMembership.task_id)
            .where(Task.deleted_at.is_(None))
            .group_by(TaskGroupMembership.task_group_id)
            .subquery()
        )
        result = await self.session.execute(
            select(TaskGroup, func.coalesce(member_counts.c.task_count, 0))
            .outerjoin(member_counts, member_counts.c.task_group_id == TaskGroup.id)
            .where(TaskGroup.matrix_id == matrix_id)
            .order_by(TaskGroup.created_at, TaskGroup.name)
        )
        return [(group, count) for group, count in result.all()]

    async def create_task_group(self, group: TaskGroup) -> TaskGroup:
        self.session.add(group)
        await self.session.flush()
        await self.session.refresh(group)
        return group

    async def load_copy_source(
        self,
        matrix_id: UUID,
    ) -> tuple[list[TaskGroup], list[Task], list[TaskGroupMembership], list[Assignment]]:
        """Load what a duplicate copies: groups, live tasks, their memberships, live assignments."""
        groups = await self.session.execute(
            select(TaskGroup).where(TaskGroup.matrix_id == matrix_id)
        )
        tasks = await self.session.execute(
            select(Task)
            .where(Task.matrix_id == matrix_id, Task.deleted_at.is_(None))
            .order_by(Task.order_index, Task.created_at)
        )
        memberships = await self.session.execute(
            select(TaskGroupMembership)
            .join(Task, Task.id == TaskGroupMembership.task_id)
            .where(Task.matrix_id == matrix_id, Task.deleted_at.is_(None))
        )
        assignments = await self.session.execute(
            select(Assignment)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.matrix_id == matrix_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        return (
            list(groups.scalars().all()),
            list(tasks.scalars().all()),
            list(memberships.scalars().all()),
            list(assignments.scalars().all()),
        )


# Type alias for dependency injection
MatrixRepo = Annotated[MatrixRepository, Depends(MatrixRepository)]
