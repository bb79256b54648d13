"""Assignment repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from app.api.dependencies import DBSession
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.tasks.models import Task, TaskPriority


class AssignmentRepository:
    """Repository for Assignment database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, assignment: Assignment) -> Assignment:
        """Create a new assignment.

        Args:
            assignment: Assignment instance to create

        Returns:
            The created assignment with ID populated
        """
        self.session.add(assignment)
        await self.session.flush()
        await self.session.refresh(assignment)
        return assignment

    async def create_many(self, assignments: list[Assignment]) -> list[Assignment]:
        self.session.add_all(assignments)
        await self.session.flush()
        for assignment in assignments:
            await self.session.refresh(assignment)
        return assignments

    async def get_in_matrix(self, assignment_id: UUID, matrix_id: UUID) -> Assignment | None:
        """Get a live assignment by ID, only if it belongs to the matrix.

        Args:
            assignment_id: The assignment's UUID
            matrix_id: The matrix's UUID

        Returns:
            Assignment if found, None otherwise
        """
        result = await self.session.execute(
            select(Assignment)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.id == assignment_id,
                Assignment.matrix_id == matrix_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def list_for_matrix(
        self,
        matrix_id: UUID,
        task_id: UUID | None = None,
        member_id: UUID | None = None,
        raci_role: RaciRole | None = None,
    ) -> list[Assignment]:
        """List live assignments of a matrix, newest first.

        Args:
            matrix_id: The matrix's UUID
            task_id: Only assignments on this task
            member_id: Only assignments of this member
            raci_role: Only assignments with this role

        Returns:
            Matching assignments
        """
        stmt = (
            select(Assignment)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.matrix_id == matrix_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        if task_id:
            stmt = stmt.where(Assignment.task_id == task_id)
        if member_id:
            stmt = stmt.where(Assignment.member_id == member_id)
        if raci_role:
            stmt = stmt.where(Assignment.raci_role == raci_role)
        stmt = stmt.order_by(Assignment.assigned_at.desc(), Assignment.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_live_accountable(self, task_id: UUID) -> int:
        count = await self.session.scalar(
            select(func.count())
            .select_from(Assignment)
            .where(
                Assignment.task_id == task_id,
                Assignment.raci_role == RaciRole.ACCOUNTABLE,
                Assignment.deleted_at.is_(None),
            )
        )
        return count or 0

    async def list_member_assignments(
        self,
        matrix_id: UUID,
        member_id: UUID,
    ) -> list[tuple[Assignment, TaskPriority]]:
        """List a member's live assignments in a matrix with each task's priority."""
        result = await self.session.execute(
            select(Assignment, Task.priority)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.matrix_id == matrix_id,
                Assignment.member_id == member_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        return [(assignment, priority) for assignment, priority in result.all()]

    async def update(self, assignment: Assignment) -> Assignment:
        """Flush changes to an assignment.

        Args:
            assignment: Assignment instance with updated fields

        Returns:
            The updated assignment
        """
        await self.session.flush()
        await self.session.refresh(assignment)
        return assignment


# Type alias for dependency injection
AssignmentRepo = Annotated[AssignmentRepository, Depends(AssignmentRepository)]
