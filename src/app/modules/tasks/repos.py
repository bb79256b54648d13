"""Task repository for database operations."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select

from app.api.dependencies import DBSession
from app.modules.matrices.models import TaskGroup
from app.modules.tasks.models import Task, TaskGroupMembership


class TaskRepository:
    """Repository for Task and TaskGroupMembership operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, task: Task) -> Task:
        """Create a new task.

        Args:
            task: Task instance to create

        Returns:
            The created task with ID populated
        """
        self.session.add(task)
        await self.session.flush()
        await self.session.refresh(task)
        return task

    async def get_in_matrix(
        self,
        task_id: UUID,
        matrix_id: UUID,
        include_deleted: bool = False,
    ) -> Task | None:
        """Get a task by ID, only if it belongs to the matrix.

        Args:
            task_id: The task's UUID
            matrix_id: The matrix's UUID
            include_deleted: Also return soft-deleted tasks

        Returns:
            Task if found, None otherwise
        """
        stmt = select(Task).where(Task.id == task_id, Task.matrix_id == matrix_id)
        if not include_deleted:
            stmt = stmt.where(Task.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_matrix(self, matrix_id: UUID, include_deleted: bool = False) -> list[Task]:
        """List a matrix's tasks in display order."""
        stmt = select(Task).where(Task.matrix_id == matrix_id)
        if not include_deleted:
            stmt = stmt.where(Task.deleted_at.is_(None))
        stmt = stmt.order_by(Task.order_index, Task.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def parent_links(self, matrix_id: UUID) -> dict[UUID, UUID | None]:
        """Map every task of the matrix to its parent id."""
        result = await self.session.execute(
            select(Task.id, Task.parent_task_id).where(Task.matrix_id == matrix_id)
        )
        return {task_id: parent_id for task_id, parent_id in result.all()}

    async def max_order_index(self, matrix_id: UUID) -> int | None:
        """Highest order index among live tasks, or None when there are none."""
        return await self.session.scalar(
            select(func.max(Task.order_index)).where(
                Task.matrix_id == matrix_id,
                Task.deleted_at.is_(None),
            )
        )

    async def group_ids_by_task(self, task_ids: Iterable[UUID]) -> dict[UUID, list[UUID]]:
        ids = list(task_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(TaskGroupMembership.task_id, TaskGroupMembership.task_group_id).where(
                TaskGroupMembership.task_id.in_(ids)
            )
        )
        grouped: dict[UUID, list[UUID]] = {}
        for task_id, group_id in result.all():
            grouped.setdefault(task_id, []).append(group_id)
        return grouped

    async def group_ids_in_matrix(self, group_ids: Iterable[UUID], matrix_id: UUID) -> set[UUID]:
        """Return the subset of ``group_ids`` that belong to the matrix."""
        ids = set(group_ids)
        if not ids:
            return set()
        result = await self.session.execute(
            select(TaskGroup.id).where(TaskGroup.id.in_(ids), TaskGroup.matrix_id == matrix_id)
        )
        return set(result.scalars().all())

    async def replace_memberships(self, task_id: UUID, group_ids: Iterable[UUID]) -> None:
        """Replace a task's group memberships."""
        await self.session.execute(
            delete(TaskGroupMembership).where(TaskGroupMembership.task_id == task_id)
        )
        self.session.add_all(
            TaskGroupMembership(task_id=task_id, task_group_id=group_id)
            for group_id in dict.fromkeys(group_ids)
        )
        await self.session.flush()

    async def update(self, task: Task) -> Task:
        """Flush changes to a task.

        Args:
            task: Task instance with updated fields

        Returns:
            The updated task
        """
        await self.session.flush()
        await self.session.refresh(task)
        return task


# Type alias for dependency injection
TaskRepo = Annotated[TaskRepository, Depends(TaskRepository)]
