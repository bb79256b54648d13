"""Project repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from app.api.dependencies import DBSession
from app.modules.assignments.models import Assignment
from app.modules.matrices.models import Matrix
from app.modules.projects.models import Project
from app.modules.tasks.models import Task


class ProjectRepository:
    """Repository for Project database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, project: Project) -> Project:
        """Create a new project.

        Args:
            project: Project instance to create

        Returns:
            The created project with ID populated
        """
        self.session.add(project)
        await self.session.flush()
        await self.session.refresh(project)
        return project

    async def get_by_id(self, project_id: UUID) -> Project | None:
        return await self.session.get(Project, project_id)

    async def list_for_organization(
        self,
        organization_id: UUID,
        include_archived: bool = False,
    ) -> list[tuple[Project, int]]:
        """List projects with their live matrix counts, newest first.

        Args:
            organization_id: The organization's UUID
            include_archived: Include archived projects

        Returns:
            (project, matrix_count) pairs
        """
        matrix_counts = (
            select(Matrix.project_id, func.count().label("matrix_count"))
            .where(Matrix.deleted_at.is_(None))
            .group_by(Matrix.project_id)
            .subquery()
        )
        stmt = (
            select(Project, func.coalesce(matrix_counts.c.matrix_count, 0))
            .outerjoin(matrix_counts, matrix_counts.c.project_id == Project.id)
            .where(Project.organization_id == organization_id)
        )
        if not include_archived:
            stmt = stmt.where(Project.archived_at.is_(None))
        stmt = stmt.order_by(Project.created_at.desc())
        result = await self.session.execute(stmt)
        return [(project, count) for project, count in result.all()]

    async def update(self, project: Project) -> Project:
        """Flush changes to a project.

        Args:
            project: Project instance with updated fields

        Returns:
            The updated project
        """
        await self.session.flush()
        await self.session.refresh(project)
        return project

    async def get_stats(self, project_id: UUID) -> dict[str, int]:
        """Count active matrices and the live tasks and assignments under them."""
        matrix_count = await self.session.scalar(
            select(func.count())
            .select_from(Matrix)
            .where(
                Matrix.project_id == project_id,
                Matrix.archived_at.is_(None),
                Matrix.deleted_at.is_(None),
            )
        )
        task_count = await self.session.scalar(
            select(func.count())
            .select_from(Task)
            .join(Matrix, Matrix.id == Task.matrix_id)
            .where(
                Matrix.project_id == project_id,
                Matrix.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        assignment_count = await self.session.scalar(
            select(func.count())
            .select_from(Assignment)
            .join(Matrix, Matrix.id == Assignment.matrix_id)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Matrix.project_id == project_id,
                Matrix.deleted_at.is_(None),
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
        )
        return {
            "matrix_count": matrix_count or 0,
            "task_count": task_count or 0,
            "assignment_count": assignment_count or 0,
        }


# Type alias for dependency injection
ProjectRepo = Annotated[ProjectRepository, Depends(ProjectRepository)]
