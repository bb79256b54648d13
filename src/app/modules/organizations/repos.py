"""Organization repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from app.api.dependencies import DBSession
from app.modules.matrices.models import Matrix
from app.modules.organizations.models import Member, MemberStatus, Organization
from app.modules.projects.models import Project
from app.modules.tasks.models import Task, TaskStatus


class OrganizationRepository:
    """Repository for Organization database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization.

        Args:
            organization: Organization instance to create

        Returns:
            The created organization with ID populated
        """
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def get_by_id(self, organization_id: UUID) -> Organization | None:
        """Get an organization by ID.

        Args:
            organization_id: The organization's UUID

        Returns:
            Organization if found, None otherwise
        """
        return await self.session.get(Organization, organization_id)

    async def get_active_by_slug(self, slug: str) -> Organization | None:
        """Get the non-archived organization holding a slug.

        Args:
            slug: The slug to look up

        Returns:
            Organization if found, None otherwise
        """
        result = await self.session.execute(
            select(Organization).where(
                Organization.slug == slug,
                Organization.archived_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def update(self, organization: Organization) -> Organization:
        """Flush changes to an organization.

        Args:
            organization: Organization instance with updated fields

        Returns:
            The updated organization
        """
        await self.session.flush()
        await self.session.refresh(organization)
        return organization

    async def get_stats(self, organization_id: UUID) -> dict[str, int]:
        """Count active members, open projects, live matrices and unfinished tasks.

        Args:
            organization_id: The organization's UUID

        Returns:
            Dictionary of counts
        """
        member_count = await self.session.scalar(
            select(func.count())
            .select_from(Member)
            .where(
                Member.organization_id == organization_id,
                Member.status == MemberStatus.ACTIVE,
            )
        )
        project_count = await self.session.scalar(
            select(func.count())
            .select_from(Project)
            .where(
                Project.organization_id == organization_id,
                Project.archived_at.is_(None),
            )
        )
        matrix_count = await self.session.scalar(
            select(func.count())
            .select_from(Matrix)
            .join(Project, Project.id == Matrix.project_id)
            .where(
                Project.organization_id == organization_id,
                Matrix.deleted_at.is_(None),
            )
        )
        active_task_count = await self.session.scalar(
            select(func.count())
            .select_from(Task)
            .join(Matrix, Matrix.id == Task.matrix_id)
            .join(Project, Project.id == Matrix.project_id)
            .where(
                Project.organization_id == organization_id,
                Matrix.deleted_at.is_(None),
                Task.deleted_at.is_(None),
                Task.status != TaskStatus.COMPLETED,
            )
        )
        return {
            "member_count": member_count or 0,
            "project_count": project_count or 0,
            "matrix_count": matrix_count or 0,
            "active_task_count": active_task_count or 0,
        }


# Type alias for dependency injection
OrganizationRepo = Annotated[OrganizationRepository, Depends(OrganizationRepository)]
