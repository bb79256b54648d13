"""Access resolution.

This module determines what a user may do inside an organization:
their membership role, or the access level of a cross-organization
consultancy grant when they have no membership there. Every request
resolves access fresh from storage.
"""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccessDeniedError, NotFoundError
from app.core.permissions.context import ResolvedAccess
from app.modules.matrices.models import Matrix
from app.modules.organizations.models import (
    ConsultancyAccess,
    Member,
    MemberStatus,
    Organization,
)
from app.modules.projects.models import Project


logger = structlog.get_logger()


class AccessResolver:
    """Resolve a user's effective role in an organization.

    Consultancy access is a fallback, not an override: a consultancy
    user who is a member of the organization acts with that member's
    role.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_consultancy_grant(self, user_id: UUID) -> ConsultancyAccess | None:
        """Get the user's consultancy grant, if any.

        Args:
            user_id: The user's UUID

        Returns:
            The grant, or None if the user has none
        """
        result = await self.session.execute(
            select(ConsultancyAccess).where(ConsultancyAccess.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def resolve_access(self, user_id: UUID, organization_id: UUID) -> ResolvedAccess:
        """Resolve the user's access to an organization.

        Args:
            user_id: The user's UUID
            organization_id: The organization's UUID

        Returns:
            The resolved member id, role and consultancy flag

        Raises:
            AccessDeniedError: If the user holds no grant for the organization
            NotFoundError: If a consultancy user names an unknown organization
        """
        grant = await self.get_consultancy_grant(user_id)

        if grant is not None and grant.can_access_all_orgs:
            member = await self._get_member(user_id, organization_id)
            if member is not None:
                return ResolvedAccess(
                    organization_id=organization_id,
                    member_id=member.id,
                    role=member.role.value,
                    is_consultancy_access=True,
                )

            organization = await self.session.get(Organization, organization_id)
            if organization is None:
                raise NotFoundError(
                    "Organization not found",
                    resource="organization",
                    resource_id=str(organization_id),
                )
            logger.info(
                "consultancy_access_granted",
                user_id=str(user_id),
                organization_id=str(organization_id),
                access_level=grant.access_level.value,
            )
            return ResolvedAccess(
                organization_id=organization_id,
                member_id=None,
                role=grant.access_level.value,
                is_consultancy_access=True,
            )

        member = await self._get_member(user_id, organization_id, status=MemberStatus.ACTIVE)
        if member is None:
            logger.info(
                "access_denied",
                user_id=str(user_id),
                organization_id=str(organization_id),
            )
            raise AccessDeniedError()

        return ResolvedAccess(
            organization_id=organization_id,
            member_id=member.id,
            role=member.role.value,
            is_consultancy_access=False,
        )

    async def resolve_project_access(self, user_id: UUID, project_id: UUID) -> ResolvedAccess:
        """Resolve access through the project's owning organization.

        Raises:
            NotFoundError: If the project does not exist
            AccessDeniedError: If the user holds no grant for its organization
        """
        project = await self.session.get(Project, project_id)
        if project is None:
            raise NotFoundError(
                "Project not found",
                resource="project",
                resource_id=str(project_id),
                error_code="project_not_found",
            )

        access = await self.resolve_access(user_id, project.organization_id)
        return ResolvedAccess(
            organization_id=access.organization_id,
            member_id=access.member_id,
            role=access.role,
            is_consultancy_access=access.is_consultancy_access,
            project_id=project.id,
        )

    async def resolve_matrix_access(self, user_id: UUID, matrix_id: UUID) -> ResolvedAccess:
        """Resolve access through matrix, project and organization.

        Raises:
            NotFoundError: If the matrix is missing or deleted, or its project is gone
            AccessDeniedError: If the user holds no grant for its organization
        """
        result = await self.session.execute(
            select(Matrix, Project)
            .join(Project, Project.id == Matrix.project_id)
            .where(Matrix.id == matrix_id, Matrix.deleted_at.is_(None))
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(
                "Matrix not found",
                resource="matrix",
                resource_id=str(matrix_id),
                error_code="matrix_not_found",
            )
        matrix, project = row

        access = await self.resolve_access(user_id, project.organization_id)
        return ResolvedAccess(
            organization_id=access.organization_id,
            member_id=access.member_id,
            role=access.role,
            is_consultancy_access=access.is_consultancy_access,
            project_id=project.id,
            matrix_id=matrix.id,
        )

    async def list_accessible_organizations(self, user_id: UUID) -> list[Organization]:
        """List the non-archived organizations the user can enter.

        Consultancy super-users see every organization, sorted by name.

        Args:
            user_id: The user's UUID

        Returns:
            Accessible organizations
        """
        grant = await self.get_consultancy_grant(user_id)
        if grant is not None and grant.can_access_all_orgs:
            stmt = (
                select(Organization)
                .where(Organization.archived_at.is_(None))
                .order_by(Organization.name)
            )
        else:
            stmt = (
                select(Organization)
                .join(Member, Member.organization_id == Organization.id)
                .where(
                    Member.user_id == user_id,
                    Member.status == MemberStatus.ACTIVE,
                    Organization.archived_at.is_(None),
                )
                .order_by(Organization.name)
            )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _get_member(
        self,
        user_id: UUID,
        organization_id: UUID,
        status: MemberStatus | None = None,
    ) -> Member | None:
        stmt = select(Member).where(
            Member.user_id == user_id,
            Member.organization_id == organization_id,
        )
        if status is not None:
            stmt = stmt.where(Member.status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
