"""Organization service for business logic."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditLogRepo, AuditSink, ResourceType
from app.core.audit.models import AuditLog
from app.core.audit.serialization import diff_changes, snapshot
from app.core.database import atomic
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.permissions.context import AccessContext
from app.core.permissions.roles import MemberRole
from app.core.permissions.scopes import Resolver
from app.modules.organizations.models import Member, MemberStatus, Organization
from app.modules.organizations.repos import OrganizationRepo
from app.modules.organizations.schemas import (
    OrganizationCreate,
    OrganizationStats,
    OrganizationUpdate,
)
from app.modules.users.models import User


logger = structlog.get_logger()


class OrganizationService:
    """Service for organization lifecycle operations."""

    def __init__(
        self,
        db: DBSession,
        repo: OrganizationRepo,
        audit_logs: AuditLogRepo,
        resolver: Resolver,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.audit_logs = audit_logs
        self.resolver = resolver
        self.audit = audit

    async def list_for_user(self, user_id: UUID) -> list[Organization]:
        """List organizations the user can enter."""
        return await self.resolver.list_accessible_organizations(user_id)

    async def get_organization(self, organization_id: UUID) -> Organization:
        """Get an organization by ID.

        Raises:
            NotFoundError: If the organization does not exist
        """
        organization = await self.repo.get_by_id(organization_id)
        if organization is None:
            raise NotFoundError(
                "Organization not found",
                resource="organization",
                resource_id=str(organization_id),
            )
        return organization

    async def create_organization(self, user: User, data: OrganizationCreate) -> Organization:
        """Create an organization with the caller as its first owner.

        The organization and the owner membership are written in one
        transaction.

        Args:
            user: The authenticated caller
            data: Organization creation data

        Returns:
            The created organization

        Raises:
            ConflictError: If the slug is taken by a non-archived organization
        """
        if await self.repo.get_active_by_slug(data.slug):
            raise ConflictError(
                "Organization slug already exists",
                error_code="slug_exists",
                details={"slug": data.slug},
            )

        async with atomic(self.db, "Organization slug already exists", "slug_exists"):
            organization = await self.repo.create(
                Organization(
                    name=data.name,
                    slug=data.slug,
                    type=data.type,
                    settings=data.settings,
                )
            )
            owner = Member(
                user_id=user.id,
                organization_id=organization.id,
                role=MemberRole.OWNER,
                job_title="Owner",
                department_labels=[],
                status=MemberStatus.ACTIVE,
            )
            self.db.add(owner)
            await self.db.flush()
            await self.db.refresh(owner)

        logger.info(
            "organization_created",
            organization_id=str(organization.id),
            slug=organization.slug,
        )
        await self.audit.record(
            self._owner_context(user, organization, owner),
            AuditAction.CREATE_ORGANIZATION,
            ResourceType.ORGANIZATION,
            organization.id,
            {"created": snapshot(organization)},
        )
        return organization

    async def update_organization(
        self,
        access: AccessContext,
        data: OrganizationUpdate,
    ) -> Organization:
        """Update an organization's name or settings."""
        organization = await self.get_organization(access.organization_id)
        before = snapshot(organization)

        async with atomic(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(organization, field, value)
            organization = await self.repo.update(organization)

        await self.audit.record(
            access,
            AuditAction.UPDATE_ORGANIZATION,
            ResourceType.ORGANIZATION,
            organization.id,
            diff_changes(before, snapshot(organization)),
        )
        return organization

    async def archive_organization(self, access: AccessContext) -> Organization:
        """Archive an organization.

        Raises:
            ForbiddenError: If the caller is not an OWNER
            ConflictError: If the organization is already archived
        """
        if not access.can(MemberRole.OWNER):
            raise ForbiddenError(
                "Only organization owners can archive organizations",
                error_code="owner_required",
            )

        organization = await self.get_organization(access.organization_id)
        if organization.is_archived:
            raise ConflictError(
                "Organization is already archived",
                error_code="already_archived",
            )

        async with atomic(self.db):
            organization.archived_at = datetime.now(UTC)
            organization = await self.repo.update(organization)

        logger.info("organization_archived", organization_id=str(organization.id))
        await self.audit.record(
            access,
            AuditAction.ARCHIVE_ORGANIZATION,
            ResourceType.ORGANIZATION,
            organization.id,
            {"archived_at": snapshot(organization)["archived_at"]},
        )
        return organization

    async def get_stats(self, organization_id: UUID) -> OrganizationStats:
        counts = await self.repo.get_stats(organization_id)
        return OrganizationStats(**counts)

    async def list_audit_logs(
        self,
        organization_id: UUID,
        user_id: UUID | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLog]:
        """List the organization's audit entries, newest first."""
        return await self.audit_logs.list_for_organization(
            organization_id,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            limit=limit,
            offset=offset,
        )

    @staticmethod
    def _owner_context(user: User, organization: Organization, owner: Member) -> AccessContext:
        return AccessContext(
            user_id=user.id,
            email=user.email,
            organization_id=organization.id,
            member_id=owner.id,
            role=owner.role.value,
            is_consultancy_access=False,
            request_id=structlog.contextvars.get_contextvars().get("request_id"),
        )


# Type alias for dependency injection
OrganizationSvc = Annotated[OrganizationService, Depends(OrganizationService)]
