"""Project service for business logic."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditSink, ResourceType, diff_changes, snapshot
from app.core.database import atomic
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.permissions.context import AccessContext
from app.modules.members.repos import MemberRepo
from app.modules.projects.models import Project
from app.modules.projects.repos import ProjectRepo
from app.modules.projects.schemas import (
    ProjectCreate,
    ProjectResponse,
    ProjectStats,
    ProjectUpdate,
)


logger = structlog.get_logger()


class ProjectService:
    """Service for project lifecycle operations."""

    def __init__(
        self,
        db: DBSession,
        repo: ProjectRepo,
        members: MemberRepo,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.members = members
        self.audit = audit

    async def get_project(self, project_id: UUID) -> Project:
        """Get a project by ID.

        Raises:
            NotFoundError: If the project does not exist
        """
        project = await self.repo.get_by_id(project_id)
        if project is None:
            raise NotFoundError(
                "Project not found",
                resource="project",
                resource_id=str(project_id),
                error_code="project_not_found",
            )
        return project

    async def list_projects(
        self,
        organization_id: UUID,
        include_archived: bool = False,
    ) -> list[ProjectResponse]:
        rows = await self.repo.list_for_organization(organization_id, include_archived)
        return [
            ProjectResponse.model_validate(project).model_copy(update={"matrix_count": count})
            for project, count in rows
        ]

    async def create_project(self, access: AccessContext, data: ProjectCreate) -> Project:
        """Create a project owned by the caller's membership.

        Raises:
            ForbiddenError: If the caller has no membership in the organization
        """
        if access.member_id is None:
            raise ForbiddenError(
                "Must be a member of the organization to create projects",
                error_code="membership_required",
            )

        async with atomic(self.db):
            project = await self.repo.create(
                Project(
                    organization_id=access.organization_id,
                    name=data.name,
                    description=data.description,
                    owner_id=access.member_id,
                )
            )

        logger.info("project_created", project_id=str(project.id))
        await self.audit.record(
            access,
            AuditAction.CREATE_PROJECT,
            ResourceType.PROJECT,
            project.id,
            {"created": snapshot(project)},
        )
        return project

    async def update_project(
        self,
        access: AccessContext,
        project_id: UUID,
        data: ProjectUpdate,
    ) -> Project:
        """Update a project's name, description or owner.

        Raises:
            NotFoundError: If the project does not exist
            BadRequestError: If the new owner is not a member of the organization
        """
        project = await self.get_project(project_id)
        if data.owner_id is not None:
            owner = await self.members.get_in_organization(data.owner_id, project.organization_id)
            if owner is None:
                raise BadRequestError(
                    "New owner must be a member of the organization",
                    error_code="invalid_owner",
                )

        before = snapshot(project)
        async with atomic(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                if field == "description" or value is not None:
                    setattr(project, field, value)
            project = await self.repo.update(project)

        await self.audit.record(
            access,
            AuditAction.UPDATE_PROJECT,
            ResourceType.PROJECT,
            project.id,
            diff_changes(before, snapshot(project)),
        )
        return project

    async def archive_project(self, access: AccessContext, project_id: UUID) -> Project:
        project = await self.get_project(project_id)
        async with atomic(self.db):
            project.archived_at = datetime.now(UTC)
            project = await self.repo.update(project)

        await self.audit.record(
            access,
            AuditAction.ARCHIVE_PROJECT,
            ResourceType.PROJECT,
            project.id,
        )
        return project

    async def restore_project(self, access: AccessContext, project_id: UUID) -> Project:
        project = await self.get_project(project_id)
        async with atomic(self.db):
            project.archived_at = None
            project = await self.repo.update(project)

        await self.audit.record(
            access,
            AuditAction.RESTORE_PROJECT,
            ResourceType.PROJECT,
            project.id,
        )
        return project

    async def get_stats(self, project_id: UUID) -> ProjectStats:
        return ProjectStats(**await self.repo.get_stats(project_id))


# Type alias for dependency injection
ProjectSvc = Annotated[ProjectService, Depends(ProjectService)]
