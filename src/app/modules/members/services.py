"""Member service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditSink, ResourceType
from app.core.database import atomic
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.permissions.context import AccessContext
from app.core.permissions.roles import MemberRole
from app.modules.members.repos import MemberRepo
from app.modules.members.schemas import (
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    MemberWorkloadResponse,
    RoleCounts,
    WorkloadAssignment,
)
from app.modules.organizations.models import Member, MemberStatus
from app.modules.users.repos import UserRepo


logger = structlog.get_logger()

LAST_OWNER_CHANGE_MESSAGE = (
    "Cannot change role of the last owner. Please assign another owner first."
)
LAST_OWNER_REMOVE_MESSAGE = "Cannot remove the last owner. Please assign another owner first."


def _audit_view(member: Member) -> dict[str, str | None]:
    return {
        "user_id": str(member.user_id),
        "role": member.role.value,
        "job_title": member.job_title,
        "status": member.status.value,
    }


class MemberService:
    """Service for organization membership.

    Every organization keeps at least one ACTIVE OWNER: demoting,
    deactivating or removing the last one is rejected.
    """

    def __init__(
        self,
        db: DBSession,
        repo: MemberRepo,
        users: UserRepo,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.users = users
        self.audit = audit

    async def get_member(self, organization_id: UUID, member_id: UUID) -> Member:
        """Get a member of the organization.

        Raises:
            NotFoundError: If no such member exists in the organization
        """
        member = await self.repo.get_in_organization(member_id, organization_id)
        if member is None:
            raise NotFoundError(
                "Member not found",
                resource="member",
                resource_id=str(member_id),
            )
        return member

    async def list_members(
        self,
        organization_id: UUID,
        status: MemberStatus | None = None,
    ) -> list[MemberResponse]:
        """List members with their users and live assignment counts."""
        rows = await self.repo.list_with_users(organization_id, status)
        counts = await self.repo.count_live_assignments(organization_id)
        return [
            MemberResponse.build(member, user, counts.get(member.id, 0))
            for member, user in rows
        ]

    async def get_member_detail(self, organization_id: UUID, member_id: UUID) -> MemberResponse:
        member = await self.get_member(organization_id, member_id)
        user = await self.users.get_by_id(member.user_id)
        counts = await self.repo.count_live_assignments(organization_id)
        return MemberResponse.build(member, user, counts.get(member.id, 0))

    async def create_member(self, access: AccessContext, data: MemberCreate) -> Member:
        """Add an existing user to the organization.

        Args:
            access: The caller's access context
            data: Membership data

        Returns:
            The created member

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the user is already a member
        """
        user = await self.users.get_by_id(data.user_id)
        if user is None:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(data.user_id),
            )
        if await self.repo.get_by_user(data.user_id, access.organization_id):
            raise ConflictError(
                "User is already a member of this organization",
                error_code="member_exists",
            )

        async with atomic(
            self.db,
            "User is already a member of this organization",
            "member_exists",
        ):
            member = await self.repo.create(
                Member(
                    user_id=data.user_id,
                    organization_id=access.organization_id,
                    role=data.role,
                    job_title=data.job_title,
                    department_labels=data.department_labels,
                    status=MemberStatus.ACTIVE,
                )
            )

        logger.info("member_created", member_id=str(member.id), role=member.role.value)
        await self.audit.record(
            access,
            AuditAction.CREATE_MEMBER,
            ResourceType.MEMBER,
            member.id,
            {"created": _audit_view(member)},
        )
        return member

    async def update_member(
        self,
        access: AccessContext,
        member_id: UUID,
        data: MemberUpdate,
    ) -> Member:
        """Update a member's role, profile or status.

        Raises:
            NotFoundError: If the member is not in the organization
            ForbiddenError: If the change would leave no ACTIVE OWNER
        """
        member = await self.get_member(access.organization_id, member_id)
        before = _audit_view(member)

        demoted = data.role is not None and data.role != MemberRole.OWNER
        deactivated = data.status is not None and data.status != MemberStatus.ACTIVE
        if (
            member.role == MemberRole.OWNER
            and member.status == MemberStatus.ACTIVE
            and (demoted or deactivated)
        ):
            await self._protect_last_owner(
                access.organization_id, member, LAST_OWNER_CHANGE_MESSAGE
            )

        async with atomic(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(member, field, value)
            member = await self.repo.update(member)

        await self.audit.record(
            access,
            AuditAction.UPDATE_MEMBER,
            ResourceType.MEMBER,
            member.id,
            {"before": before, "after": _audit_view(member)},
        )
        return member

    async def remove_member(self, access: AccessContext, member_id: UUID) -> None:
        """Remove a member and the assignments they hold.

        Raises:
            NotFoundError: If the member is not in the organization
            ForbiddenError: If the member is the last ACTIVE OWNER
            ConflictError: If the member still owns projects
        """
        member = await self.get_member(access.organization_id, member_id)
        removed = _audit_view(member)

        if member.role == MemberRole.OWNER and member.status == MemberStatus.ACTIVE:
            await self._protect_last_owner(
                access.organization_id, member, LAST_OWNER_REMOVE_MESSAGE
            )

        if await self.repo.count_owned_projects(member.id):
            raise ConflictError(
                "Member owns projects. Please assign them to another member first.",
                error_code="member_owns_projects",
            )

        async with atomic(self.db):
            assignment_count = await self.repo.delete_with_assignments(member)

        logger.info(
            "member_removed",
            member_id=str(member_id),
            assignments_removed=assignment_count,
        )
        await self.audit.record(
            access,
            AuditAction.REMOVE_MEMBER,
            ResourceType.MEMBER,
            member_id,
            {"removed": removed},
        )

    async def get_workload(self, organization_id: UUID, member_id: UUID) -> MemberWorkloadResponse:
        """Summarize a member's open assignments.

        Only live assignments on live, not-completed tasks count.
        """
        member = await self.get_member(organization_id, member_id)
        rows = await self.repo.list_open_assignments(member.id)

        by_role = RoleCounts()
        for assignment, _task in rows:
            role = assignment.raci_role.value
            setattr(by_role, role, getattr(by_role, role) + 1)

        return MemberWorkloadResponse(
            member_id=member.id,
            total_assignments=len(rows),
            by_role=by_role,
            total_workload=sum(assignment.workload or 0 for assignment, _task in rows),
            assignments=[
                WorkloadAssignment(
                    assignment_id=assignment.id,
                    task_id=task.id,
                    task_name=task.name,
                    raci_role=assignment.raci_role,
                    workload=assignment.workload,
                    task_status=task.status,
                    task_priority=task.priority,
                    due_date=task.due_date,
                )
                for assignment, task in rows
            ],
        )

    async def _protect_last_owner(
        self,
        organization_id: UUID,
        member: Member,
        message: str,
    ) -> None:
        if await self.repo.count_active_owners(organization_id) <= 1:
            logger.info(
                "last_owner_protected",
                member_id=str(member.id),
                organization_id=str(organization_id),
            )
            raise ForbiddenError(message, error_code="last_owner")


# Type alias for dependency injection
MemberSvc = Annotated[MemberService, Depends(MemberService)]
