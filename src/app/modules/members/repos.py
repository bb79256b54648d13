"""Member repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select

from app.api.dependencies import DBSession
from app.core.permissions.roles import MemberRole
from app.modules.assignments.models import Assignment
from app.modules.organizations.models import Member, MemberStatus
from app.modules.projects.models import Project
from app.modules.tasks.models import Task, TaskStatus
from app.modules.users.models import User


class MemberRepository:
    """Repository for Member database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, member: Member) -> Member:
        """Create a new member.

        Args:
            member: Member instance to create

        Returns:
            The created member with ID populated
        """
        self.session.add(member)
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def get_in_organization(self, member_id: UUID, organization_id: UUID) -> Member | None:
        """Get a member by ID, only if it belongs to the organization.

        Args:
            member_id: The member's UUID
            organization_id: The organization's UUID

        Returns:
            Member if found, None otherwise
        """
        result = await self.session.execute(
            select(Member).where(
                Member.id == member_id,
                Member.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: UUID, organization_id: UUID) -> Member | None:
        result = await self.session.execute(
            select(Member).where(
                Member.user_id == user_id,
                Member.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_with_users(
        self,
        organization_id: UUID,
        status: MemberStatus | None = None,
    ) -> list[tuple[Member, User]]:
        """List an organization's members with their users.

        Args:
            organization_id: The organization's UUID
            status: Only members with this status

        Returns:
            (member, user) pairs, highest role first, then oldest first
        """
        stmt = (
            select(Member, User)
            .join(User, User.id == Member.user_id)
            .where(Member.organization_id == organization_id)
        )
        if status is not None:
            stmt = stmt.where(Member.status == status)
        result = await self.session.execute(stmt)
        rows = [(member, user) for member, user in result.all()]
        rows.sort(key=lambda row: (-row[0].role.rank, row[0].created_at))
        return rows

    async def count_live_assignments(self, organization_id: UUID) -> dict[UUID, int]:
        """Count each member's live assignments."""
        result = await self.session.execute(
            select(Assignment.member_id, func.count())
            .join(Member, Member.id == Assignment.member_id)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Member.organization_id == organization_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
            )
            .group_by(Assignment.member_id)
        )
        return {member_id: count for member_id, count in result.all()}

    async def count_active_owners(self, organization_id: UUID) -> int:
        """Count ACTIVE members holding the OWNER role."""
        count = await self.session.scalar(
            select(func.count())
            .select_from(Member)
            .where(
                Member.organization_id == organization_id,
                Member.role == MemberRole.OWNER,
                Member.status == MemberStatus.ACTIVE,
            )
        )
        return count or 0

    async def count_owned_projects(self, member_id: UUID) -> int:
        count = await self.session.scalar(
            select(func.count()).select_from(Project).where(Project.owner_id == member_id)
        )
        return count or 0

    async def list_open_assignments(self, member_id: UUID) -> list[tuple[Assignment, Task]]:
        """List live assignments on live, not-completed tasks.

        Args:
            member_id: The member's UUID

        Returns:
            (assignment, task) pairs
        """
        result = await self.session.execute(
            select(Assignment, Task)
            .join(Task, Task.id == Assignment.task_id)
            .where(
                Assignment.member_id == member_id,
                Assignment.deleted_at.is_(None),
                Task.deleted_at.is_(None),
                Task.status != TaskStatus.COMPLETED,
            )
            .order_by(Task.due_date, Task.order_index)
        )
        return [(assignment, task) for assignment, task in result.all()]

    async def update(self, member: Member) -> Member:
        """Flush changes to a member.

        Args:
            member: Member instance with updated fields

        Returns:
            The updated member
        """
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def delete_with_assignments(self, member: Member) -> int:
        """Delete a member and every assignment it holds.

        Args:
            member: The member to remove

        Returns:
            Number of assignment rows removed
        """
        result = await self.session.execute(
            delete(Assignment).where(Assignment.member_id == member.id)
        )
        await self.session.delete(member)
        await self.session.flush()
        return result.rowcount or 0


# Type alias for dependency injection
MemberRepo = Annotated[MemberRepository, Depends(MemberRepository)]
