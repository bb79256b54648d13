"""Organization, membership and consultancy grant models."""

import enum
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_JOB_TITLE_LENGTH, MAX_NAME_LENGTH, MAX_SLUG_LENGTH
from app.core.database.base import (
    ArchivableMixin,
    Base,
    JSONType,
    TimestampMixin,
    UUIDMixin,
    enum_type,
)
from app.core.permissions.roles import AccessLevel, MemberRole


class OrganizationType(str, enum.Enum):
    CLIENT = "CLIENT"
    CONSULTANCY = "CONSULTANCY"


class MemberStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    INVITED = "INVITED"


class Organization(Base, UUIDMixin, TimestampMixin, ArchivableMixin):
    """Tenant boundary.

    Attributes:
        name: Display name
        slug: URL-safe identifier, unique among non-archived organizations
        type: CLIENT or CONSULTANCY
        settings: Free-form settings blob
    """

    __tablename__ = "organizations"
    __table_args__ = (
        Index(
            "uq_organizations_slug_active",
            "slug",
            unique=True,
            postgresql_where=text("archived_at IS NULL"),
            sqlite_where=text("archived_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    slug: Mapped[str] = mapped_column(String(MAX_SLUG_LENGTH), nullable=False)
    type: Mapped[OrganizationType] = mapped_column(
        enum_type(OrganizationType, "organization_type"),
        default=OrganizationType.CLIENT,
        nullable=False,
    )
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        default=dict,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, slug={self.slug})>"


class Member(Base, UUIDMixin, TimestampMixin):
    """A user's membership in one organization.

    Attributes:
        user_id: The member's user
        organization_id: The organization joined
        role: OWNER, ADMIN, MEMBER or VIEWER
        job_title: Optional job title
        department_labels: Department labels the member belongs to
        status: ACTIVE, INACTIVE or INVITED
    """

    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_members_user_organization"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[MemberRole] = mapped_column(
        enum_type(MemberRole, "member_role"),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    job_title: Mapped[str | None] = mapped_column(
        String(MAX_JOB_TITLE_LENGTH),
        nullable=True,
    )
    department_labels: Mapped[list[str]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
    )
    status: Mapped[MemberStatus] = mapped_column(
        enum_type(MemberStatus, "member_status"),
        default=MemberStatus.ACTIVE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Member(id={self.id}, organization_id={self.organization_id}, "
            f"role={self.role})>"
        )


class ConsultancyAccess(Base, UUIDMixin, TimestampMixin):
    """Cross-organization grant attached to a user.

    The access level stands in for a role only where the user has no
    membership in the target organization.
    """

    __tablename__ = "consultancy_access"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    can_access_all_orgs: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    access_level: Mapped[AccessLevel] = mapped_column(
        enum_type(AccessLevel, "access_level"),
        default=AccessLevel.VIEW,
        nullable=False,
    )
