"""Audit log database models.

Append-only records of every mutation. Consultancy callers acting in a
client organization get an additional ConsultancyAuditLog row so the
client can review what outside staff changed.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_ACTION_LENGTH, MAX_RESOURCE_TYPE_LENGTH
from app.core.database.base import Base, JSONType, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """Audit log entry for one mutation.

    Attributes:
        organization_id: The organization the change happened in
        user_id: The user who performed the action
        action: Action name (CREATE_ASSIGNMENT, ARCHIVE_PROJECT, ...)
        resource_type: Type of resource affected (ASSIGNMENT, TASK, ...)
        resource_id: ID of the affected resource
        request_id: Correlation ID for request tracing
        changes: Snapshot or per-field before/after diff
        created_at: When the action occurred
    """

    __tablename__ = "audit_logs"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(MAX_ACTION_LENGTH),
        nullable=False,
        index=True,
    )
    resource_type: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_TYPE_LENGTH),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    request_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    changes: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"resource_type={self.resource_type}, resource_id={self.resource_id})>"
        )


class ConsultancyAuditLog(Base, UUIDMixin):
    """Audit entry for a change made through consultancy access."""

    __tablename__ = "consultancy_audit_logs"

    consultancy_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(MAX_ACTION_LENGTH), nullable=False)
    resource_type: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_TYPE_LENGTH),
        nullable=False,
    )
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    changes: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
