"""Assignment (RACI edge) database model."""

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
    enum_type,
)


class RaciRole(str, enum.Enum):
    RESPONSIBLE = "RESPONSIBLE"
    ACCOUNTABLE = "ACCOUNTABLE"
    CONSULTED = "CONSULTED"
    INFORMED = "INFORMED"


_LIVE = "deleted_at IS NULL"
_LIVE_ACCOUNTABLE = "raci_role = 'ACCOUNTABLE' AND deleted_at IS NULL"


class Assignment(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A member holding one RACI role on one task.

    The two partial unique indexes are the authoritative guards against
    concurrent writers: at most one live Accountable per task, and no
    repeated (task, member, role) triple among live rows.

    Attributes:
        matrix_id: Owning matrix, denormalized from the task
        task_id: The task
        member_id: The assigned member
        raci_role: RESPONSIBLE, ACCOUNTABLE, CONSULTED or INFORMED
        notes: Optional free text
        workload: Optional workload percentage (0-100)
        assigned_by: User who created the assignment
        assigned_at: When the assignment was created
    """

    __tablename__ = "assignments"
    __table_args__ = (
        Index(
            "uq_assignments_task_member_role_live",
            "task_id",
            "member_id",
            "raci_role",
            unique=True,
            postgresql_where=text(_LIVE),
            sqlite_where=text(_LIVE),
        ),
        Index(
            "uq_assignments_task_accountable_live",
            "task_id",
            unique=True,
            postgresql_where=text(_LIVE_ACCOUNTABLE),
            sqlite_where=text(_LIVE_ACCOUNTABLE),
        ),
    )

    matrix_id: Mapped[UUID] = mapped_column(
        ForeignKey("matrices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    raci_role: Mapped[RaciRole] = mapped_column(
        enum_type(RaciRole, "raci_role"),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    workload: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Assignment(id={self.id}, task_id={self.task_id}, "
            f"member_id={self.member_id}, raci_role={self.raci_role})>"
        )
