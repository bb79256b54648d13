"""Task and task group membership models."""

import enum
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_NAME_LENGTH
from app.core.database.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
    enum_type,
)


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"
    ON_HOLD = "ON_HOLD"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Task(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A row in a matrix.

    Tasks form a forest through ``parent_task_id``; parents are resolved
    by lookup, never by object references.

    Attributes:
        matrix_id: Owning matrix
        name: Task name
        description: Optional description
        parent_task_id: Optional parent task in the same matrix
        status: Workflow status
        priority: LOW to CRITICAL
        order_index: Display order within the matrix
        due_date: Optional due date
        estimated_hours: Optional effort estimate
        completed_at: Set when the task moves to COMPLETED
    """

    __tablename__ = "tasks"

    matrix_id: Mapped[UUID] = mapped_column(
        ForeignKey("matrices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_task_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[TaskStatus] = mapped_column(
        enum_type(TaskStatus, "task_status"),
        default=TaskStatus.NOT_STARTED,
        nullable=False,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        enum_type(TaskPriority, "task_priority"),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    estimated_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, name={self.name}, status={self.status})>"


class TaskGroupMembership(Base, UUIDMixin):
    """Join row placing a task in a task group."""

    __tablename__ = "task_group_memberships"
    __table_args__ = (
        UniqueConstraint("task_id", "task_group_id", name="uq_task_group_memberships"),
    )

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_group_id: Mapped[UUID] = mapped_column(
        ForeignKey("task_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
