"""Matrix and task group models."""

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_COLOR_LENGTH, MAX_NAME_LENGTH
from app.core.database.base import (
    ArchivableMixin,
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class Matrix(Base, UUIDMixin, TimestampMixin, ArchivableMixin, SoftDeleteMixin):
    """One RACI grid inside a project.

    Archived matrices stay visible and restorable; deleted ones are
    excluded everywhere. ``version`` grows by one on every update.
    """

    __tablename__ = "matrices"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"<Matrix(id={self.id}, name={self.name}, version={self.version})>"


class TaskGroup(Base, UUIDMixin, TimestampMixin):
    """Cross-cutting category for tasks within a matrix."""

    __tablename__ = "task_groups"

    matrix_id: Mapped[UUID] = mapped_column(
        ForeignKey("matrices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(MAX_COLOR_LENGTH), nullable=True)
