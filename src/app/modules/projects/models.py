"""Project database model."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_NAME_LENGTH
from app.core.database.base import ArchivableMixin, Base, TimestampMixin, UUIDMixin


class Project(Base, UUIDMixin, TimestampMixin, ArchivableMixin):
    """Container of matrices within one organization.

    Attributes:
        organization_id: Owning organization
        name: Project name
        description: Optional description
        owner_id: Member responsible for the project
    """

    __tablename__ = "projects"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name})>"
