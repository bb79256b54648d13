"""User database models."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from app.core.database.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """A person known to the platform.

    Users are global; they join organizations through Member rows and may
    hold a ConsultancyAccess grant for cross-organization access.

    Attributes:
        email: Unique email address
        name: Display name (optional)
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
