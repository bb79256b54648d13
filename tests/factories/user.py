"""User factory for tests."""

from uuid import uuid4

from polyfactory import Ignore
from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from app.modules.users.models import User


class UserFactory(SQLAlchemyFactory[User]):
    """Factory for creating test User instances."""

    __model__ = User
    __check_model__ = False

    created_at = Ignore()
    updated_at = Ignore()

    @classmethod
    def email(cls) -> str:
        """Generate a unique email."""
        return f"user-{uuid4().hex[:8]}@example.com"

    @classmethod
    def name(cls) -> str:
        """Generate a display name."""
        return f"Test User {uuid4().hex[:4]}"
