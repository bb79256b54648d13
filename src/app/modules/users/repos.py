"""User lookups."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends

from app.api.dependencies import DBSession
from app.modules.users.models import User


class UserRepository:
    """Read access to users.

    Users are provisioned by the identity provider; this service never
    creates them outside the seed script.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)


UserRepo = Annotated[UserRepository, Depends(UserRepository)]
