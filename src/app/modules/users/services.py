"""User profile service."""

from typing import Annotated

from fastapi import Depends

from app.core.permissions.scopes import Resolver
from app.modules.users.models import User
from app.modules.users.schemas import CurrentUserResponse, UserResponse


class UserService:
    """Builds the caller's profile."""

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver

    async def get_profile(self, user: User) -> CurrentUserResponse:
        """Build the caller's profile including consultancy status.

        Args:
            user: The authenticated user

        Returns:
            Profile with ``is_consultancy`` and the grant's access level
        """
        grant = await self.resolver.get_consultancy_grant(user.id)
        profile = UserResponse.model_validate(user).model_dump()
        if grant is None:
            return CurrentUserResponse(**profile)
        return CurrentUserResponse(
            **profile,
            is_consultancy=grant.can_access_all_orgs,
            can_access_all_orgs=grant.can_access_all_orgs,
            access_level=grant.access_level,
        )


UserSvc = Annotated[UserService, Depends(UserService)]
