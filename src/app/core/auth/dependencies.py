"""Identity stage of the request pipeline.

Every tenant-scoped route depends on ``CurrentUser``; the scope
dependencies build on it to resolve organization access.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.dependencies import DBSession
from app.core.auth.backend import decode_token
from app.core.auth.schemas import TokenData
from app.core.errors import UnauthorizedError
from app.modules.users.models import User


bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_data(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenData:
    """Read and verify the bearer token.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired or
            not an access token
    """
    if credentials is None:
        raise UnauthorizedError("Missing authentication token", error_code="missing_token")

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise UnauthorizedError("Invalid or expired token", error_code="invalid_token")
    if token_data.type != "access":
        raise UnauthorizedError("Invalid token type", error_code="invalid_token_type")
    return token_data


async def get_current_user(
    token_data: Annotated[TokenData, Depends(get_token_data)],
    db: DBSession,
) -> User:
    """Load the user the token names.

    Raises:
        UnauthorizedError: If no such user exists
    """
    user = await db.get(User, token_data.user_id)
    if user is None:
        raise UnauthorizedError("User not found", error_code="user_not_found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
