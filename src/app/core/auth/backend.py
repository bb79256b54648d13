"""Bearer tokens for request identity.

Users sign in elsewhere; requests reach this service with a signed
token whose ``sub`` is the user id. Tokens are minted here only for the
seed script and tests.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from pydantic import ValidationError

from app.config import settings
from app.core.auth.schemas import TokenData
from app.core.constants import ACCESS_TOKEN_JTI_LENGTH


def create_access_token(
    user_id: UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for a user.

    Args:
        user_id: The user's UUID, stored as ``sub``
        email: The user's email address
        expires_delta: Lifetime; defaults to ``access_token_expire_minutes``

    Returns:
        The encoded JWT
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenData | None:
    """Verify a token's signature and expiry and read its claims.

    Returns:
        The claims, or None for a bad signature, an expired token or a
        payload missing ``sub``, ``email`` or ``exp``
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require_sub": True, "require_exp": True},
        )
        return TokenData.model_validate(payload)
    except (JWTError, ValidationError):
        return None
