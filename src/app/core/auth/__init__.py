"""Bearer-token identity: token handling, the CurrentUser dependency and middleware."""

from app.core.auth.backend import create_access_token, decode_token
from app.core.auth.dependencies import CurrentUser
from app.core.auth.middleware import IdentityContextMiddleware, RequestIdMiddleware
from app.core.auth.schemas import TokenData


__all__ = [
    "CurrentUser",
    "IdentityContextMiddleware",
    "RequestIdMiddleware",
    "TokenData",
    "create_access_token",
    "decode_token",
]
