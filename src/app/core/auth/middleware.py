"""Request identity and tracing middleware.

Both middlewares only bind log context; authentication is enforced by
the ``CurrentUser`` dependency and tenant access by the scope
dependencies, which bind ``organization_id`` themselves.
"""

import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from app.core.auth.backend import decode_token


REQUEST_ID_HEADER = "X-Request-ID"
ANONYMOUS_PATHS = ("/health", "/info", "/docs", "/redoc", "/openapi.json")


def bearer_token(request: Request) -> str | None:
    """Return the raw bearer token from the Authorization header, if any."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class IdentityContextMiddleware(BaseHTTPMiddleware):
    """Bind the token's user id to ``request.state`` and the log context.

    Invalid or missing tokens are ignored here; the route dependency
    turns them into a 401.
    """

    def __init__(self, app: ASGIApp, anonymous_paths: tuple[str, ...] = ANONYMOUS_PATHS) -> None:
        super().__init__(app)
        self.anonymous_paths = anonymous_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self.anonymous_paths):
            token = bearer_token(request)
            token_data = decode_token(token) if token else None
            if token_data is not None:
                request.state.user_id = token_data.user_id
                structlog.contextvars.bind_contextvars(user_id=str(token_data.user_id))
        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Give every request an id and echo it back.

    A caller-supplied ``X-Request-ID`` is kept. The id lands on
    ``request.state`` (``trace_id`` in problem responses, ``request_id``
    on audit rows) and in the log context, which is cleared when the
    request ends.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.trace_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
