"""Access logging for the HTTP surface.

One ``request_started`` and one ``request_completed`` event per call.
Scope dependencies put the resolved organization on ``request.state``,
so the completion event names the tenant the operation ran against.
"""

import time
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp


logger = structlog.get_logger()

QUIET_PATHS = ("/health/", "/docs", "/redoc", "/openapi.json")


def get_client_ip(request: Request) -> str | None:
    """The caller's address, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _tenant_fields(request: Request) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name in ("user_id", "organization_id"):
        value = getattr(request.state, name, None)
        if value:
            fields[name] = str(value)
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its status, duration and tenant.

    Server errors log at ERROR, client errors at WARNING. Probe and
    documentation paths are not logged.
    """

    def __init__(self, app: ASGIApp, quiet_paths: tuple[str, ...] = QUIET_PATHS) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path.startswith(self.quiet_paths):
            return await call_next(request)

        started = time.perf_counter()
        request_fields: dict[str, Any] = {"method": request.method, "path": path}
        logger.info(
            "request_started",
            **request_fields,
            client_ip=get_client_ip(request),
            query=str(request.url.query) or None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "request_failed",
                **request_fields,
                duration_ms=_elapsed_ms(started),
                error=str(exc),
            )
            raise

        status_code = response.status_code
        log = logger.info
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        log(
            "request_completed",
            **request_fields,
            **_tenant_fields(request),
            status_code=status_code,
            duration_ms=_elapsed_ms(started),
        )
        return response
