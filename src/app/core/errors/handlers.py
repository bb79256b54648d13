"""RFC 7807 Problem Details rendering.

Every error leaves the service in one shape: ``type``, ``title``,
``status``, ``detail``, ``instance``, ``code``, ``error_code`` and
``trace_id``, with the exception's details merged at the top level
(``rule`` for RACI violations, ``errors`` for bulk and field failures).

See: https://tools.ietf.org/html/rfc7807
"""

from http import HTTPStatus
from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from app.config import settings
from app.core.errors.exceptions import AppException, ValidationError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

LOCATION_PREFIXES = ("body", "query", "path")


class FieldError(BaseModel):
    """One failing request field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """Problem Details body, documented for OpenAPI consumers.

    Attributes:
        type: URI of the error type's documentation
        title: HTTP reason phrase
        status: HTTP status code
        detail: What went wrong in this occurrence
        instance: Request path
        code: Error category, e.g. BAD_REQUEST or ACCESS_DENIED
        error_code: Specific failure, e.g. last_owner
        trace_id: The request id
    """

    model_config = ConfigDict(extra="allow")

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    code: str | None = None
    error_code: str | None = None
    trace_id: str | None = None


def problem(
    request: Request,
    status_code: int,
    detail: str,
    code: str,
    error_code: str,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build a Problem Details response.

    Keys in ``extra`` never override the standard members.
    """
    body = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=HTTPStatus(status_code).phrase,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        code=code,
        error_code=error_code,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)
    for key, value in (extra or {}).items():
        body.setdefault(key, value)
    return JSONResponse(status_code=status_code, content=body)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "app_exception",
        code=exc.code,
        error_code=exc.error_code,
        status_code=exc.status_code,
        message=exc.message,
        path=request.url.path,
    )
    return problem(
        request,
        exc.status_code,
        exc.message,
        exc.code,
        exc.error_code,
        exc.details,
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render schema failures as a 422 with one entry per field.

    The ``body``/``query``/``path`` location prefix is dropped from field names.
    """
    errors = []
    for error in exc.errors():
        location = [
            str(part) for part in error.get("loc", ()) if part not in LOCATION_PREFIXES
        ]
        errors.append(
            FieldError(
                field=".".join(location) or "request",
                message=error.get("msg", "Invalid value"),
                type=error.get("type"),
            ).model_dump(exclude_none=True)
        )
    return await app_exception_handler(
        request, ValidationError("Request validation failed", errors=errors)
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and answer with a bare 500; nothing internal is exposed."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return problem(
        request,
        500,
        "An unexpected error occurred",
        "INTERNAL_SERVER_ERROR",
        "internal_error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, cast("ExceptionHandler", app_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", request_validation_handler)
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
