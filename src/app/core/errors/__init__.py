"""Error handling module with RFC 7807 Problem Details."""

from app.core.errors.exceptions import (
    AccessDeniedError,
    AppException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RaciRuleViolation,
    UnauthorizedError,
    ValidationError,
)
from app.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AccessDeniedError",
    "AppException",
    "BadRequestError",
    "ConflictError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "NotFoundError",
    "ProblemDetail",
    "RaciRuleViolation",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
