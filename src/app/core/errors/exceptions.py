"""Application errors.

Each class fixes an HTTP status and a broad ``code`` that clients switch
on; ``error_code`` names the specific failure (``last_owner``,
``task_cycle``, ...). Anything in ``details`` is merged into the problem
response body.
"""

from typing import Any


class AppException(Exception):
    """Base class for errors rendered as Problem Details.

    Attributes:
        message: Human-readable explanation
        code: Error category, e.g. NOT_FOUND
        error_code: Specific machine-readable failure
        status_code: HTTP status of the response
        details: Extra members for the response body
    """

    message: str = "An unexpected error occurred"
    code: str = "INTERNAL_SERVER_ERROR"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = dict(details or {})
        super().__init__(self.message)


class BadRequestError(AppException):
    message = "Bad request"
    code = "BAD_REQUEST"
    error_code = "bad_request"
    status_code = 400


class RaciRuleViolation(BadRequestError):
    """A write that would break a RACI rule.

    Example:
        raise RaciRuleViolation(
            "Task already has an Accountable person.",
            rule="MULTIPLE_ACCOUNTABLE",
        )
    """

    error_code = "raci_rule_violation"

    def __init__(self, message: str | None = None, rule: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.rule = rule
        if rule:
            self.details["rule"] = rule


class UnauthorizedError(AppException):
    message = "Authentication required"
    code = "UNAUTHORIZED"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """The caller reached the organization but their role is too low."""

    message = "Access forbidden"
    code = "FORBIDDEN"
    error_code = "forbidden"
    status_code = 403


class AccessDeniedError(ForbiddenError):
    """The caller has neither a membership nor a consultancy grant."""

    message = "You do not have access to this organization"
    code = "ACCESS_DENIED"
    error_code = "access_denied"


class NotFoundError(AppException):
    """A resource is missing, deleted, or outside the caller's scope.

    Example:
        raise NotFoundError("Matrix not found", resource="matrix", resource_id=str(matrix_id))
    """

    message = "Resource not found"
    code = "NOT_FOUND"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        if resource:
            self.details["resource"] = resource
        if resource_id:
            self.details["resource_id"] = resource_id


class ConflictError(AppException):
    """The write collides with existing data, usually a unique index."""

    message = "Resource conflict"
    code = "CONFLICT"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Request data failed schema validation; ``errors`` lists the fields."""

    message = "Validation error"
    code = "BAD_REQUEST"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        if errors:
            self.details["errors"] = errors
