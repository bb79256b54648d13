"""Scope-resolution and role-gate dependencies.

Each route declares the scope it needs. The dependency reads the scoping
identifier from the path (or query string), resolves the caller's access
through AccessResolver and hands the route an AccessContext:

    @router.get("/matrices/{matrix_id}")
    async def get_matrix(matrix_id: UUID, access: MatrixAccess) -> ...:
        ...

Admin-only routes depend on ``AdminAccess`` (or ``OwnerAccess``), which
add a role gate on top of organization scope.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Request

from app.api.dependencies import DBSession
from app.core.auth.dependencies import CurrentUser
from app.core.errors import BadRequestError, ForbiddenError
from app.core.permissions.checker import AccessResolver
from app.core.permissions.context import AccessContext, ResolvedAccess
from app.core.permissions.roles import MemberRole
from app.modules.users.models import User


logger = structlog.get_logger()


def get_access_resolver(db: DBSession) -> AccessResolver:
    """Dependency that provides the access resolver."""
    return AccessResolver(db)


Resolver = Annotated[AccessResolver, Depends(get_access_resolver)]


def _scope_id(request: Request, name: str) -> UUID:
    """Read a scoping identifier from the path or query string.

    Raises:
        BadRequestError: If the identifier is absent or malformed
    """
    raw = request.path_params.get(name) or request.query_params.get(name)
    if not raw:
        raise BadRequestError(
            f"{name} is required",
            error_code="missing_scope",
            details={"parameter": name},
        )
    try:
        return UUID(str(raw))
    except ValueError:
        raise BadRequestError(
            f"{name} is not a valid identifier",
            error_code="invalid_scope",
            details={"parameter": name},
        ) from None


def _context(request: Request, user: User, access: ResolvedAccess) -> AccessContext:
    request.state.organization_id = access.organization_id
    structlog.contextvars.bind_contextvars(organization_id=str(access.organization_id))
    return AccessContext.build(
        user_id=user.id,
        email=user.email,
        access=access,
        request_id=getattr(request.state, "request_id", None),
    )


async def organization_scope(
    request: Request,
    user: CurrentUser,
    resolver: Resolver,
) -> AccessContext:
    """Resolve access from an ``organization_id`` parameter."""
    organization_id = _scope_id(request, "organization_id")
    access = await resolver.resolve_access(user.id, organization_id)
    return _context(request, user, access)


async def project_scope(
    request: Request,
    user: CurrentUser,
    resolver: Resolver,
) -> AccessContext:
    """Resolve access from a ``project_id`` parameter."""
    project_id = _scope_id(request, "project_id")
    access = await resolver.resolve_project_access(user.id, project_id)
    return _context(request, user, access)


async def matrix_scope(
    request: Request,
    user: CurrentUser,
    resolver: Resolver,
) -> AccessContext:
    """Resolve access from a ``matrix_id`` parameter."""
    matrix_id = _scope_id(request, "matrix_id")
    access = await resolver.resolve_matrix_access(user.id, matrix_id)
    return _context(request, user, access)


def require_role(
    required_role: MemberRole,
    scope: Callable[..., Awaitable[AccessContext]] = organization_scope,
) -> Callable[..., Awaitable[AccessContext]]:
    """Build a role gate on top of a scope dependency.

    Args:
        required_role: Minimum role in the hierarchy
        scope: Scope dependency producing the AccessContext

    Returns:
        A dependency that returns the context or raises ForbiddenError
    """

    async def role_gate(
        access: Annotated[AccessContext, Depends(scope)],
    ) -> AccessContext:
        if not access.can(required_role):
            logger.info(
                "role_gate_rejected",
                role=access.role,
                required_role=required_role.value,
            )
            raise ForbiddenError(
                f"This action requires the {required_role.value} role",
                error_code="insufficient_role",
                details={"required_role": required_role.value},
            )
        return access

    return role_gate


OrganizationAccess = Annotated[AccessContext, Depends(organization_scope)]
ProjectAccess = Annotated[AccessContext, Depends(project_scope)]
MatrixAccess = Annotated[AccessContext, Depends(matrix_scope)]
AdminAccess = Annotated[AccessContext, Depends(require_role(MemberRole.ADMIN))]
OwnerAccess = Annotated[AccessContext, Depends(require_role(MemberRole.OWNER))]
