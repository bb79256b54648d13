"""Per-request access context.

The scope dependencies build one AccessContext per request and pass it
explicitly to services; nothing about the current organization is kept
in process-wide state.
"""

from dataclasses import dataclass
from uuid import UUID

from app.core.errors import BadRequestError
from app.core.permissions.roles import MemberRole, has_permission


@dataclass(frozen=True, slots=True)
class ResolvedAccess:
    """Outcome of resolving a user's grant in one organization.

    ``member_id`` is None when a consultancy grant stands in for a
    missing membership; ``role`` then holds the grant's access level.
    """

    organization_id: UUID
    member_id: UUID | None
    role: str
    is_consultancy_access: bool
    project_id: UUID | None = None
    matrix_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class AccessContext:
    """Caller identity plus the access resolved for this request."""

    user_id: UUID
    email: str
    organization_id: UUID
    member_id: UUID | None
    role: str
    is_consultancy_access: bool
    project_id: UUID | None = None
    matrix_id: UUID | None = None
    request_id: str | None = None

    @classmethod
    def build(
        cls,
        user_id: UUID,
        email: str,
        access: ResolvedAccess,
        request_id: str | None = None,
    ) -> "AccessContext":
        return cls(
            user_id=user_id,
            email=email,
            organization_id=access.organization_id,
            member_id=access.member_id,
            role=access.role,
            is_consultancy_access=access.is_consultancy_access,
            project_id=access.project_id,
            matrix_id=access.matrix_id,
            request_id=request_id,
        )

    def can(self, required_role: MemberRole) -> bool:
        return has_permission(self.role, required_role)

    def require_project_id(self) -> UUID:
        """The project this request is scoped to.

        Raises:
            BadRequestError: If the request was not resolved through a project
        """
        if self.project_id is None:
            raise BadRequestError("Project scope required", error_code="missing_project_scope")
        return self.project_id

    def require_matrix_id(self) -> UUID:
        """The matrix this request is scoped to.

        Raises:
            BadRequestError: If the request was not resolved through a matrix
        """
        if self.matrix_id is None:
            raise BadRequestError("Matrix scope required", error_code="missing_matrix_scope")
        return self.matrix_id
