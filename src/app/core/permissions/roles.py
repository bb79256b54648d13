"""Organization roles and the role hierarchy.

Roles form a total order: VIEWER < MEMBER < ADMIN < OWNER. Consultancy
grants carry an AccessLevel instead; only its ADMIN value coincides
with a member role, so VIEW and EDIT grants never satisfy a role gate.
"""

import enum


class MemberRole(str, enum.Enum):
    """Role of a member inside one organization."""

    VIEWER = "VIEWER"
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"

    @property
    def rank(self) -> int:
        return ROLE_HIERARCHY.index(self)


class AccessLevel(str, enum.Enum):
    """Access level of a cross-organization consultancy grant."""

    VIEW = "VIEW"
    EDIT = "EDIT"
    ADMIN = "ADMIN"


ROLE_HIERARCHY: tuple[MemberRole, ...] = (
    MemberRole.VIEWER,
    MemberRole.MEMBER,
    MemberRole.ADMIN,
    MemberRole.OWNER,
)


def parse_role(value: str | MemberRole | None) -> MemberRole | None:
    """Return the MemberRole for ``value``, or None if it is not a known role."""
    if value is None:
        return None
    try:
        return MemberRole(value)
    except ValueError:
        return None


def has_permission(actual_role: str | MemberRole | None, required_role: MemberRole) -> bool:
    """Check whether ``actual_role`` is at least ``required_role``.

    Unrecognized roles, including consultancy VIEW/EDIT levels, never
    pass; they are not treated as the lowest privilege.

    Args:
        actual_role: The caller's effective role
        required_role: The minimum role the operation needs

    Returns:
        True if the caller's role ranks at or above the required role
    """
    role = parse_role(actual_role)
    if role is None:
        return False
    return role.rank >= MemberRole(required_role).rank
