"""Tests for the role hierarchy and access context."""

from uuid import uuid4

import pytest

from app.core.errors import BadRequestError
from app.core.permissions.context import AccessContext, ResolvedAccess
from app.core.permissions.roles import (
    ROLE_HIERARCHY,
    AccessLevel,
    MemberRole,
    has_permission,
    parse_role,
)


pytestmark = pytest.mark.unit


class TestHasPermission:
    """Tests for has_permission."""

    @pytest.mark.parametrize("role", list(MemberRole))
    def test_every_role_satisfies_itself(self, role):
        """A role always meets its own requirement."""
        assert has_permission(role, role) is True

    def test_hierarchy_order(self):
        """Roles are ordered VIEWER < MEMBER < ADMIN < OWNER."""
        assert [role.value for role in ROLE_HIERARCHY] == ["VIEWER", "MEMBER", "ADMIN", "OWNER"]

    def test_monotonic(self):
        """If a role passes a requirement, every higher role passes it too."""
        for i, required in enumerate(ROLE_HIERARCHY):
            for j, actual in enumerate(ROLE_HIERARCHY):
                assert has_permission(actual, required) is (j >= i)

    def test_accepts_plain_strings(self):
        """Stored role strings are compared like enum members."""
        assert has_permission("OWNER", MemberRole.ADMIN) is True
        assert has_permission("MEMBER", MemberRole.ADMIN) is False

    @pytest.mark.parametrize("role", ["SUPERUSER", "", "owner", None])
    def test_unknown_roles_never_pass(self, role):
        """Unrecognized roles fail even the lowest requirement."""
        assert has_permission(role, MemberRole.VIEWER) is False

    @pytest.mark.parametrize("level", [AccessLevel.VIEW, AccessLevel.EDIT])
    def test_consultancy_view_and_edit_fail_role_gates(self, level):
        """VIEW and EDIT grants are not member roles."""
        assert has_permission(level.value, MemberRole.VIEWER) is False

    def test_consultancy_admin_acts_as_admin(self):
        """An ADMIN grant passes ADMIN gates but not OWNER ones."""
        assert has_permission(AccessLevel.ADMIN.value, MemberRole.ADMIN) is True
        assert has_permission(AccessLevel.ADMIN.value, MemberRole.OWNER) is False


class TestParseRole:
    """Tests for parse_role."""

    def test_known_role(self):
        assert parse_role("ADMIN") is MemberRole.ADMIN

    def test_unknown_role(self):
        assert parse_role("EDIT") is None


class TestAccessContext:
    """Tests for AccessContext."""

    def test_build_copies_resolved_access(self):
        """The context carries the resolution plus caller identity."""
        resolved = ResolvedAccess(
            organization_id=uuid4(),
            member_id=None,
            role=AccessLevel.ADMIN.value,
            is_consultancy_access=True,
            project_id=uuid4(),
        )
        user_id = uuid4()

        context = AccessContext.build(user_id, "c@example.com", resolved, request_id="req-1")

        assert context.user_id == user_id
        assert context.organization_id == resolved.organization_id
        assert context.member_id is None
        assert context.is_consultancy_access is True
        assert context.project_id == resolved.project_id
        assert context.matrix_id is None
        assert context.request_id == "req-1"

    def test_can_uses_hierarchy(self):
        """can() delegates to the role hierarchy."""
        context = AccessContext(
            user_id=uuid4(),
            email="m@example.com",
            organization_id=uuid4(),
            member_id=uuid4(),
            role=MemberRole.MEMBER.value,
            is_consultancy_access=False,
        )

        assert context.can(MemberRole.VIEWER) is True
        assert context.can(MemberRole.ADMIN) is False

    def test_required_scopes(self):
        """A context resolved through a matrix yields its project and matrix ids."""
        project_id, matrix_id = uuid4(), uuid4()
        context = AccessContext(
            user_id=uuid4(),
            email="m@example.com",
            organization_id=uuid4(),
            member_id=uuid4(),
            role=MemberRole.MEMBER.value,
            is_consultancy_access=False,
            project_id=project_id,
            matrix_id=matrix_id,
        )

        assert context.require_project_id() == project_id
        assert context.require_matrix_id() == matrix_id

    def test_missing_scope_is_a_bad_request(self):
        """An organization-scoped context cannot stand in for a matrix scope."""
        context = AccessContext(
            user_id=uuid4(),
            email="m@example.com",
            organization_id=uuid4(),
            member_id=uuid4(),
            role=MemberRole.OWNER.value,
            is_consultancy_access=False,
        )

        with pytest.raises(BadRequestError) as exc_info:
            context.require_matrix_id()
        assert exc_info.value.error_code == "missing_matrix_scope"

        with pytest.raises(BadRequestError) as exc_info:
            context.require_project_id()
        assert exc_info.value.error_code == "missing_project_scope"
