"""Tests for access resolution against stored memberships and grants."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit.models import ConsultancyAuditLog
from app.core.errors import AccessDeniedError, NotFoundError
from app.core.permissions.checker import AccessResolver
from app.core.permissions.roles import AccessLevel, MemberRole
from app.modules.organizations.models import ConsultancyAccess, MemberStatus
from tests.factories import OrganizationFactory, UserFactory, add_member


pytestmark = pytest.mark.integration


class TestResolveAccess:
    """Tests for AccessResolver.resolve_access."""

    @pytest.mark.asyncio
    async def test_active_member_gets_their_role(self, db: AsyncSession, organization):
        member = await add_member(db, organization, role=MemberRole.ADMIN)

        access = await AccessResolver(db).resolve_access(member.user_id, organization.id)

        assert access.member_id == member.id
        assert access.role == "ADMIN"
        assert access.is_consultancy_access is False

    @pytest.mark.asyncio
    async def test_non_member_is_denied(self, db: AsyncSession, organization):
        outsider = UserFactory.build()
        db.add(outsider)
        await db.commit()

        with pytest.raises(AccessDeniedError):
            await AccessResolver(db).resolve_access(outsider.id, organization.id)

    @pytest.mark.asyncio
    async def test_inactive_member_is_denied(self, db: AsyncSession, organization):
        member = await add_member(db, organization, status=MemberStatus.INACTIVE)

        with pytest.raises(AccessDeniedError):
            await AccessResolver(db).resolve_access(member.user_id, organization.id)

    @pytest.mark.asyncio
    async def test_consultancy_without_membership_uses_access_level(
        self, db: AsyncSession, organization, consultant
    ):
        """A super-user with no Member row acts with the grant's access level."""
        access = await AccessResolver(db).resolve_access(consultant.id, organization.id)

        assert access.is_consultancy_access is True
        assert access.member_id is None
        assert access.role == AccessLevel.ADMIN.value
        assert access.organization_id == organization.id

    @pytest.mark.asyncio
    async def test_consultancy_with_membership_uses_member_role(
        self, db: AsyncSession, organization
    ):
        """Consultancy is a fallback: a membership wins, flagged as consultancy."""
        member = await add_member(db, organization, role=MemberRole.VIEWER)
        db.add(
            ConsultancyAccess(
                user_id=member.user_id,
                can_access_all_orgs=True,
                access_level=AccessLevel.ADMIN,
            )
        )
        await db.commit()

        access = await AccessResolver(db).resolve_access(member.user_id, organization.id)

        assert access.member_id == member.id
        assert access.role == "VIEWER"
        assert access.is_consultancy_access is True

    @pytest.mark.asyncio
    async def test_grant_without_all_orgs_needs_membership(self, db: AsyncSession, organization):
        user = UserFactory.build()
        db.add(user)
        await db.flush()
        db.add(ConsultancyAccess(user_id=user.id, can_access_all_orgs=False))
        await db.commit()

        with pytest.raises(AccessDeniedError):
            await AccessResolver(db).resolve_access(user.id, organization.id)

    @pytest.mark.asyncio
    async def test_consultancy_on_unknown_organization(self, db: AsyncSession, consultant):
        with pytest.raises(NotFoundError):
            await AccessResolver(db).resolve_access(consultant.id, uuid4())


class TestDerivedResolvers:
    """Tests for project and matrix scoped resolution."""

    @pytest.mark.asyncio
    async def test_matrix_access_walks_the_chain(self, db: AsyncSession, owner, project, matrix):
        access = await AccessResolver(db).resolve_matrix_access(owner.user_id, matrix.id)

        assert access.organization_id == project.organization_id
        assert access.project_id == project.id
        assert access.matrix_id == matrix.id
        assert access.role == "OWNER"

    @pytest.mark.asyncio
    async def test_unknown_matrix(self, db: AsyncSession, owner):
        with pytest.raises(NotFoundError) as exc_info:
            await AccessResolver(db).resolve_matrix_access(owner.user_id, uuid4())

        assert exc_info.value.error_code == "matrix_not_found"

    @pytest.mark.asyncio
    async def test_unknown_project(self, db: AsyncSession, owner):
        with pytest.raises(NotFoundError) as exc_info:
            await AccessResolver(db).resolve_project_access(owner.user_id, uuid4())

        assert exc_info.value.error_code == "project_not_found"


class TestAccessibleOrganizations:
    """Tests for listing organizations."""

    @pytest.mark.asyncio
    async def test_member_sees_only_their_organizations(
        self, db: AsyncSession, owner, organization
    ):
        db.add(OrganizationFactory.build())
        await db.commit()

        organizations = await AccessResolver(db).list_accessible_organizations(owner.user_id)

        assert [org.id for org in organizations] == [organization.id]

    @pytest.mark.asyncio
    async def test_archived_organizations_are_hidden(self, db: AsyncSession, owner, organization):
        organization.archived_at = datetime.now(UTC)
        await db.commit()

        organizations = await AccessResolver(db).list_accessible_organizations(owner.user_id)

        assert organizations == []

    @pytest.mark.asyncio
    async def test_consultant_sees_every_active_organization_by_name(
        self, db: AsyncSession, consultant
    ):
        zeta = OrganizationFactory.build(name="Zeta")
        alpha = OrganizationFactory.build(name="Alpha")
        db.add_all([zeta, alpha])
        await db.commit()

        organizations = await AccessResolver(db).list_accessible_organizations(consultant.id)

        assert [org.name for org in organizations] == ["Alpha", "Zeta"]


class TestScopedRoutes:
    """Tests for scope resolution through the HTTP surface."""

    @pytest.mark.asyncio
    async def test_missing_token_is_unauthorized(self, client: AsyncClient, organization):
        response = await client.get(f"/api/v1/organizations/{organization.id}")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_outsider_is_denied(self, client: AsyncClient, db, organization, auth_for):
        outsider = UserFactory.build()
        db.add(outsider)
        await db.commit()

        response = await client.get(
            f"/api/v1/organizations/{organization.id}", headers=auth_for(outsider)
        )

        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_analytics_without_organization_id(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/v1/analytics/organization")

        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_consultant_reads_and_writes_without_membership(
        self, client: AsyncClient, db, organization, owner, consultant, auth_for
    ):
        """Consultancy writes succeed and leave a consultancy audit trail."""
        headers = auth_for(consultant)

        read = await client.get(f"/api/v1/organizations/{organization.id}", headers=headers)
        update = await client.patch(
            f"/api/v1/organizations/{organization.id}",
            json={"name": "Renamed by consultant"},
            headers=headers,
        )

        assert read.status_code == 200
        assert update.status_code == 200
        assert update.json()["name"] == "Renamed by consultant"

        result = await db.execute(
            select(ConsultancyAuditLog.action).where(
                ConsultancyAuditLog.client_organization_id == organization.id
            )
        )
        assert result.scalars().all() == ["UPDATE_ORGANIZATION"]

    @pytest.mark.asyncio
    async def test_consultant_without_membership_cannot_create_projects(
        self, client: AsyncClient, organization, owner, consultant, auth_for
    ):
        response = await client.post(
            f"/api/v1/organizations/{organization.id}/projects",
            json={"name": "Consultant project"},
            headers=auth_for(consultant),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "membership_required"
