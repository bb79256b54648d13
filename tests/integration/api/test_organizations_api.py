"""End-to-end tests for organizations."""

from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.permissions.roles import MemberRole
from app.modules.organizations.models import Member
from app.modules.tasks.models import Task, TaskStatus
from app.modules.users.models import User
from tests.factories import add_member


pytestmark = pytest.mark.integration


class TestCreateOrganization:
    """Tests for organization creation."""

    @pytest.mark.asyncio
    async def test_creator_becomes_owner(self, client: AsyncClient, db, user, auth_for):
        response = await client.post(
            "/api/v1/organizations",
            json={"name": "Acme Corp", "slug": "acme-corp"},
            headers=auth_for(user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "acme-corp"
        assert data["type"] == "CLIENT"

        result = await db.execute(
            select(Member.role).where(
                Member.organization_id == UUID(data["id"]), Member.user_id == user.id
            )
        )
        assert result.scalar_one() == MemberRole.OWNER

    @pytest.mark.asyncio
    async def test_taken_slug_conflicts(
        self, authenticated_client: AsyncClient, organization
    ):
        response = await authenticated_client.post(
            "/api/v1/organizations",
            json={"name": "Copycat", "slug": organization.slug},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "slug_exists"

    @pytest.mark.asyncio
    async def test_invalid_slug(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/v1/organizations", json={"name": "Bad", "slug": "Not A Slug"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_new_organization_is_listed(
        self, authenticated_client: AsyncClient, organization
    ):
        await authenticated_client.post(
            "/api/v1/organizations", json={"name": "Beta Labs", "slug": "beta-labs"}
        )

        response = await authenticated_client.get("/api/v1/organizations")

        assert {org["slug"] for org in response.json()} == {organization.slug, "beta-labs"}


class TestOrganizationAdministration:
    """Tests for updates, stats, archiving and audit logs."""

    @pytest.mark.asyncio
    async def test_regular_member_cannot_update(
        self, client: AsyncClient, db, organization, owner, auth_for
    ):
        member = await add_member(db, organization)
        user = await db.get(User, member.user_id)

        response = await client.patch(
            f"/api/v1/organizations/{organization.id}",
            json={"name": "Hijacked"},
            headers=auth_for(user),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "insufficient_role"

    @pytest.mark.asyncio
    async def test_stats(self, authenticated_client: AsyncClient, db, organization, matrix):
        await add_member(db, organization)
        db.add_all(
            [
                Task(matrix_id=matrix.id, name="Open", order_index=0),
                Task(
                    matrix_id=matrix.id,
                    name="Done",
                    order_index=1,
                    status=TaskStatus.COMPLETED,
                ),
            ]
        )
        await db.commit()

        url = f"/api/v1/organizations/{organization.id}/stats"
        response = await authenticated_client.get(url)

        assert response.json() == {
            "member_count": 2,
            "project_count": 1,
            "matrix_count": 1,
            "active_task_count": 1,
        }

    @pytest.mark.asyncio
    async def test_admin_cannot_archive(
        self, client: AsyncClient, db, organization, owner, auth_for
    ):
        admin = await add_member(db, organization, role=MemberRole.ADMIN)
        user = await db.get(User, admin.user_id)

        response = await client.post(
            f"/api/v1/organizations/{organization.id}/archive", headers=auth_for(user)
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "owner_required"

    @pytest.mark.asyncio
    async def test_owner_archives_once(self, authenticated_client: AsyncClient, organization):
        url = f"/api/v1/organizations/{organization.id}/archive"

        first = await authenticated_client.post(url)
        second = await authenticated_client.post(url)
        listed = await authenticated_client.get("/api/v1/organizations")

        assert first.status_code == 200
        assert first.json()["archived_at"] is not None
        assert second.status_code == 409
        assert second.json()["error_code"] == "already_archived"
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_audit_logs_record_changes(
        self, authenticated_client: AsyncClient, organization, user
    ):
        await authenticated_client.patch(
            f"/api/v1/organizations/{organization.id}", json={"name": "Renamed Org"}
        )

        response = await authenticated_client.get(
            f"/api/v1/organizations/{organization.id}/audit-logs",
            params={"resource_type": "ORGANIZATION"},
        )

        assert response.status_code == 200
        entries = response.json()
        assert [entry["action"] for entry in entries] == ["UPDATE_ORGANIZATION"]
        assert entries[0]["user_id"] == str(user.id)
        assert entries[0]["changes"]["name"]["after"] == "Renamed Org"
