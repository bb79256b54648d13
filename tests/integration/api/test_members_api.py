"""End-to-end tests for membership management and last-owner protection."""

from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.core.permissions.roles import MemberRole
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.organizations.models import Member, MemberStatus
from app.modules.tasks.models import Task, TaskStatus
from app.modules.users.models import User
from tests.factories import UserFactory, add_member


pytestmark = pytest.mark.integration


def members_url(organization) -> str:
    return f"/api/v1/organizations/{organization.id}/members"


class TestLastOwner:
    """Every organization keeps at least one active owner."""

    @pytest.mark.asyncio
    async def test_last_owner_cannot_be_removed(
        self, authenticated_client: AsyncClient, organization, owner
    ):
        response = await authenticated_client.delete(f"{members_url(organization)}/{owner.id}")

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "FORBIDDEN"
        assert body["error_code"] == "last_owner"
        assert "Cannot remove the last owner" in body["detail"]

    @pytest.mark.asyncio
    async def test_last_owner_cannot_be_demoted(
        self, authenticated_client: AsyncClient, organization, owner
    ):
        response = await authenticated_client.patch(
            f"{members_url(organization)}/{owner.id}", json={"role": "ADMIN"}
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "last_owner"

    @pytest.mark.asyncio
    async def test_last_owner_cannot_be_deactivated(
        self, authenticated_client: AsyncClient, organization, owner
    ):
        response = await authenticated_client.patch(
            f"{members_url(organization)}/{owner.id}", json={"status": "INACTIVE"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_can_step_down_once_another_owner_exists(
        self, authenticated_client: AsyncClient, db, organization, owner
    ):
        await add_member(db, organization, role=MemberRole.OWNER)

        response = await authenticated_client.patch(
            f"{members_url(organization)}/{owner.id}", json={"role": "ADMIN"}
        )

        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"

    @pytest.mark.asyncio
    async def test_inactive_owners_do_not_count(
        self, authenticated_client: AsyncClient, db, organization, owner
    ):
        await add_member(db, organization, role=MemberRole.OWNER, status=MemberStatus.INACTIVE)

        response = await authenticated_client.patch(
            f"{members_url(organization)}/{owner.id}", json={"role": "MEMBER"}
        )

        assert response.status_code == 403


class TestMemberManagement:
    """Tests for adding, listing and removing members."""

    @pytest.mark.asyncio
    async def test_admin_adds_existing_user(
        self, authenticated_client: AsyncClient, db, organization
    ):
        newcomer = UserFactory.build()
        db.add(newcomer)
        await db.commit()

        response = await authenticated_client.post(
            members_url(organization),
            json={"user_id": str(newcomer.id), "role": "VIEWER", "job_title": "Analyst"},
        )

        assert response.status_code == 201
        assert response.json()["role"] == "VIEWER"
        assert response.json()["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_duplicate_membership_conflicts(
        self, authenticated_client: AsyncClient, organization, owner, user
    ):
        response = await authenticated_client.post(
            members_url(organization),
            json={"user_id": str(user.id), "job_title": "Again"},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "member_exists"

    @pytest.mark.asyncio
    async def test_regular_member_cannot_manage_members(
        self, client: AsyncClient, db, organization, owner, auth_for
    ):
        member = await add_member(db, organization)
        user = await db.get(User, member.user_id)

        response = await client.post(
            members_url(organization),
            json={"user_id": str(owner.user_id), "job_title": "Nope"},
            headers=auth_for(user),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "insufficient_role"

    @pytest.mark.asyncio
    async def test_list_filters_by_status(
        self, authenticated_client: AsyncClient, db, organization, owner
    ):
        await add_member(db, organization, status=MemberStatus.INVITED)

        everyone = await authenticated_client.get(members_url(organization))
        invited = await authenticated_client.get(
            members_url(organization), params={"status": "INVITED"}
        )

        assert len(everyone.json()) == 2
        assert [m["status"] for m in invited.json()] == ["INVITED"]
        assert everyone.json()[0]["user"]["email"].endswith("@example.com")

    @pytest.mark.asyncio
    async def test_removal_deletes_assignments(
        self, authenticated_client: AsyncClient, db, organization, owner, matrix
    ):
        leaving = await add_member(db, organization)
        task = Task(matrix_id=matrix.id, name="Handover", order_index=0)
        db.add(task)
        await db.flush()
        db.add(
            Assignment(
                matrix_id=matrix.id,
                task_id=task.id,
                member_id=leaving.id,
                raci_role=RaciRole.RESPONSIBLE,
            )
        )
        await db.commit()
        leaving_id = leaving.id

        response = await authenticated_client.delete(f"{members_url(organization)}/{leaving_id}")

        assert response.status_code == 204
        remaining = await db.execute(
            select(func.count()).select_from(Assignment).where(Assignment.member_id == leaving_id)
        )
        assert remaining.scalar_one() == 0
        members = await db.execute(
            select(func.count()).select_from(Member).where(Member.id == leaving_id)
        )
        assert members.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_project_owner_cannot_be_removed(
        self, authenticated_client: AsyncClient, db, organization, owner, project
    ):
        await add_member(db, organization, role=MemberRole.OWNER)

        # The original owner still owns the project
        response = await authenticated_client.delete(f"{members_url(organization)}/{owner.id}")

        assert response.status_code == 409
        assert response.json()["error_code"] == "member_owns_projects"


class TestWorkload:
    """Tests for the member workload view."""

    @pytest.mark.asyncio
    async def test_open_assignments_only(
        self, authenticated_client: AsyncClient, db, organization, matrix
    ):
        member = await add_member(db, organization)
        open_task = Task(matrix_id=matrix.id, name="Open", order_index=0)
        done_task = Task(
            matrix_id=matrix.id, name="Done", order_index=1, status=TaskStatus.COMPLETED
        )
        db.add_all([open_task, done_task])
        await db.flush()
        db.add_all(
            [
                Assignment(
                    matrix_id=matrix.id,
                    task_id=open_task.id,
                    member_id=member.id,
                    raci_role=RaciRole.RESPONSIBLE,
                    workload=30,
                ),
                Assignment(
                    matrix_id=matrix.id,
                    task_id=open_task.id,
                    member_id=member.id,
                    raci_role=RaciRole.ACCOUNTABLE,
                ),
                Assignment(
                    matrix_id=matrix.id,
                    task_id=done_task.id,
                    member_id=member.id,
                    raci_role=RaciRole.RESPONSIBLE,
                    workload=50,
                ),
            ]
        )
        await db.commit()

        response = await authenticated_client.get(
            f"{members_url(organization)}/{member.id}/workload"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_assignments"] == 2
        assert data["total_workload"] == 30
        assert data["by_role"] == {
            "RESPONSIBLE": 1,
            "ACCOUNTABLE": 1,
            "CONSULTED": 0,
            "INFORMED": 0,
        }
        assert {UUID(a["task_id"]) for a in data["assignments"]} == {open_task.id}
