"""End-to-end tests for matrices, duplication and validation views."""

from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.audit.models import AuditLog
from app.modules.assignments.models import Assignment
from tests.factories import add_member


pytestmark = pytest.mark.integration


@pytest.fixture
def matrix_url(matrix) -> str:
    return f"/api/v1/matrices/{matrix.id}"


@pytest.fixture
async def staffed_matrix(authenticated_client: AsyncClient, db, organization, matrix_url):
    """A matrix with a small task tree and one valid, one incomplete task."""
    lead = await add_member(db, organization, name="Priya Shah")
    dev = await add_member(db, organization, name="Tom Reed")

    group = await authenticated_client.post(
        f"{matrix_url}/task-groups", json={"name": "Discovery", "color": "#3366ff"}
    )
    root = await authenticated_client.post(
        f"{matrix_url}/tasks", json={"name": "Research", "group_ids": [group.json()["id"]]}
    )
    child = await authenticated_client.post(
        f"{matrix_url}/tasks",
        json={"name": "Interviews", "parent_task_id": root.json()["id"]},
    )
    await authenticated_client.post(
        f"{matrix_url}/assignments/bulk",
        json={
            "assignments": [
                {
                    "task_id": root.json()["id"],
                    "member_id": str(lead.id),
                    "raci_role": "ACCOUNTABLE",
                },
                {
                    "task_id": root.json()["id"],
                    "member_id": str(dev.id),
                    "raci_role": "RESPONSIBLE",
                    "workload": 40,
                },
                {
                    "task_id": child.json()["id"],
                    "member_id": str(dev.id),
                    "raci_role": "CONSULTED",
                },
            ]
        },
    )
    return {"root": root.json(), "child": child.json(), "group": group.json()}


class TestMatrixLifecycle:
    """Tests for create, update, archive and delete."""

    @pytest.mark.asyncio
    async def test_create_starts_at_version_one(self, authenticated_client: AsyncClient, project):
        response = await authenticated_client.post(
            f"/api/v1/projects/{project.id}/matrices", json={"name": "Launch plan"}
        )

        assert response.status_code == 201
        assert response.json()["version"] == 1
        assert response.json()["project_id"] == str(project.id)

    @pytest.mark.asyncio
    async def test_every_update_bumps_version(
        self, authenticated_client: AsyncClient, matrix_url
    ):
        first = await authenticated_client.patch(matrix_url, json={"name": "Renamed"})
        second = await authenticated_client.patch(matrix_url, json={"description": "Notes"})

        assert first.json()["version"] == 2
        assert second.json()["version"] == 3
        assert second.json()["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_archive_and_restore(
        self, authenticated_client: AsyncClient, project, matrix, matrix_url
    ):
        list_url = f"/api/v1/projects/{project.id}/matrices"

        archived = await authenticated_client.post(f"{matrix_url}/archive")
        hidden = await authenticated_client.get(list_url)
        shown = await authenticated_client.get(list_url, params={"include_archived": True})
        still_readable = await authenticated_client.get(matrix_url)
        restored = await authenticated_client.post(f"{matrix_url}/restore")

        assert archived.json()["archived_at"] is not None
        assert hidden.json() == []
        assert [m["id"] for m in shown.json()] == [str(matrix.id)]
        assert still_readable.status_code == 200
        assert restored.json()["archived_at"] is None

    @pytest.mark.asyncio
    async def test_deleted_matrix_disappears(
        self, authenticated_client: AsyncClient, db, project, matrix, matrix_url
    ):
        deleted = await authenticated_client.delete(matrix_url)
        fetched = await authenticated_client.get(matrix_url)
        listed = await authenticated_client.get(
            f"/api/v1/projects/{project.id}/matrices", params={"include_archived": True}
        )

        assert deleted.status_code == 204
        assert fetched.status_code == 404
        assert listed.json() == []
        result = await db.execute(
            select(AuditLog.action).where(AuditLog.resource_id == str(matrix.id))
        )
        assert "DELETE_MATRIX" in result.scalars().all()


class TestDuplicate:
    """Tests for deep-copying a matrix."""

    @pytest.mark.asyncio
    async def test_copy_has_new_ids_and_same_findings(
        self, authenticated_client: AsyncClient, matrix, matrix_url, staffed_matrix
    ):
        response = await authenticated_client.post(
            f"{matrix_url}/duplicate", json={"new_name": "Launch plan (copy)"}
        )

        assert response.status_code == 201
        copy = response.json()
        assert copy["id"] != str(matrix.id)
        assert copy["version"] == 1
        assert copy["task_count"] == 2
        assert copy["assignment_count"] == 3

        copy_url = f"/api/v1/matrices/{copy['id']}"
        original = await authenticated_client.get(f"{matrix_url}/validation/summary")
        original_summary = original.json()
        copy_summary = (await authenticated_client.get(f"{copy_url}/validation/summary")).json()
        assert copy_summary["errors_by_type"] == original_summary["errors_by_type"]
        assert copy_summary["warnings_by_type"] == original_summary["warnings_by_type"]

        copied_tasks = (await authenticated_client.get(f"{copy_url}/tasks")).json()
        original_ids = {staffed_matrix["root"]["id"], staffed_matrix["child"]["id"]}
        assert original_ids.isdisjoint(task["id"] for task in copied_tasks)

    @pytest.mark.asyncio
    async def test_copy_keeps_parents_and_groups(
        self, authenticated_client: AsyncClient, matrix_url, staffed_matrix
    ):
        response = await authenticated_client.post(
            f"{matrix_url}/duplicate", json={"new_name": "Copy"}
        )
        copy_url = f"/api/v1/matrices/{response.json()['id']}"

        tree = (await authenticated_client.get(f"{copy_url}/tasks/hierarchy")).json()
        groups = (await authenticated_client.get(f"{copy_url}/task-groups")).json()

        assert [node["name"] for node in tree] == ["Research"]
        assert [child["name"] for child in tree[0]["children"]] == ["Interviews"]
        assert [group["name"] for group in groups] == ["Discovery"]
        assert groups[0]["id"] != staffed_matrix["group"]["id"]
        assert tree[0]["group_ids"] == [groups[0]["id"]]

    @pytest.mark.asyncio
    async def test_copied_assignments_are_stamped_with_caller(
        self, authenticated_client: AsyncClient, db, user, matrix_url, staffed_matrix
    ):
        response = await authenticated_client.post(
            f"{matrix_url}/duplicate", json={"new_name": "Copy"}
        )

        result = await db.execute(
            select(Assignment.assigned_by).where(
                Assignment.matrix_id == UUID(response.json()["id"])
            )
        )
        assert set(result.scalars().all()) == {user.id}


class TestGridAndValidation:
    """Tests for the grid payload and validation endpoints."""

    @pytest.mark.asyncio
    async def test_grid_bundles_everything(
        self, authenticated_client: AsyncClient, matrix_url, staffed_matrix
    ):
        response = await authenticated_client.get(f"{matrix_url}/grid")

        assert response.status_code == 200
        grid = response.json()
        assert [task["name"] for task in grid["tasks"]] == ["Research", "Interviews"]
        assert len(grid["members"]) == 3
        assert len(grid["assignments"]) == 3
        assert [group["task_count"] for group in grid["task_groups"]] == [1]
        assert grid["validation"]["total_tasks"] == 2

    @pytest.mark.asyncio
    async def test_validation_views(
        self, authenticated_client: AsyncClient, matrix_url, staffed_matrix
    ):
        child_id = staffed_matrix["child"]["id"]

        result = (await authenticated_client.get(f"{matrix_url}/validation")).json()
        summary = (await authenticated_client.get(f"{matrix_url}/validation/summary")).json()
        issues = (await authenticated_client.get(f"{matrix_url}/validation/issues")).json()

        assert result["is_valid"] is False
        assert [(e["task_id"], e["code"]) for e in result["errors"]] == [
            (child_id, "NO_ACCOUNTABLE")
        ]
        assert summary["error_count"] == 1
        assert summary["errors_by_type"] == {
            "NO_ACCOUNTABLE": 1,
            "MULTIPLE_ACCOUNTABLE": 0,
            "DUPLICATE_ASSIGNMENT": 0,
        }
        assert summary["warnings_by_type"] == {"NO_RESPONSIBLE": 1}
        assert issues["tasks_with_errors"] == [child_id]
        assert issues["tasks_with_warnings"] == [child_id]
