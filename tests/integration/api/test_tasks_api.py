"""End-to-end tests for tasks and the task hierarchy."""

from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.modules.tasks.models import Task


pytestmark = pytest.mark.integration


@pytest.fixture
def tasks_url(matrix) -> str:
    return f"/api/v1/matrices/{matrix.id}/tasks"


async def create_task(client: AsyncClient, url: str, name: str, **extra) -> dict:
    response = await client.post(url, json={"name": name, **extra})
    assert response.status_code == 201
    return response.json()


class TestCreateTask:
    """Tests for single task creation."""

    @pytest.mark.asyncio
    async def test_order_index_defaults_to_next_position(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        first = await create_task(authenticated_client, tasks_url, "Kickoff")
        second = await create_task(authenticated_client, tasks_url, "Planning")

        assert first["order_index"] == 0
        assert second["order_index"] == 1
        assert second["status"] == "NOT_STARTED"
        assert second["priority"] == "MEDIUM"

    @pytest.mark.asyncio
    async def test_unknown_parent_is_rejected(self, authenticated_client: AsyncClient, tasks_url):
        response = await authenticated_client.post(
            tasks_url, json={"name": "Orphan", "parent_task_id": str(uuid4())}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid_parent"

    @pytest.mark.asyncio
    async def test_completed_task_is_stamped(self, authenticated_client: AsyncClient, tasks_url):
        task = await create_task(authenticated_client, tasks_url, "Shipped", status="COMPLETED")

        assert task["completed_at"] is not None


class TestUpdateTask:
    """Tests for task updates and re-parenting."""

    @pytest.mark.asyncio
    async def test_task_cannot_be_its_own_parent(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        task = await create_task(authenticated_client, tasks_url, "Loop")

        response = await authenticated_client.patch(
            f"{tasks_url}/{task['id']}", json={"parent_task_id": task["id"]}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "self_parent"

    @pytest.mark.asyncio
    async def test_task_cannot_move_under_its_descendant(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        root = await create_task(authenticated_client, tasks_url, "Phase 1")
        child = await create_task(
            authenticated_client, tasks_url, "Design", parent_task_id=root["id"]
        )
        grandchild = await create_task(
            authenticated_client, tasks_url, "Wireframes", parent_task_id=child["id"]
        )

        response = await authenticated_client.patch(
            f"{tasks_url}/{root['id']}", json={"parent_task_id": grandchild["id"]}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "task_cycle"

    @pytest.mark.asyncio
    async def test_null_parent_detaches(self, authenticated_client: AsyncClient, tasks_url):
        root = await create_task(authenticated_client, tasks_url, "Phase 1")
        child = await create_task(
            authenticated_client, tasks_url, "Design", parent_task_id=root["id"]
        )

        response = await authenticated_client.patch(
            f"{tasks_url}/{child['id']}", json={"parent_task_id": None}
        )

        assert response.status_code == 200
        assert response.json()["parent_task_id"] is None

    @pytest.mark.asyncio
    async def test_completion_stamp_follows_status(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        task = await create_task(authenticated_client, tasks_url, "Review")
        url = f"{tasks_url}/{task['id']}"

        completed = await authenticated_client.patch(url, json={"status": "COMPLETED"})
        reopened = await authenticated_client.patch(url, json={"status": "IN_PROGRESS"})

        assert completed.json()["completed_at"] is not None
        assert reopened.json()["completed_at"] is None

    @pytest.mark.asyncio
    async def test_unknown_task_is_not_found(self, authenticated_client: AsyncClient, tasks_url):
        response = await authenticated_client.patch(
            f"{tasks_url}/{uuid4()}", json={"name": "Ghost"}
        )

        assert response.status_code == 404


class TestReorderAndBulk:
    """Tests for reordering and bulk creation."""

    @pytest.mark.asyncio
    async def test_reorder_sets_positions(self, authenticated_client: AsyncClient, tasks_url):
        a = await create_task(authenticated_client, tasks_url, "A")
        b = await create_task(authenticated_client, tasks_url, "B")
        c = await create_task(authenticated_client, tasks_url, "C")

        response = await authenticated_client.post(
            f"{tasks_url}/reorder", json={"task_ids": [c["id"], a["id"], b["id"]]}
        )

        assert response.status_code == 200
        assert [task["name"] for task in response.json()] == ["C", "A", "B"]
        assert [task["order_index"] for task in response.json()] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_reorder_rejects_repeated_ids(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        a = await create_task(authenticated_client, tasks_url, "A")

        response = await authenticated_client.post(
            f"{tasks_url}/reorder", json={"task_ids": [a["id"], a["id"]]}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "duplicate_task_ids"

    @pytest.mark.asyncio
    async def test_reorder_rejects_foreign_ids(self, authenticated_client: AsyncClient, tasks_url):
        response = await authenticated_client.post(
            f"{tasks_url}/reorder", json={"task_ids": [str(uuid4())]}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid_task_ids"

    @pytest.mark.asyncio
    async def test_bulk_create_continues_order(
        self, authenticated_client: AsyncClient, tasks_url
    ):
        parent = await create_task(authenticated_client, tasks_url, "Phase 1")

        response = await authenticated_client.post(
            f"{tasks_url}/bulk",
            json={
                "tasks": [
                    {"name": "Research", "parent_task_id": parent["id"]},
                    {"name": "Interviews", "priority": "HIGH"},
                ]
            },
        )

        assert response.status_code == 201
        assert [task["order_index"] for task in response.json()] == [1, 2]

    @pytest.mark.asyncio
    async def test_bulk_with_bad_parent_writes_nothing(
        self, authenticated_client: AsyncClient, db, matrix, tasks_url
    ):
        response = await authenticated_client.post(
            f"{tasks_url}/bulk",
            json={
                "tasks": [
                    {"name": "Fine"},
                    {"name": "Broken", "parent_task_id": str(uuid4())},
                ]
            },
        )

        assert response.status_code == 400
        assert response.json()["errors"] == ["Task 1: Parent task not found or deleted"]
        result = await db.execute(select(Task.id).where(Task.matrix_id == matrix.id))
        assert result.scalars().all() == []


class TestHierarchyAndDelete:
    """Tests for the nested view and soft deletion."""

    @pytest.mark.asyncio
    async def test_hierarchy_nests_children(self, authenticated_client: AsyncClient, tasks_url):
        root = await create_task(authenticated_client, tasks_url, "Phase 1")
        await create_task(authenticated_client, tasks_url, "Design", parent_task_id=root["id"])
        await create_task(authenticated_client, tasks_url, "Phase 2")

        response = await authenticated_client.get(f"{tasks_url}/hierarchy")

        tree = response.json()
        assert [node["name"] for node in tree] == ["Phase 1", "Phase 2"]
        assert [child["name"] for child in tree[0]["children"]] == ["Design"]

    @pytest.mark.asyncio
    async def test_delete_is_soft_and_promotes_children(
        self, authenticated_client: AsyncClient, db, tasks_url
    ):
        root = await create_task(authenticated_client, tasks_url, "Phase 1")
        child = await create_task(
            authenticated_client, tasks_url, "Design", parent_task_id=root["id"]
        )

        deleted = await authenticated_client.delete(f"{tasks_url}/{root['id']}")
        listing = await authenticated_client.get(tasks_url)
        tree = await authenticated_client.get(f"{tasks_url}/hierarchy")

        assert deleted.status_code == 204
        assert [task["id"] for task in listing.json()] == [child["id"]]
        assert [node["name"] for node in tree.json()] == ["Design"]
        result = await db.execute(select(Task.deleted_at).where(Task.id == UUID(root["id"])))
        assert result.scalar_one() is not None
        assert (await authenticated_client.get(f"{tasks_url}/{root['id']}")).status_code == 404
