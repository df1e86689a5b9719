"""API tests over the ASGI app with an in-memory database."""

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from taskhub.db.session import get_db_session
from taskhub.main import app
from taskhub.middleware.logging import REQUEST_ID_HEADER

API = "/api/v1"


@pytest.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def create_project(client: AsyncClient, **fields) -> dict:
    response = await client.post(
        f"{API}/projects/", json={"name": "Launch", "status": "in_progress", **fields}
    )
    assert response.status_code == 201
    return response.json()


async def create_task(client: AsyncClient, **fields) -> dict:
    response = await client.post(f"{API}/tasks/", json={"title": "Ship logo", **fields})
    assert response.status_code == 201
    return response.json()


async def block(client: AsyncClient, entity_type: str, entity_id: str, reason: str = "Waiting on client"):
    return await client.post(
        f"{API}/blockers/",
        json={"entity_type": entity_type, "entity_id": entity_id, "reason": reason},
    )


class TestBlockerLifecycle:
    async def test_block_and_resolve_task(self, client) -> None:
        project = await create_project(client)
        task = await create_task(client, project_id=project["id"])

        response = await block(client, "task", task["id"])
        assert response.status_code == 201
        blocker = response.json()
        assert blocker["status"] == "active"
        assert blocker["prev_status"] == "not_started"
        assert blocker["captures_prev"] is True

        assert (await client.get(f"{API}/tasks/{task['id']}")).json()["status"] == "blocked"
        assert (await client.get(f"{API}/projects/{project['id']}")).json()["status"] == "blocked"

        response = await client.post(f"{API}/blockers/{blocker['id']}/resolve", json={})
        assert response.status_code == 200
        assert response.json()["status"] == "cleared"
        assert response.json()["cleared_reason"] is None

        assert (await client.get(f"{API}/tasks/{task['id']}")).json()["status"] == "in_progress"
        assert (await client.get(f"{API}/projects/{project['id']}")).json()["status"] == "in_progress"

    async def test_list_blockers(self, client) -> None:
        task = await create_task(client)
        first = (await block(client, "task", task["id"], "first")).json()
        await block(client, "task", task["id"], "second")
        await client.post(f"{API}/blockers/{first['id']}/resolve", json={"cleared_reason": "done"})

        params = {"entity_type": "task", "entity_id": task["id"]}
        active = await client.get(f"{API}/blockers/", params=params)
        everything = await client.get(
            f"{API}/blockers/", params={**params, "include_cleared": "true"}
        )

        assert [b["reason"] for b in active.json()] == ["second"]
        assert len(everything.json()) == 2

    async def test_update_blocker(self, client) -> None:
        task = await create_task(client)
        blocker = (await block(client, "task", task["id"])).json()

        response = await client.patch(
            f"{API}/blockers/{blocker['id']}", json={"waiting_on": "Legal"}
        )

        assert response.status_code == 200
        assert response.json()["waiting_on"] == "Legal"
        assert response.json()["reason"] == "Waiting on client"


class TestErrors:
    async def test_missing_blocker_is_404(self, client) -> None:
        response = await client.get(f"{API}/blockers/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_block_missing_entity_is_404(self, client) -> None:
        response = await block(client, "project", str(uuid4()))

        assert response.status_code == 404

    async def test_blank_reason_is_422(self, client) -> None:
        task = await create_task(client)

        response = await block(client, "task", task["id"], reason="   ")

        assert response.status_code == 422

    @pytest.mark.parametrize("reason", [None, "   "])
    async def test_null_or_blank_blocker_reason_update_is_422(self, client, reason) -> None:
        task = await create_task(client)
        blocker = (await block(client, "task", task["id"])).json()

        response = await client.patch(f"{API}/blockers/{blocker['id']}", json={"reason": reason})

        assert response.status_code == 422
        stored = await client.get(f"{API}/blockers/{blocker['id']}")
        assert stored.json()["reason"] == "Waiting on client"

    @pytest.mark.parametrize("field", ["title", "status", "priority"])
    async def test_null_task_field_is_422(self, client, field: str) -> None:
        task = await create_task(client)

        response = await client.patch(f"{API}/tasks/{task['id']}", json={field: None})

        assert response.status_code == 422

    async def test_blocked_task_status_change_is_409(self, client) -> None:
        task = await create_task(client)
        await block(client, "task", task["id"])

        response = await client.patch(f"{API}/tasks/{task['id']}", json={"status": "done"})

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    async def test_task_cannot_be_set_blocked_directly(self, client) -> None:
        task = await create_task(client)

        response = await client.patch(f"{API}/tasks/{task['id']}", json={"status": "blocked"})

        assert response.status_code == 422


class TestProjects:
    async def test_unarchive_reconciles_project(self, client) -> None:
        project = await create_project(client)
        task = await create_task(client, project_id=project["id"])
        await block(client, "task", task["id"])
        await client.post(f"{API}/projects/{project['id']}/archive")
        await client.post(f"{API}/projects/{project['id']}/unarchive")

        response = await client.post(f"{API}/projects/{project['id']}/reconcile")

        assert response.status_code == 200
        assert response.json() == {
            "project_id": project["id"],
            "status": "blocked",
            "changed": False,
        }

    async def test_archived_project_ignores_blocked_tasks(self, client) -> None:
        project = await create_project(client)
        task = await create_task(client, project_id=project["id"])
        archived = await client.post(f"{API}/projects/{project['id']}/archive")
        assert archived.json()["status"] == "archived"

        await block(client, "task", task["id"])

        assert (await client.get(f"{API}/projects/{project['id']}")).json()["status"] == "archived"

    async def test_delete_task(self, client) -> None:
        task = await create_task(client)

        response = await client.delete(f"{API}/tasks/{task['id']}")

        assert response.status_code == 204
        assert (await client.get(f"{API}/tasks/{task['id']}")).status_code == 404


class TestActivityAndNotifications:
    async def test_activity_history(self, client) -> None:
        task = await create_task(client)
        await block(client, "task", task["id"])

        response = await client.get(
            f"{API}/activities", params={"entity_type": "task", "entity_id": task["id"]}
        )

        assert response.status_code == 200
        assert sorted(a["action"] for a in response.json()) == ["create", "status_change"]

    async def test_unknown_activity_entity_type_is_422(self, client) -> None:
        response = await client.get(
            f"{API}/activities", params={"entity_type": "user", "entity_id": str(uuid4())}
        )

        assert response.status_code == 422

    async def test_read_and_mark_notifications(self, client) -> None:
        assignee = str(uuid4())
        task = await create_task(client, assignee_id=assignee)
        await block(client, "task", task["id"])

        unread = await client.get(f"{API}/notifications", params={"user_id": assignee})
        assert [n["notification_type"] for n in unread.json()] == ["entity_blocked"]
        assert unread.json()[0]["target_id"] == task["id"]

        response = await client.post(
            f"{API}/notifications/mark-read", json={"user_id": assignee}
        )

        assert response.json() == {"updated": 1}
        unread = await client.get(f"{API}/notifications", params={"user_id": assignee})
        assert unread.json() == []


class TestHealth:
    async def test_health(self, client) -> None:
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_request_id_is_echoed(self, client) -> None:
        response = await client.get(f"{API}/health", headers={REQUEST_ID_HEADER: "req-123"})

        assert response.headers[REQUEST_ID_HEADER] == "req-123"

    async def test_ready(self, client) -> None:
        response = await client.get(f"{API}/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "healthy"}
