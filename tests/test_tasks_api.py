"""
Tasks API Tests
===============

End-to-end tests for /api/tasks through the FastAPI app, with the
persistence gateway replaced by the in-memory fake.
"""

import uuid

import pytest
from httpx import AsyncClient

from app.db.gateway import STATS_TABLE, TASKS_TABLE


async def _create(client: AsyncClient, **body) -> dict:
    response = await client.post("/api/tasks", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_create_converts_minutes(self, client: AsyncClient, gateway):
        response = await client.post(
            "/api/tasks",
            json={"title": "Inbox zero", "duration": 1.5, "tags": ["admin"]},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Task created successfully"
        data = body["data"]
        assert data["title"] == "Inbox zero"
        assert data["duration"] == 90
        assert data["tags"] == ["admin"]
        uuid.UUID(data["id"])
        assert "created_at" in data
        assert len(gateway.tables[TASKS_TABLE]) == 1

    @pytest.mark.asyncio
    async def test_default_tags(self, client: AsyncClient):
        data = await _create(client, title="Walk", duration=20, tags=[])

        assert data["tags"] == ["general"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, field",
        [({"duration": 10}, "title"), ({"title": "No duration"}, "duration")],
    )
    async def test_missing_fields_rejected(self, client: AsyncClient, gateway, body, field):
        response = await client.post("/api/tasks", json=body)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["field"] == field
        assert gateway.writes() == []

    @pytest.mark.asyncio
    async def test_non_numeric_duration_rejected(self, client: AsyncClient, gateway):
        response = await client.post("/api/tasks", json={"title": "x", "duration": "soon"})

        assert response.status_code == 422
        assert gateway.calls == []
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_boolean_duration_rejected(self, client: AsyncClient, gateway):
        """JSON booleans are not coerced into a one-minute duration."""
        response = await client.post("/api/tasks", json={"title": "x", "duration": True})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "duration" in error["field"]
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_oversized_duration_rejected(self, client: AsyncClient, gateway):
        response = await client.post("/api/tasks", json={"title": "x", "duration": 1e308})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Duration is too large"
        assert gateway.writes() == []


class TestListTasks:
    @pytest.mark.asyncio
    async def test_newest_first(self, client: AsyncClient):
        older = await _create(client, title="older", duration=1)
        newer = await _create(client, title="newer", duration=1)

        response = await client.get("/api/tasks")

        assert response.status_code == 200
        ids = [t["id"] for t in response.json()["data"]]
        assert ids == [newer["id"], older["id"]]

    @pytest.mark.asyncio
    async def test_gateway_failure_is_503(self, client: AsyncClient, gateway):
        gateway.fail_on("select_all", TASKS_TABLE)

        response = await client.get("/api/tasks")

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "GATEWAY_ERROR"
        assert error["operation"] == "list_tasks"


class TestDeleteTask:
    @pytest.mark.asyncio
    async def test_delete_then_not_found(self, client: AsyncClient):
        task = await _create(client, title="Temp", duration=1)

        first = await client.delete(f"/api/tasks/{task['id']}")
        second = await client.delete(f"/api/tasks/{task['id']}")

        assert first.status_code == 200
        assert first.json()["data"]["id"] == task["id"]
        assert second.status_code == 404
        assert second.json()["error"]["code"] == "TASK_001"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, client: AsyncClient):
        response = await client.delete("/api/tasks/not-a-uuid")

        assert response.status_code == 404


class TestCompleteTask:
    @pytest.mark.asyncio
    async def test_complete_removes_and_counts(self, client: AsyncClient, gateway):
        task = await _create(client, title="Ship it", duration=2)

        response = await client.post("/api/tasks/complete", json={"taskId": task["id"]})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["completedTasks"] == 1
        assert data["task"]["id"] == task["id"]
        assert data["task"]["duration"] == 120
        assert gateway.tables[TASKS_TABLE] == {}

        stats = await client.get("/api/tasks/stats")
        assert stats.json()["data"] == {"completedTasks": 1}

    @pytest.mark.asyncio
    async def test_complete_twice(self, client: AsyncClient):
        task = await _create(client, title="Once", duration=2)

        await client.post("/api/tasks/complete", json={"taskId": task["id"]})
        again = await client.post("/api/tasks/complete", json={"taskId": task["id"]})

        assert again.status_code == 404
        stats = await client.get("/api/tasks/stats")
        assert stats.json()["data"]["completedTasks"] == 1

    @pytest.mark.asyncio
    async def test_missing_task_id(self, client: AsyncClient):
        response = await client.post("/api/tasks/complete", json={})

        assert response.status_code == 400
        assert response.json()["error"]["field"] == "taskId"

    @pytest.mark.asyncio
    async def test_increment_failure_is_reported_as_inconsistency(self, client: AsyncClient, gateway):
        task = await _create(client, title="Partial", duration=2)
        gateway.fail_on("atomic_increment", STATS_TABLE)

        response = await client.post("/api/tasks/complete", json={"taskId": task["id"]})

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "STATS_001"
        assert error["task_id"] == task["id"]


class TestStats:
    @pytest.mark.asyncio
    async def test_fresh_stats_are_zero(self, client: AsyncClient, gateway):
        response = await client.get("/api/tasks/stats")

        assert response.status_code == 200
        assert response.json()["data"] == {"completedTasks": 0}
        assert gateway.completed_count() == 0

    @pytest.mark.asyncio
    async def test_plain_delete_does_not_count(self, client: AsyncClient):
        task = await _create(client, title="Dropped", duration=1)
        await client.delete(f"/api/tasks/{task['id']}")

        response = await client.get("/api/tasks/stats")

        assert response.json()["data"]["completedTasks"] == 0
