"""Tests for the task endpoints."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from team_service.main import create_app
from team_service.models import Task

from .conftest import make_client


async def create(client: AsyncClient, **body) -> dict:
    response = await client.post("/api/tasks", json=body)
    assert response.status_code == 201, response.text
    return response.json()["task"]


@pytest.mark.asyncio
async def test_task_lifecycle(client: AsyncClient):
    created = await create(client, title="write spec")
    assert created["status"] == "pending"
    task_id = created["id"]

    response = await client.get(f"/api/tasks/{task_id}")
    assert response.status_code == 200
    assert response.json()["task"]["title"] == "write spec"

    response = await client.put(f"/api/tasks/{task_id}", json={"status": "done"})
    assert response.status_code == 200
    updated = response.json()["task"]
    assert updated["status"] == "done"
    assert updated["title"] == "write spec"

    response = await client.delete(f"/api/tasks/{task_id}")
    assert response.status_code == 200
    assert response.json()["message"] == "Task deleted"
    assert response.json()["task"]["id"] == task_id

    response = await client.get(f"/api/tasks/{task_id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Task not found"}


@pytest.mark.asyncio
async def test_labels_are_assigned_by_server(client: AsyncClient):
    created = await create(
        client, title="sneaky", team_name="beta", service_name="other", status="open"
    )
    assert created["team_name"] == "alpha"
    assert created["service_name"] == "api"
    assert created["status"] == "open"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": None, "description": "x"}])
async def test_create_requires_title(client: AsyncClient, body: dict):
    response = await client.post("/api/tasks", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Title is required"}


@pytest.mark.asyncio
async def test_put_without_fields_only_touches_updated_at(client: AsyncClient):
    created = await create(client, title="keep me", description="as is", status="open")

    response = await client.put(f"/api/tasks/{created['id']}", json={})
    assert response.status_code == 200
    updated = response.json()["task"]

    for field in ("id", "title", "description", "status", "team_name", "created_at"):
        assert updated[field] == created[field]
    assert datetime.fromisoformat(updated["updated_at"]) >= datetime.fromisoformat(
        created["updated_at"]
    )


@pytest.mark.asyncio
async def test_put_null_fields_keep_previous_values(client: AsyncClient):
    created = await create(client, title="original", description="desc")

    response = await client.put(
        f"/api/tasks/{created['id']}", json={"title": None, "description": "new"}
    )
    updated = response.json()["task"]
    assert updated["title"] == "original"
    assert updated["description"] == "new"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
async def test_unknown_task_is_not_found(client: AsyncClient, method: str):
    kwargs = {"json": {"status": "done"}} if method == "PUT" else {}
    response = await client.request(method, "/api/tasks/424242", **kwargs)
    assert response.status_code == 404
    assert response.json() == {"error": "Task not found"}


@pytest.mark.asyncio
async def test_non_numeric_id_is_rejected(client: AsyncClient):
    response = await client.get("/api/tasks/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request"}


@pytest.mark.asyncio
async def test_other_team_tasks_are_invisible(client: AsyncClient, other_team_client: AsyncClient):
    mine = await create(client, title="alpha task")
    theirs = await create(other_team_client, title="beta task")
    assert theirs["team_name"] == "beta"

    listing = (await client.get("/api/tasks")).json()
    assert [t["title"] for t in listing["tasks"]] == ["alpha task"]
    assert all(t["team_name"] == "alpha" for t in listing["tasks"])

    for method in ("GET", "PUT", "DELETE"):
        kwargs = {"json": {"title": "hijack"}} if method == "PUT" else {}
        response = await client.request(method, f"/api/tasks/{theirs['id']}", **kwargs)
        assert response.status_code == 404

    response = await other_team_client.get(f"/api/tasks/{theirs['id']}")
    assert response.json()["task"]["title"] == "beta task"
    response = await other_team_client.get(f"/api/tasks/{mine['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_is_newest_first(client: AsyncClient):
    for title in ("first", "second", "third"):
        await create(client, title=title)

    response = await client.get("/api/tasks")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert [t["title"] for t in data["tasks"]] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_list_breaks_timestamp_ties_by_id(client: AsyncClient, store):
    same_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    async with store.session() as session:
        for title in ("a", "b", "c"):
            session.add(
                Task(
                    title=title,
                    team_name="alpha",
                    service_name="api",
                    created_at=same_time,
                    updated_at=same_time,
                )
            )
        await session.commit()

    tasks = (await client.get("/api/tasks")).json()["tasks"]
    ids = [t["id"] for t in tasks]
    assert ids == sorted(ids, reverse=True)
    assert [t["title"] for t in tasks] == ["c", "b", "a"]


@pytest.mark.asyncio
async def test_list_is_capped(settings, store, cache_layer):
    capped = settings.model_copy(update={"task_list_limit": 2})
    async with make_client(create_app(capped, store, cache_layer)) as client:
        for i in range(3):
            await create(client, title=f"task {i}")
        data = (await client.get("/api/tasks")).json()
    assert data["count"] == 2
    assert [t["title"] for t in data["tasks"]] == ["task 2", "task 1"]


@pytest.mark.asyncio
async def test_task_writes_invalidate_listing_key(client: AsyncClient, fake_redis):
    fake_redis.data["tasks:alpha"] = "[]"
    created = await create(client, title="invalidate")
    assert "tasks:alpha" not in fake_redis.data

    fake_redis.data["tasks:alpha"] = "[]"
    await client.put(f"/api/tasks/{created['id']}", json={"status": "done"})
    assert "tasks:alpha" not in fake_redis.data

    fake_redis.data["tasks:alpha"] = "[]"
    await client.delete(f"/api/tasks/{created['id']}")
    assert "tasks:alpha" not in fake_redis.data


@pytest.mark.asyncio
async def test_failed_write_keeps_listing_key(client: AsyncClient, fake_redis):
    fake_redis.data["tasks:alpha"] = "[]"
    response = await client.put("/api/tasks/424242", json={"status": "done"})
    assert response.status_code == 404
    assert "tasks:alpha" in fake_redis.data


@pytest.mark.asyncio
async def test_listing_always_reads_the_store(client: AsyncClient, fake_redis):
    await create(client, title="first")
    await client.get("/api/tasks")

    # A write made while Redis is down cannot invalidate anything
    fake_redis.up = False
    await create(client, title="second")
    fake_redis.up = True
    assert (await client.get("/health")).json()["checks"]["redis"] == "connected"

    fake_redis.data["tasks:alpha"] = '{"tasks": [{"title": "stale"}], "count": 1}'
    data = (await client.get("/api/tasks")).json()
    assert data["count"] == 2
    assert [t["title"] for t in data["tasks"]] == ["second", "first"]
    assert "get" not in fake_redis.calls


@pytest.mark.asyncio
async def test_task_writes_survive_cache_outage(client: AsyncClient, fake_redis):
    fake_redis.up = False

    created = await create(client, title="no cache")
    response = await client.put(f"/api/tasks/{created['id']}", json={"status": "done"})
    assert response.status_code == 200
    data = (await client.get("/api/tasks")).json()
    assert data["count"] == 1
    response = await client.delete(f"/api/tasks/{created['id']}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_store_failure_returns_500(settings, broken_store, cache_layer):
    async with make_client(create_app(settings, broken_store, cache_layer)) as client:
        response = await client.get("/api/tasks")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch tasks"}

        response = await client.post("/api/tasks", json={"title": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create task"}

        response = await client.get("/api/tasks/1")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch task"}
