"""
HTTP contract: status codes, payload shapes and error translation.
"""

import pytest

from smarttodo.engine import StoreError, StoreTimeout


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "Server is running"}


@pytest.mark.asyncio
async def test_create_and_get(client):
    response = await client.post(
        "/api/tasks",
        json={"title": "Write tests", "priority": "high", "due_date": "2026-03-12"},
    )
    assert response.status_code == 201
    body = response.json()
    assert set(body) == {
        "id", "title", "description", "priority", "status", "due_date", "created_at", "updated_at",
    }
    assert body["priority"] == "high"
    assert body["status"] == "pending"
    assert body["description"] is None
    assert body["due_date"] == "2026-03-12"
    assert body["created_at"] == body["updated_at"]

    response = await client.get(f"/api/tasks/{body['id']}")
    assert response.status_code == 200
    assert response.json() == body


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"title": ""}, {"description": "no title"}])
async def test_create_without_title_is_400(client, payload):
    response = await client.post("/api/tasks", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "Title is required"


@pytest.mark.asyncio
async def test_create_with_bad_enum_is_400(client):
    response = await client.post("/api/tasks", json={"title": "x", "priority": "urgent"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "body.priority"


@pytest.mark.asyncio
async def test_create_duplicate_id_is_409(client):
    assert (await client.post("/api/tasks", json={"id": "1", "title": "a"})).status_code == 201
    response = await client.post("/api/tasks", json={"id": "1", "title": "b"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_with_reserved_id_is_400(client):
    response = await client.post("/api/tasks", json={"id": "urgent", "title": "x"})
    assert response.status_code == 400
    assert response.json()["detail"] == "id 'urgent' is reserved or contains '/'"


@pytest.mark.asyncio
async def test_get_missing_is_404(client):
    response = await client.get("/api/tasks/missing")
    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found: missing"


@pytest.mark.asyncio
async def test_list(client, clock):
    await client.post("/api/tasks", json={"title": "older"})
    clock.advance(minutes=1)
    await client.post("/api/tasks", json={"title": "newer"})

    response = await client.get("/api/tasks")
    assert response.status_code == 200
    assert [t["title"] for t in response.json()] == ["newer", "older"]


@pytest.mark.asyncio
async def test_update_is_partial(client, clock):
    created = (
        await client.post("/api/tasks", json={"title": "a", "description": "keep me"})
    ).json()
    clock.advance(minutes=1)

    response = await client.put(f"/api/tasks/{created['id']}", json={"status": "completed"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["description"] == "keep me"
    assert body["updated_at"] == "2026-03-10T09:01:00Z"


@pytest.mark.asyncio
async def test_update_ignores_unknown_fields(client):
    created = (await client.post("/api/tasks", json={"title": "a"})).json()
    response = await client.put(
        f"/api/tasks/{created['id']}", json={"title": "b", "created_at": "1999-01-01T00:00:00Z"}
    )
    assert response.status_code == 200
    assert response.json()["created_at"] == created["created_at"]


@pytest.mark.asyncio
async def test_update_missing_is_404(client):
    response = await client.put("/api/tasks/missing", json={"title": "x"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_null_title_is_400(client):
    created = (await client.post("/api/tasks", json={"title": "a"})).json()
    response = await client.put(f"/api/tasks/{created['id']}", json={"title": None})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete(client):
    created = (await client.post("/api/tasks", json={"title": "bye"})).json()

    response = await client.delete(f"/api/tasks/{created['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Task deleted successfully", "id": created["id"]}

    assert (await client.get(f"/api/tasks/{created['id']}")).status_code == 404
    assert (await client.delete(f"/api/tasks/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_complete_reopen_and_history(client):
    created = (await client.post("/api/tasks", json={"title": "cycle"})).json()
    task_id = created["id"]

    assert (await client.post(f"/api/tasks/{task_id}/complete")).json()["status"] == "completed"
    assert (await client.post(f"/api/tasks/{task_id}/reopen")).json()["status"] == "pending"
    await client.delete(f"/api/tasks/{task_id}")

    response = await client.get(f"/api/tasks/{task_id}/history")
    assert response.status_code == 200
    assert [e["action"] for e in response.json()] == ["created", "completed", "reopened", "deleted"]

    assert (await client.post("/api/tasks/missing/complete")).status_code == 404


@pytest.mark.asyncio
async def test_filter_by_priority_and_status(client):
    await client.post("/api/tasks", json={"title": "h", "priority": "high"})
    await client.post("/api/tasks", json={"title": "l", "priority": "low", "status": "completed"})

    high = (await client.get("/api/tasks/priority/high")).json()
    assert [t["title"] for t in high] == ["h"]
    completed = (await client.get("/api/tasks/status/completed")).json()
    assert [t["title"] for t in completed] == ["l"]

    assert (await client.get("/api/tasks/priority/urgent")).status_code == 400


@pytest.mark.asyncio
async def test_date_range(client):
    await client.post("/api/tasks", json={"title": "in", "due_date": "2026-03-11"})
    await client.post("/api/tasks", json={"title": "out", "due_date": "2026-04-01"})

    response = await client.get(
        "/api/tasks/date-range", params={"start_date": "2026-03-10", "end_date": "2026-03-11"}
    )
    assert response.status_code == 200
    assert [t["title"] for t in response.json()] == ["in"]

    response = await client.get("/api/tasks/date-range", params={"start_date": "2026-03-10"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Start date and end date are required"


@pytest.mark.asyncio
async def test_search(client):
    await client.post("/api/tasks", json={"title": "Project Proposal"})
    await client.post("/api/tasks", json={"title": "Other", "description": "see the proposal"})
    await client.post("/api/tasks", json={"title": "Unrelated"})

    response = await client.get("/api/tasks/search", params={"q": "proposal"})
    assert response.status_code == 200
    assert sorted(t["title"] for t in response.json()) == ["Other", "Project Proposal"]

    assert (await client.get("/api/tasks/search")).status_code == 400
    assert (await client.get("/api/tasks/search", params={"q": ""})).status_code == 400


@pytest.mark.asyncio
async def test_urgent_overdue_and_statistics(client):
    # The frozen clock's today is 2026-03-10.
    await client.post("/api/tasks", json={"title": "soon", "due_date": "2026-03-12"})
    await client.post("/api/tasks", json={"title": "late", "due_date": "2026-03-01"})
    await client.post("/api/tasks", json={"title": "today", "due_date": "2026-03-10",
                                          "priority": "high"})

    urgent = (await client.get("/api/tasks/urgent")).json()
    assert [t["title"] for t in urgent] == ["today", "soon"]
    overdue = (await client.get("/api/tasks/overdue")).json()
    assert [t["title"] for t in overdue] == ["late"]

    stats = (await client.get("/api/tasks/statistics")).json()
    assert stats == {
        "total_tasks": 3,
        "pending_tasks": 3,
        "completed_tasks": 0,
        "high_priority_pending": 1,
        "due_today": 1,
        "overdue": 1,
    }


@pytest.mark.asyncio
async def test_store_error_is_500_without_detail(client, store, monkeypatch):
    async def broken_list():
        raise StoreError("connection to 10.0.0.5 refused")

    monkeypatch.setattr(store, "list", broken_list)

    response = await client.get("/api/tasks")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal storage error"}


@pytest.mark.asyncio
async def test_store_timeout_is_503_and_retryable(client, store, monkeypatch):
    async def slow_list():
        raise StoreTimeout("list", 10.0)

    monkeypatch.setattr(store, "list", slow_list)

    response = await client.get("/api/tasks")
    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"


@pytest.mark.asyncio
async def test_metrics(client):
    await client.post("/api/tasks", json={"title": "counted"})
    response = await client.get("/api/metrics")
    assert response.status_code == 200
    body = response.json()
    assert body["counters"]["tasks.created"] == 1
    assert body["timings"]["db.query.duration_ms"]["count"] > 0
