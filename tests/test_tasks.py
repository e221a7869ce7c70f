from __future__ import annotations

import math

import pytest
from fastapi.testclient import TestClient

from gigconnect_api.app.memory_storage import InMemoryDocumentStore


def test_task_lifecycle(client: TestClient, clock) -> None:
    payload = {
        "title": "Logo design",
        "category": "Graphic Design",
        "budget": 50,
        "deadline": clock.day(1),
        "description": "...",
        "creatorEmail": "a@x.com",
    }
    create_response = client.post("/api/v1/tasks", json=payload)
    assert create_response.status_code == 201
    body = create_response.json()
    assert body["message"] == "Task created successfully"
    task_id = body["taskId"]

    fetched = client.get(f"/api/v1/tasks/{task_id}")
    assert fetched.status_code == 200
    task = fetched.json()
    assert task["_id"] == task_id
    for key, value in payload.items():
        assert task[key] == value
    assert task["createdAt"].startswith("2026-03-10T12:00:00")
    assert "updatedAt" not in task
    assert "creatorName" not in task

    delete_response = client.delete(f"/api/v1/tasks/{task_id}")
    assert delete_response.status_code == 204
    assert delete_response.content == b""

    missing = client.get(f"/api/v1/tasks/{task_id}")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Task not found."}


def test_create_keeps_extra_fields_but_not_server_fields(client: TestClient, task_payload) -> None:
    response = client.post(
        "/api/v1/tasks",
        json=task_payload(skills=["figma"], createdAt="1999-01-01T00:00:00Z"),
    )
    task = client.get(f"/api/v1/tasks/{response.json()['taskId']}").json()
    assert task["skills"] == ["figma"]
    assert task["createdAt"].startswith("2026-03-10")


def test_create_rejects_negative_budget(client: TestClient, task_payload) -> None:
    response = client.post("/api/v1/tasks", json=task_payload(budget=-10))
    assert response.status_code == 400
    assert response.json()["message"] == "Budget must be a positive number."


def test_create_rejects_non_numeric_budget(client: TestClient, task_payload) -> None:
    for budget in ("50", True):
        response = client.post("/api/v1/tasks", json=task_payload(budget=budget))
        assert response.status_code == 400
        assert response.json()["message"] == "Budget must be a positive number."


def test_create_rejects_past_deadline(client: TestClient, task_payload, clock) -> None:
    response = client.post("/api/v1/tasks", json=task_payload(deadline=clock.day(-1)))
    assert response.status_code == 400
    assert response.json()["message"] == "Deadline must be a valid date and set to a future date."


def test_create_accepts_deadline_today(client: TestClient, task_payload, clock) -> None:
    response = client.post("/api/v1/tasks", json=task_payload(deadline=clock.day(0)))
    assert response.status_code == 201


def test_create_rejects_unparseable_deadline(client: TestClient, task_payload) -> None:
    response = client.post("/api/v1/tasks", json=task_payload(deadline="next friday"))
    assert response.status_code == 400
    assert response.json()["message"] == "Deadline must be a valid date and set to a future date."


def test_create_rejects_unknown_category(client: TestClient, task_payload) -> None:
    response = client.post("/api/v1/tasks", json=task_payload(category="Plumbing"))
    assert response.status_code == 400
    message = response.json()["message"]
    assert message.startswith("Invalid category. Allowed categories are: Web Development,")
    assert message.endswith("General.")


def test_create_reports_missing_fields_first(client: TestClient) -> None:
    response = client.post(
        "/api/v1/tasks",
        json={"title": "", "category": "General", "budget": -1, "creatorEmail": "a@x.com"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Missing required task fields: title, deadline, description."
    assert body["errors"] == [
        "Missing required task fields: title, deadline, description.",
        "Budget must be a positive number.",
    ]


def test_create_rejects_non_json_body(client: TestClient) -> None:
    response = client.post(
        "/api/v1/tasks",
        content=b"title=Logo",
        headers={"Content-Type": "text/plain"},
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Request body is missing or not in JSON format.")


def test_get_rejects_malformed_id(client: TestClient) -> None:
    response = client.get("/api/v1/tasks/not-an-object-id")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid Task ID format."


def test_list_tasks_paginates_by_deadline(client: TestClient, create_task, clock) -> None:
    for offset in (5, 1, 3, 2, 4):
        create_task(title=f"Task {offset}", deadline=clock.day(offset))

    first = client.get("/api/v1/tasks", params={"page": 1, "limit": 2})
    assert first.status_code == 200
    body = first.json()
    assert body["totalTasks"] == 5
    assert body["totalPages"] == math.ceil(5 / 2)
    assert body["currentPage"] == 1
    assert [task["title"] for task in body["tasks"]] == ["Task 1", "Task 2"]

    last = client.get("/api/v1/tasks", params={"page": 3, "limit": 2}).json()
    assert [task["title"] for task in last["tasks"]] == ["Task 5"]

    beyond = client.get("/api/v1/tasks", params={"page": 9, "limit": 2}).json()
    assert beyond["tasks"] == []
    assert beyond["currentPage"] == 9


def test_list_tasks_defaults_for_invalid_params(client: TestClient, create_task) -> None:
    create_task()
    response = client.get("/api/v1/tasks", params={"page": "abc", "limit": "0"})
    assert response.status_code == 200
    body = response.json()
    assert body["currentPage"] == 1
    assert body["totalTasks"] == 1
    assert body["totalPages"] == 1


def test_list_tasks_empty(client: TestClient) -> None:
    body = client.get("/api/v1/tasks").json()
    assert body == {"tasks": [], "totalTasks": 0, "totalPages": 0, "currentPage": 1}


def test_featured_tasks_limited_and_sorted(client: TestClient, create_task, clock) -> None:
    for offset in range(8, 0, -1):
        create_task(title=f"Task {offset}", deadline=clock.day(offset))

    response = client.get("/api/v1/featured-tasks")
    assert response.status_code == 200
    tasks = response.json()
    assert len(tasks) == 6
    deadlines = [task["deadline"] for task in tasks]
    assert deadlines == sorted(deadlines)
    assert tasks[0]["title"] == "Task 1"


def test_my_posted_tasks_newest_first(client: TestClient, create_task, clock) -> None:
    create_task(title="Older")
    clock.advance(minutes=5)
    create_task(title="Newer")
    create_task(title="Someone else", creatorEmail="b@x.com")

    response = client.get("/api/v1/tasks/my-posted-tasks", params={"creatorEmail": "a@x.com"})
    assert response.status_code == 200
    assert [task["title"] for task in response.json()] == ["Newer", "Older"]


def test_my_posted_tasks_requires_email(client: TestClient) -> None:
    response = client.get("/api/v1/tasks/my-posted-tasks")
    assert response.status_code == 400
    assert response.json()["message"] == "creatorEmail query parameter is required."


def test_update_merges_fields_and_protects_owner(client: TestClient, create_task, clock) -> None:
    task_id = create_task()
    clock.advance(hours=1)

    response = client.put(
        f"/api/v1/tasks/{task_id}",
        json={
            "budget": 75,
            "creatorEmail": "intruder@x.com",
            "creatorName": "Mallory",
            "_id": "ignored",
        },
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Task updated successfully", "modifiedCount": 1}

    task = client.get(f"/api/v1/tasks/{task_id}").json()
    assert task["budget"] == 75
    assert task["creatorEmail"] == "a@x.com"
    assert task["creatorName"] == "Ada"
    assert task["_id"] == task_id
    assert task["updatedAt"].startswith("2026-03-10T13:00:00")


def test_update_with_same_values_reports_no_change(
    client: TestClient, create_task, task_payload
) -> None:
    task_id = create_task()
    response = client.put(
        f"/api/v1/tasks/{task_id}",
        json={"title": task_payload()["title"], "creatorEmail": "other@x.com"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "message": "Task found but no changes were applied (data might be the same).",
        "modifiedCount": 0,
    }
    assert "updatedAt" not in client.get(f"/api/v1/tasks/{task_id}").json()


def test_update_validates_known_fields(client: TestClient, create_task) -> None:
    task_id = create_task()
    response = client.put(f"/api/v1/tasks/{task_id}", json={"category": "Plumbing"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid category.")


def test_update_rejects_empty_body(client: TestClient, create_task) -> None:
    task_id = create_task()
    response = client.put(f"/api/v1/tasks/{task_id}", json={})
    assert response.status_code == 400
    assert response.json()["message"] == "Request body is empty. No update data provided."


def test_update_and_delete_unknown_task(client: TestClient) -> None:
    unknown = "00000000-0000-4000-8000-000000000000"
    update = client.put(f"/api/v1/tasks/{unknown}", json={"title": "x"})
    assert update.status_code == 404
    delete = client.delete(f"/api/v1/tasks/{unknown}")
    assert delete.status_code == 404
    assert delete.json() == {"message": "Task not found."}


def test_update_and_delete_reject_malformed_id(client: TestClient) -> None:
    assert client.put("/api/v1/tasks/123", json={"title": "x"}).status_code == 400
    assert client.delete("/api/v1/tasks/123").status_code == 400


def test_list_tasks_honours_large_limits(client: TestClient, create_task) -> None:
    for _ in range(105):
        create_task()

    everything = client.get("/api/v1/tasks", params={"page": 1, "limit": 500}).json()
    assert everything["totalTasks"] == 105
    assert everything["totalPages"] == 1
    assert len(everything["tasks"]) == 105

    for limit in (40, 101):
        body = client.get("/api/v1/tasks", params={"page": 1, "limit": limit}).json()
        assert body["totalPages"] == math.ceil(105 / limit)
        assert len(body["tasks"]) <= limit

    last = client.get("/api/v1/tasks", params={"page": 3, "limit": 40}).json()
    assert len(last["tasks"]) == 25


def test_list_tasks_far_past_the_last_page_skips_the_query(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    store: InMemoryDocumentStore,
    create_task,
) -> None:
    create_task()

    async def unexpected_find(*args: object, **kwargs: object) -> list[dict[str, object]]:
        raise AssertionError("find should not run for an out-of-range page")

    monkeypatch.setattr(store.tasks, "find", unexpected_find)

    # The row offset for this page is beyond a 64-bit integer.
    page = 10**17
    response = client.get("/api/v1/tasks", params={"page": page, "limit": 1000})
    assert response.status_code == 200
    body = response.json()
    assert body["tasks"] == []
    assert body["totalTasks"] == 1
    assert body["totalPages"] == 1
    assert body["currentPage"] == page


def test_my_posted_tasks_whitespace_email_is_a_plain_filter(
    client: TestClient, create_task
) -> None:
    create_task()
    response = client.get("/api/v1/tasks/my-posted-tasks", params={"creatorEmail": "  "})
    assert response.status_code == 200
    assert response.json() == []


def test_budget_too_large_for_a_float_is_rejected(
    client: TestClient, create_task, task_payload
) -> None:
    created = client.post("/api/v1/tasks", json=task_payload(budget=10**400))
    assert created.status_code == 400
    assert created.json()["message"] == "Budget must be a positive number."

    task_id = create_task()
    updated = client.put(f"/api/v1/tasks/{task_id}", json={"budget": 10**400})
    assert updated.status_code == 400
    assert updated.json()["message"] == "Budget must be a positive number."
