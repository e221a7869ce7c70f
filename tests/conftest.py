from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from gigconnect_api.app.memory_storage import InMemoryDocumentStore
from gigconnect_api.app.settings import Settings
from gigconnect_api.main import create_app

FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


class FakeClock:
    """Test clock that only moves when a test moves it."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)

    def day(self, offset: int = 0) -> str:
        """Calendar date ``offset`` days from now, as YYYY-MM-DD."""
        return (self.now + timedelta(days=offset)).date().isoformat()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def client(store: InMemoryDocumentStore, clock: FakeClock) -> Iterator[TestClient]:
    app = create_app(
        store=store,
        settings_override=Settings(app_name="gigconnect-test", database_url=""),
        clock=clock,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def task_payload(clock: FakeClock):
    """Factory for a valid task body; keyword arguments override fields."""

    def _build(**overrides: object) -> dict[str, object]:
        payload: dict[str, object] = {
            "title": "Logo design",
            "category": "Graphic Design",
            "budget": 50,
            "deadline": clock.day(1),
            "description": "A flat logo for a coffee shop.",
            "creatorEmail": "a@x.com",
            "creatorName": "Ada",
        }
        payload.update(overrides)
        return {key: value for key, value in payload.items() if value is not None}

    return _build


@pytest.fixture
def create_task(client: TestClient, task_payload):
    """Create a task through the API and return its id."""

    def _create(**overrides: object) -> str:
        response = client.post("/api/v1/tasks", json=task_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["taskId"]

    return _create
