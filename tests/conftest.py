"""Shared test fixtures.

Forces the in-memory backend before any app import and provides a TestClient
wired to a fresh repository and a fixed "today".
"""

import os
from datetime import date

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.events_api.main import app  # noqa: E402
from src.events_api.repositories import InMemoryRepository, get_repository  # noqa: E402
from src.events_api.routers.events import get_today  # noqa: E402

TODAY = date(2026, 2, 19)

SEED_EVENTS = [
    {"id": "evt_001", "title": "Week 2 Homework", "type": "homework", "due_date": "2026-02-18"},
    {"id": "evt_002", "title": "Quiz 1", "type": "quiz", "due_date": "2026-02-20"},
    {"id": "evt_003", "title": "Project Proposal", "type": "assignment", "due_date": "2026-02-25"},
    {"id": "evt_004", "title": "Reading Response", "type": "homework", "due_date": "2026-02-19"},
    {"id": "evt_005", "title": "Week 1 Homework", "type": "homework", "due_date": "2026-02-11"},
]


def make_event(event_id, due_date, type_="homework", title=None):
    return {"id": event_id, "title": title or f"Event {event_id}", "type": type_, "due_date": due_date}


@pytest.fixture
def repo():
    """Return a fresh in-memory repository seeded with SEED_EVENTS."""
    repository = InMemoryRepository()
    for event in SEED_EVENTS:
        repository.insert_event(dict(event))
    return repository


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_login(client, username, password="secret123"):
    res = client.post("/api/auth/register", json={"username": username, "password": password})
    assert res.status_code == 201, res.text
    res = client.post("/api/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    """The first registered account becomes the admin."""
    return register_and_login(client, "Admin")


@pytest.fixture
def user_headers(client, admin_headers):
    return register_and_login(client, "Student")
