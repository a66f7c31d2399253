"""
Shared fixtures for the test suite.

Provides:
  - ``store`` / ``service``: a fresh in-memory store and the issue service on top.
  - ``client``: a FastAPI ``TestClient`` wired to that service.
  - ``create_issue`` / ``resolved_issue``: factories for issues in a known state.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import main
from config import Settings
from database import MemoryStore
from issues import IssueService
from schemas import IssueCreate

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def settings(monkeypatch) -> Settings:
    monkeypatch.delenv("REWARD_OVERRIDE_LIMIT", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return Settings()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def service(store, settings) -> IssueService:
    return IssueService(store, settings, now=lambda: FIXED_NOW)


@pytest.fixture()
def client(service):
    main.app.dependency_overrides[main.get_service] = lambda: service
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


@pytest.fixture()
def create_issue(service):
    """
    Factory fixture that files an issue with sensible defaults.

    Usage::

        def test_something(create_issue):
            issue = create_issue(category="water", city="Pune")
    """

    def _factory(**overrides):
        fields = {
            "category": "pothole",
            "description": "Deep pothole near the bus stop",
            "imageData": "data:image/png;base64,iVBORw0KGgo=",
            "city": "Pune",
            "reporterName": "Asha",
            "reporterPhone": "9999999999",
        }
        fields.update(overrides)
        return service.create(IssueCreate(**fields))

    return _factory


@pytest.fixture()
def resolved_issue(service, create_issue):
    """Factory for an issue already moved to ``resolved`` with ``upvotes`` votes."""

    def _factory(upvotes: int = 0, **overrides):
        issue = create_issue(**overrides)
        for _ in range(upvotes):
            service.upvote(issue.id)
        return service.set_status(issue.id, "resolved")

    return _factory
