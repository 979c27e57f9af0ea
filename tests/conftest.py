import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from tests.testkit import InMemoryDocumentStore


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def client(monkeypatch) -> TestClient:
    """TestClient with the background scheduler disabled."""
    monkeypatch.setattr(settings, "RETENTION_SCHEDULER_ENABLED", False)
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": "Bearer test-token"}
