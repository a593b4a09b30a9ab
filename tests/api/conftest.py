"""Shared fixtures for API integration tests.

This module provides the TestClient wired to a fresh SandboxEngine through
FastAPI's dependency override system.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_sandbox_engine
from main import app


@pytest.fixture
def client_with_engine(fresh_engine):
    """Provide a TestClient with a fresh SandboxEngine injected.

    The app's lifespan is not entered, so the global engine is never
    initialized; every route sees the injected test engine instead.

    Args:
        fresh_engine: A pytest fixture providing a fresh SandboxEngine.

    Yields:
        A tuple of (TestClient, SandboxEngine) for testing.

    Example:
        def test_something(client_with_engine):
            client, engine = client_with_engine
            response = client.get("/missions")
            assert response.status_code == 200
    """
    app.dependency_overrides[get_sandbox_engine] = lambda: fresh_engine

    client = TestClient(app)

    yield client, fresh_engine

    app.dependency_overrides.clear()


@pytest.fixture
def started_runner(client_with_engine):
    """Start the move-the-report mission through the API.

    Yields:
        A tuple of (TestClient, SandboxEngine, runner_id).
    """
    client, engine = client_with_engine
    response = client.post("/missions/2.4-move-file/start")
    assert response.status_code == 201, f"Failed to start mission: {response.json()}"
    yield client, engine, response.json()["runner_id"]
