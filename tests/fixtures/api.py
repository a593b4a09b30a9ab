"""Shared fixtures for API testing.

These fixtures provide a TestClient and a fresh SandboxEngine instance for
each test, ensuring test isolation.
"""

import pytest
from fastapi.testclient import TestClient

from main import app
from sandbox.config import SandboxSettings
from sandbox.engine import SandboxEngine
from tests.fixtures.filesystems import TEST_USER


def create_engine(max_runners: int = 10, missions=None) -> SandboxEngine:
    """Create a SandboxEngine with test settings.

    Args:
        max_runners: Cap on active runners.
        missions: Missions to serve (default: the built-in catalog).

    Returns:
        SandboxEngine instance ready for testing.
    """
    settings = SandboxSettings(user=TEST_USER, max_runners=max_runners)
    return SandboxEngine.create(settings=settings, missions=missions)


@pytest.fixture
def test_client():
    """Provide a FastAPI TestClient for making API requests.

    Returns:
        A FastAPI TestClient instance.
    """
    return TestClient(app)


@pytest.fixture
def fresh_engine():
    """Provide a fresh SandboxEngine serving the built-in catalog.

    Returns:
        A newly initialized SandboxEngine.
    """
    engine = create_engine()
    yield engine
    engine.shutdown()
