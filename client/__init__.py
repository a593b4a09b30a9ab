"""Terminal Sandbox API Client Library.

This module provides a typed Python client for the sandbox REST API, in
synchronous and asynchronous flavours.

Example:
    Synchronous usage::

        from client import SandboxClient

        with SandboxClient(base_url="http://localhost:8000") as client:
            runner = client.missions.start("2.1-create-dir")
            result = client.runners.execute(runner.runner_id, "mkdir workspace")
            assert result.completed

    Asynchronous usage::

        from client import AsyncSandboxClient

        async with AsyncSandboxClient() as client:
            missions = await client.missions.list(level=0)

Exports:
    SandboxClient: Synchronous client for the sandbox REST API.
    AsyncSandboxClient: Asynchronous client for the sandbox REST API.

    Exceptions:
        SandboxClientError: Base exception for all client errors.
        ConnectionError: Failed to connect to the server.
        TimeoutError: Request timed out.
        APIError: Server returned an error response.
        ValidationError: Request validation failed (HTTP 422).
        NotFoundError: Mission or runner not found (HTTP 404).
        ConflictError: Sandbox rejected the operation (HTTP 409).
        ServerError: Server-side error (HTTP 5xx).
"""

from client._missions import AsyncMissionsClient, MissionsClient
from client._runners import AsyncRunnersClient, RunnersClient
from client.client import AsyncSandboxClient, SandboxClient
from client.exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    SandboxClientError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from client.models import (
    CommandResult,
    FilesystemSnapshot,
    HealthResponse,
    MissionDetail,
    MissionEndedResponse,
    MissionSummary,
    RunnerStateResponse,
)

__all__ = [
    # Main clients
    "SandboxClient",
    "AsyncSandboxClient",
    # Sub-clients
    "MissionsClient",
    "AsyncMissionsClient",
    "RunnersClient",
    "AsyncRunnersClient",
    # Models
    "CommandResult",
    "FilesystemSnapshot",
    "HealthResponse",
    "MissionDetail",
    "MissionEndedResponse",
    "MissionSummary",
    "RunnerStateResponse",
    # Exceptions
    "SandboxClientError",
    "ConnectionError",
    "TimeoutError",
    "APIError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
]
