"""Mission runner sub-client for the sandbox API.

This module provides RunnersClient and AsyncRunnersClient for the runner
endpoints (/runners/*).

This is an internal module. Import from `client` instead.
"""

from client._base import AsyncBaseClient, BaseClient
from client.models import (
    CommandResult,
    FilesystemSnapshot,
    MissionEndedResponse,
    RunnerStateResponse,
)


class RunnersClient(BaseClient):
    """Synchronous client for runner endpoints.

    Example:
        runner = client.missions.start("2.4-move-file")
        result = client.runners.execute(runner.runner_id, "mv downloads/report.pdf documents/")
        if result.completed:
            client.runners.end(runner.runner_id)
    """

    _BASE_PATH = "/runners"

    def get(self, runner_id: str) -> RunnerStateResponse:
        """Get the state of an active runner.

        Raises:
            NotFoundError: If the runner does not exist (ended or evicted).
        """
        data = self._get(f"{self._BASE_PATH}/{runner_id}")
        return RunnerStateResponse(**data)

    def execute(self, runner_id: str, command: str) -> CommandResult:
        """Execute one command line in a runner.

        Command failures are reported with success=False, not raised.

        Args:
            runner_id: Runner to execute in.
            command: Raw command line.

        Returns:
            The command result with the sticky completed flag.
        """
        data = self._post(f"{self._BASE_PATH}/{runner_id}/execute", json={"command": command})
        return CommandResult(**data)

    def reset(self, runner_id: str) -> RunnerStateResponse:
        """Restore the runner's sandbox to its post-setup state."""
        data = self._post(f"{self._BASE_PATH}/{runner_id}/reset")
        return RunnerStateResponse(**data)

    def filesystem(self, runner_id: str) -> FilesystemSnapshot:
        """Get a snapshot of the runner's filesystem tree."""
        data = self._get(f"{self._BASE_PATH}/{runner_id}/filesystem")
        return FilesystemSnapshot(**data)

    def end(self, runner_id: str) -> MissionEndedResponse:
        """End the mission attempt and destroy the runner."""
        data = self._delete(f"{self._BASE_PATH}/{runner_id}")
        return MissionEndedResponse(**data)


class AsyncRunnersClient(AsyncBaseClient):
    """Asynchronous client for runner endpoints."""

    _BASE_PATH = "/runners"

    async def get(self, runner_id: str) -> RunnerStateResponse:
        """Get the state of an active runner."""
        data = await self._get(f"{self._BASE_PATH}/{runner_id}")
        return RunnerStateResponse(**data)

    async def execute(self, runner_id: str, command: str) -> CommandResult:
        """Execute one command line in a runner."""
        data = await self._post(
            f"{self._BASE_PATH}/{runner_id}/execute", json={"command": command}
        )
        return CommandResult(**data)

    async def reset(self, runner_id: str) -> RunnerStateResponse:
        """Restore the runner's sandbox to its post-setup state."""
        data = await self._post(f"{self._BASE_PATH}/{runner_id}/reset")
        return RunnerStateResponse(**data)

    async def filesystem(self, runner_id: str) -> FilesystemSnapshot:
        """Get a snapshot of the runner's filesystem tree."""
        data = await self._get(f"{self._BASE_PATH}/{runner_id}/filesystem")
        return FilesystemSnapshot(**data)

    async def end(self, runner_id: str) -> MissionEndedResponse:
        """End the mission attempt and destroy the runner."""
        data = await self._delete(f"{self._BASE_PATH}/{runner_id}")
        return MissionEndedResponse(**data)
