"""Mission catalog sub-client for the sandbox API.

This module provides MissionsClient and AsyncMissionsClient for the mission
endpoints (/missions/*).

This is an internal module. Import from `client` instead.
"""

from client._base import AsyncBaseClient, BaseClient
from client.models import MissionDetail, MissionSummary, RunnerStateResponse


class MissionsClient(BaseClient):
    """Synchronous client for mission endpoints.

    Example:
        with SandboxClient() as client:
            for mission in client.missions.list(level=0):
                print(mission.id, mission.title)
            runner = client.missions.start("0.3-go-home")
    """

    _BASE_PATH = "/missions"

    def list(self, level: int | None = None, skill_id: str | None = None) -> list[MissionSummary]:
        """List missions, optionally filtered by level or skill.

        Args:
            level: Only missions at this level (0-5).
            skill_id: Only missions teaching this skill.

        Returns:
            Mission summaries in catalog order.
        """
        params = {"level": level, "skill_id": skill_id}
        data = self._get(self._BASE_PATH, params=params)
        return [MissionSummary(**item) for item in data]

    def get(self, mission_id: str) -> MissionDetail:
        """Get one mission including its hint, explanation and goal.

        Raises:
            NotFoundError: If the mission does not exist.
        """
        data = self._get(f"{self._BASE_PATH}/{mission_id}")
        return MissionDetail(**data)

    def start(self, mission_id: str) -> RunnerStateResponse:
        """Start a new attempt at a mission.

        Returns:
            State of the new runner. Use its runner_id with client.runners.

        Raises:
            NotFoundError: If the mission does not exist.
            ConflictError: If the mission's setup fails in the sandbox.
        """
        data = self._post(f"{self._BASE_PATH}/{mission_id}/start")
        return RunnerStateResponse(**data)


class AsyncMissionsClient(AsyncBaseClient):
    """Asynchronous client for mission endpoints."""

    _BASE_PATH = "/missions"

    async def list(
        self, level: int | None = None, skill_id: str | None = None
    ) -> list[MissionSummary]:
        """List missions, optionally filtered by level or skill."""
        params = {"level": level, "skill_id": skill_id}
        data = await self._get(self._BASE_PATH, params=params)
        return [MissionSummary(**item) for item in data]

    async def get(self, mission_id: str) -> MissionDetail:
        """Get one mission including its hint, explanation and goal."""
        data = await self._get(f"{self._BASE_PATH}/{mission_id}")
        return MissionDetail(**data)

    async def start(self, mission_id: str) -> RunnerStateResponse:
        """Start a new attempt at a mission."""
        data = await self._post(f"{self._BASE_PATH}/{mission_id}/start")
        return RunnerStateResponse(**data)
