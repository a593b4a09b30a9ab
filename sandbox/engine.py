"""Sandbox engine: registry of loaded missions and active mission runners."""

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Any, Optional

from pydantic import BaseModel, Field

from sandbox.catalog import get_missions_by_level, get_missions_for_skill, load_builtin_missions
from sandbox.config import SandboxSettings
from sandbox.mission import Mission, MissionResult
from sandbox.runner import MissionRunner

logger = logging.getLogger(__name__)


class MissionNotFoundError(KeyError):
    """Raised when no mission has the requested id."""

    def __init__(self, mission_id: str) -> None:
        self.mission_id = mission_id
        super().__init__(mission_id)

    def __str__(self) -> str:
        return f"Mission '{self.mission_id}' not found"


class RunnerNotFoundError(KeyError):
    """Raised when no active runner has the requested id."""

    def __init__(self, runner_id: str) -> None:
        self.runner_id = runner_id
        super().__init__(runner_id)

    def __str__(self) -> str:
        return f"Runner '{self.runner_id}' not found"


class SandboxEngine(BaseModel):
    """Owns the mission catalog and the lifecycles of mission runners.

    Runners are kept in start order; when more than ``settings.max_runners``
    are active, the oldest is ended to make room.

    Attributes:
        engine_id: Unique identifier for this engine instance.
        settings: Runtime settings.
        missions: Loaded missions keyed by id, in catalog order.
    """

    engine_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    settings: SandboxSettings = Field(default_factory=SandboxSettings)
    missions: dict[str, Mission] = Field(default_factory=dict)

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, **data):
        """Initialize with private attributes."""
        super().__init__(**data)
        self._runners: OrderedDict[str, MissionRunner] = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def create(
        cls,
        settings: Optional[SandboxSettings] = None,
        missions: Optional[list[Mission]] = None,
    ) -> "SandboxEngine":
        """Create an engine, loading the built-in catalog unless missions are given.

        Args:
            settings: Runtime settings. Defaults to SandboxSettings().
            missions: Missions to serve instead of the built-in catalog.

        Returns:
            The new engine.
        """
        settings = settings or SandboxSettings()
        if missions is None:
            missions = load_builtin_missions(settings.home)
        engine = cls(settings=settings, missions={mission.id: mission for mission in missions})
        logger.info(f"Engine {engine.engine_id} loaded {len(engine.missions)} missions")
        return engine

    # ===== Missions =====

    def list_missions(
        self, level: Optional[int] = None, skill_id: Optional[str] = None
    ) -> list[Mission]:
        """List missions in catalog order, optionally filtered.

        Args:
            level: Only missions at this level.
            skill_id: Only missions teaching this skill.

        Returns:
            Matching missions.
        """
        missions = list(self.missions.values())
        if level is not None:
            missions = get_missions_by_level(missions).get(level, [])
        if skill_id is not None:
            missions = get_missions_for_skill(missions, skill_id)
        return missions

    def get_mission(self, mission_id: str) -> Mission:
        """Look up a mission.

        Raises:
            MissionNotFoundError: If no mission has this id.
        """
        mission = self.missions.get(mission_id)
        if mission is None:
            raise MissionNotFoundError(mission_id)
        return mission

    # ===== Runners =====

    def start_mission(self, mission_id: str) -> MissionRunner:
        """Start a fresh attempt at a mission.

        Args:
            mission_id: Mission to start.

        Returns:
            The new runner.

        Raises:
            MissionNotFoundError: If no mission has this id.
            SandboxError: If the mission's setup actions fail.
        """
        mission = self.get_mission(mission_id)
        runner = MissionRunner.create(mission, user=self.settings.user)

        with self._lock:
            self._runners[runner.runner_id] = runner
            while len(self._runners) > self.settings.max_runners:
                evicted_id, evicted = self._runners.popitem(last=False)
                logger.warning(
                    f"Runner limit {self.settings.max_runners} reached, "
                    f"ended runner {evicted_id} (mission {evicted.mission.id})"
                )
        return runner

    def get_runner(self, runner_id: str) -> MissionRunner:
        """Look up an active runner.

        Raises:
            RunnerNotFoundError: If no active runner has this id.
        """
        with self._lock:
            runner = self._runners.get(runner_id)
        if runner is None:
            raise RunnerNotFoundError(runner_id)
        return runner

    def list_runners(self) -> list[MissionRunner]:
        with self._lock:
            return list(self._runners.values())

    def execute(self, runner_id: str, command_line: str) -> MissionResult:
        """Execute a command line in a runner.

        Raises:
            RunnerNotFoundError: If no active runner has this id.
        """
        with self._lock:
            runner = self._runners.get(runner_id)
            if runner is None:
                raise RunnerNotFoundError(runner_id)
            return runner.execute(command_line)

    def reset_runner(self, runner_id: str) -> MissionRunner:
        """Reset a runner to its post-setup state.

        Raises:
            RunnerNotFoundError: If no active runner has this id.
        """
        with self._lock:
            runner = self._runners.get(runner_id)
            if runner is None:
                raise RunnerNotFoundError(runner_id)
            runner.reset()
            return runner

    def end_mission(self, runner_id: str) -> dict[str, Any]:
        """End a mission attempt and destroy its runner.

        Returns:
            Final snapshot of the runner.

        Raises:
            RunnerNotFoundError: If no active runner has this id.
        """
        with self._lock:
            runner = self._runners.pop(runner_id, None)
        if runner is None:
            raise RunnerNotFoundError(runner_id)
        logger.info(
            f"Runner {runner_id} ended mission {runner.mission.id} "
            f"(completed={runner.completed}, attempts={runner.attempts})"
        )
        return runner.get_snapshot()

    def shutdown(self) -> None:
        """End every active runner."""
        with self._lock:
            count = len(self._runners)
            self._runners.clear()
        logger.info(f"Engine {self.engine_id} shut down, ended {count} runners")

    @property
    def active_runner_count(self) -> int:
        with self._lock:
            return len(self._runners)
