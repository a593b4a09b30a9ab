"""Mission runner endpoints.

Executes commands in an active runner, resets it, exposes its filesystem and
ends the mission attempt.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import SandboxEngineDep
from api.models import RunnerStateResponse
from sandbox.mission import MissionResult

router = APIRouter(
    prefix="/runners",
    tags=["runners"],
)


# Request Models


class ExecuteCommandRequest(BaseModel):
    """Request to execute one command line.

    Args:
        command: Raw command line, possibly a "|" pipeline.
    """

    command: str = Field(description="Raw command line")


# Response Models


class FilesystemSnapshotResponse(BaseModel):
    """Response containing the runner's filesystem tree.

    Args:
        runner_id: Runner identifier.
        cwd: Absolute current directory.
        home: Learner home directory.
        user: Learner user name.
        root: Nested tree of nodes.
    """

    runner_id: str = Field(description="Runner identifier")
    cwd: str = Field(description="Absolute current directory")
    home: str = Field(description="Learner home directory")
    user: str = Field(description="Learner user name")
    root: dict[str, Any] = Field(description="Nested tree of nodes")


class MissionEndedResponse(BaseModel):
    """Response after ending a mission attempt.

    Args:
        message: Human-readable confirmation.
        runner: Final runner state.
    """

    message: str = Field(description="Human-readable confirmation")
    runner: RunnerStateResponse = Field(description="Final runner state")


# Route Handlers


@router.get("/{runner_id}", response_model=RunnerStateResponse)
async def get_runner(runner_id: str, engine: SandboxEngineDep):
    """Get the state of an active runner.

    Raises:
        RunnerNotFoundError: If the runner does not exist (404).
    """
    return RunnerStateResponse.from_runner(engine.get_runner(runner_id))


@router.post("/{runner_id}/execute", response_model=MissionResult)
async def execute_command(runner_id: str, request: ExecuteCommandRequest, engine: SandboxEngineDep):
    """Execute one command line in a runner.

    Command failures are reported in the result body (success=false), not as
    HTTP errors.

    Args:
        runner_id: Runner to execute in.
        request: The command line.
        engine: The sandbox engine (injected).

    Returns:
        Output, success, error and the sticky completed flag.
    """
    return engine.execute(runner_id, request.command)


@router.post("/{runner_id}/reset", response_model=RunnerStateResponse)
async def reset_runner(runner_id: str, engine: SandboxEngineDep):
    """Restore the runner's sandbox to its post-setup state."""
    return RunnerStateResponse.from_runner(engine.reset_runner(runner_id))


@router.get("/{runner_id}/filesystem", response_model=FilesystemSnapshotResponse)
async def get_filesystem(runner_id: str, engine: SandboxEngineDep):
    """Get a snapshot of the runner's filesystem tree."""
    runner = engine.get_runner(runner_id)
    return FilesystemSnapshotResponse(runner_id=runner_id, **runner.filesystem.get_snapshot())


@router.delete("/{runner_id}", response_model=MissionEndedResponse)
async def end_mission(runner_id: str, engine: SandboxEngineDep):
    """End the mission attempt and destroy the runner."""
    snapshot = engine.end_mission(runner_id)
    return MissionEndedResponse(
        message=f"Mission {snapshot['mission_id']} ended",
        runner=RunnerStateResponse(**snapshot),
    )
