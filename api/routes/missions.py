"""Mission catalog endpoints.

Lists and describes the loaded missions and starts new mission attempts.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from api.dependencies import SandboxEngineDep
from api.models import MissionDetail, MissionSummary, RunnerStateResponse

router = APIRouter(
    prefix="/missions",
    tags=["missions"],
)


@router.get("", response_model=list[MissionSummary])
async def list_missions(
    engine: SandboxEngineDep,
    level: Optional[int] = Query(default=None, ge=0, le=5, description="Only this level"),
    skill_id: Optional[str] = Query(default=None, description="Only missions teaching this skill"),
):
    """List missions in catalog order.

    Args:
        engine: The sandbox engine (injected).
        level: Optional level filter.
        skill_id: Optional skill filter.

    Returns:
        Summaries of the matching missions.
    """
    return [
        MissionSummary.from_mission(mission)
        for mission in engine.list_missions(level=level, skill_id=skill_id)
    ]


@router.get("/{mission_id}", response_model=MissionDetail)
async def get_mission(mission_id: str, engine: SandboxEngineDep):
    """Get one mission with its hint, explanation and goal.

    Raises:
        MissionNotFoundError: If the mission does not exist (404).
    """
    return MissionDetail.from_mission(engine.get_mission(mission_id))


@router.post(
    "/{mission_id}/start",
    response_model=RunnerStateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_mission(mission_id: str, engine: SandboxEngineDep):
    """Start a new attempt at a mission.

    Returns:
        State of the new runner; its runner_id addresses /runners endpoints.

    Raises:
        MissionNotFoundError: If the mission does not exist (404).
    """
    runner = engine.start_mission(mission_id)
    return RunnerStateResponse.from_runner(runner)
