"""Shared request and response models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from sandbox.mission import Mission
from sandbox.runner import MissionRunner


class MissionSummary(BaseModel):
    """A mission as shown in listings.

    Args:
        id: Mission identifier.
        skill_id: Skill the mission teaches.
        level: Difficulty level.
        title: Short title.
        briefing: Task description.
    """

    id: str = Field(description="Mission identifier")
    skill_id: str = Field(description="Skill the mission teaches")
    level: int = Field(description="Difficulty level")
    title: str = Field(description="Short title")
    briefing: str = Field(description="Task description")

    @classmethod
    def from_mission(cls, mission: Mission) -> "MissionSummary":
        return cls(**mission.to_summary_dict())


class MissionDetail(MissionSummary):
    """A mission with hint, explanation, example commands and its goal.

    Args:
        hint: Hint text.
        explanation: Explanation shown after completion.
        example_commands: Commands that solve the mission.
        goal: Goal in DSL form.
        goal_description: Human-readable goal rendering.
    """

    hint: str = Field(description="Hint text")
    explanation: str = Field(description="Explanation shown after completion")
    example_commands: list[str] = Field(description="Commands that solve the mission")
    goal: dict[str, Any] = Field(description="Goal in DSL form")
    goal_description: str = Field(description="Human-readable goal rendering")

    @classmethod
    def from_mission(cls, mission: Mission) -> "MissionDetail":
        return cls(
            **mission.to_summary_dict(),
            hint=mission.hint,
            explanation=mission.explanation,
            example_commands=list(mission.example_commands),
            goal=mission.goal.to_dict(),
            goal_description=mission.goal.describe(),
        )


class RunnerStateResponse(BaseModel):
    """State of an active mission runner.

    Args:
        runner_id: Runner identifier.
        mission_id: Mission being attempted.
        cwd: Absolute current directory.
        location: Current directory relative to home, for display.
        session_status: tmux status line.
        attempts: Command lines executed since the last reset.
        history: Command lines since the last reset.
        completed: Whether the mission has been completed.
        created_at: ISO timestamp of runner creation.
    """

    runner_id: str = Field(description="Runner identifier")
    mission_id: str = Field(description="Mission being attempted")
    cwd: str = Field(description="Absolute current directory")
    location: str = Field(description="Current directory relative to home")
    session_status: str = Field(description="tmux status line")
    attempts: int = Field(description="Command lines executed since the last reset")
    history: list[str] = Field(description="Command lines since the last reset")
    completed: bool = Field(description="Whether the mission has been completed")
    created_at: str = Field(description="ISO timestamp of runner creation")

    @classmethod
    def from_runner(cls, runner: MissionRunner) -> "RunnerStateResponse":
        return cls(**runner.get_snapshot())
