"""Mission records, setup actions and per-command results."""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from sandbox.filesystem import Filesystem
from sandbox.goal import Goal, GoalNode, parse_goal

logger = logging.getLogger(__name__)

MIN_LEVEL = 0
MAX_LEVEL = 5


class WriteFileAction(BaseModel):
    """Payload of a write_file setup action."""

    path: str = Field(description="File to write")
    content: str = Field(default="", description="Content to write")


class SetupAction(BaseModel):
    """One filesystem-bootstrap step applied before a mission starts.

    Exactly one of the fields must be set. Definitions may spell write_file
    as ``writeFile``.

    Args:
        mkdir: Directory to create (with ancestors).
        cd: Directory to change into.
        touch: File to create.
        write_file: File to create with content.
    """

    mkdir: Optional[str] = Field(default=None, description="Directory to create")
    cd: Optional[str] = Field(default=None, description="Directory to change into")
    touch: Optional[str] = Field(default=None, description="File to create")
    write_file: Optional[WriteFileAction] = Field(
        default=None,
        alias="writeFile",
        description="File to create with content",
    )

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="after")
    def validate_single_action(self) -> "SetupAction":
        """Ensure exactly one action is set."""
        set_fields = [
            name
            for name in ("mkdir", "cd", "touch", "write_file")
            if getattr(self, name) is not None
        ]
        if len(set_fields) != 1:
            raise ValueError(
                f"setup action must set exactly one of mkdir, cd, touch, write_file; "
                f"got {set_fields or 'none'}"
            )
        return self

    @property
    def action_type(self) -> str:
        for name in ("mkdir", "cd", "touch", "write_file"):
            if getattr(self, name) is not None:
                return name
        raise ValueError("setup action has no action set")

    def apply(self, filesystem: Filesystem) -> None:
        """Apply this action to a filesystem.

        Args:
            filesystem: Filesystem to mutate.

        Raises:
            SandboxError: If the filesystem rejects the action.
        """
        if self.mkdir is not None:
            filesystem.mkdir(self.mkdir)
        elif self.cd is not None:
            filesystem.cd(self.cd)
        elif self.touch is not None:
            filesystem.touch(self.touch)
        elif self.write_file is not None:
            filesystem.write_file(self.write_file.path, self.write_file.content)


class Mission(BaseModel):
    """Static description of one exercise.

    Built from an already-deserialized definition mapping; only the goal
    sub-structure is parsed here. Field aliases accept the camelCase keys used
    by mission definitions.

    Args:
        id: Unique mission identifier.
        skill_id: Opaque skill identifier, never inspected by the engine.
        level: Difficulty level.
        title: Short title.
        briefing: Task description shown to the learner.
        hint: Hint text.
        explanation: Explanation shown after completion.
        example_commands: Commands that solve the mission.
        setup_actions: Filesystem bootstrap steps, applied in order.
        goal: Parsed completion predicate.
    """

    id: str = Field(description="Unique mission identifier")
    skill_id: str = Field(default="", alias="skillId", description="Opaque skill identifier")
    level: int = Field(default=0, description="Difficulty level")
    title: str = Field(default="", description="Short title")
    briefing: str = Field(default="", description="Task description shown to the learner")
    hint: str = Field(default="", description="Hint text")
    explanation: str = Field(default="", description="Explanation shown after completion")
    example_commands: list[str] = Field(
        default_factory=list,
        alias="exampleCommands",
        description="Commands that solve the mission",
    )
    setup_actions: list[SetupAction] = Field(
        default_factory=list,
        alias="setupActions",
        description="Filesystem bootstrap steps, applied in order",
    )
    goal: Goal = Field(default_factory=lambda: parse_goal(None), description="Completion predicate")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("mission id cannot be empty")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: int) -> int:
        if not MIN_LEVEL <= v <= MAX_LEVEL:
            raise ValueError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {v}")
        return v

    @field_validator("goal", mode="before")
    @classmethod
    def parse_goal_structure(cls, v: Any) -> Any:
        """Parse raw DSL mappings; already-built goal nodes pass through.

        Raises:
            GoalParseError: If the goal structure is malformed.
        """
        if isinstance(v, GoalNode):
            return v
        return parse_goal(v)

    @classmethod
    def from_definition(cls, definition: dict[str, Any]) -> "Mission":
        """Build a mission from a deserialized definition mapping.

        Args:
            definition: Mapping in the mission-definition shape.

        Returns:
            The validated mission.

        Raises:
            GoalParseError: If the goal structure is malformed.
            pydantic.ValidationError: If any other field is invalid.
        """
        # Parsed up front so GoalParseError reaches the caller unwrapped.
        data = dict(definition)
        data["goal"] = parse_goal(definition.get("goal"))
        return cls.model_validate(data)

    def apply_setup(self, filesystem: Filesystem) -> None:
        """Apply every setup action in order."""
        for action in self.setup_actions:
            action.apply(filesystem)
        logger.debug(f"Applied {len(self.setup_actions)} setup actions for mission {self.id}")

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to the listing shape (no setup or goal detail)."""
        return {
            "id": self.id,
            "skill_id": self.skill_id,
            "level": self.level,
            "title": self.title,
            "briefing": self.briefing,
        }


class MissionResult(BaseModel):
    """Outcome of executing one command line.

    Args:
        output: Text produced by the command.
        success: Whether the command succeeded.
        error: Error text when the command failed.
        completed: Whether the mission has been completed (sticky).
    """

    output: str = Field(default="", description="Text produced by the command")
    success: bool = Field(default=True, description="Whether the command succeeded")
    error: str = Field(default="", description="Error text when the command failed")
    completed: bool = Field(default=False, description="Whether the mission is completed")
