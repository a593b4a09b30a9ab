"""Client response models for the sandbox API client.

This module re-exports the shared response models from the API layer and
defines client-specific response models.
"""

from typing import Any

from pydantic import BaseModel, Field

# Re-export common models from API layer for client convenience
from api.models import MissionDetail, MissionSummary, RunnerStateResponse

__all__ = [
    # Re-exported from api.models
    "MissionDetail",
    "MissionSummary",
    "RunnerStateResponse",
    # Client-specific models
    "CommandResult",
    "FilesystemSnapshot",
    "HealthResponse",
    "MissionEndedResponse",
]


class CommandResult(BaseModel):
    """Result of executing one command line in a runner.

    Attributes:
        output: Text produced by the command.
        success: Whether the command succeeded.
        error: Error text when the command failed.
        completed: Whether the mission has been completed (sticky).
    """

    output: str = Field(default="", description="Text produced by the command")
    success: bool = Field(..., description="Whether the command succeeded")
    error: str = Field(default="", description="Error text when the command failed")
    completed: bool = Field(default=False, description="Whether the mission is completed")


class FilesystemSnapshot(BaseModel):
    """A runner's filesystem tree.

    Attributes:
        runner_id: Runner identifier.
        cwd: Absolute current directory.
        home: Learner home directory.
        user: Learner user name.
        root: Nested tree of nodes (name, kind, children or content).
    """

    runner_id: str = Field(..., description="Runner identifier")
    cwd: str = Field(..., description="Absolute current directory")
    home: str = Field(..., description="Learner home directory")
    user: str = Field(..., description="Learner user name")
    root: dict[str, Any] = Field(..., description="Nested tree of nodes")

    def find_node(self, path: str) -> dict[str, Any] | None:
        """Look up a node in the snapshot by absolute path.

        Args:
            path: Absolute path such as "/home/learner/readme.txt".

        Returns:
            The node mapping, or None if it is not in the tree.
        """
        node = self.root
        for segment in [part for part in path.split("/") if part]:
            children = node.get("children") or []
            node = next((child for child in children if child["name"] == segment), None)
            if node is None:
                return None
        return node


class MissionEndedResponse(BaseModel):
    """Response after ending a mission attempt.

    Attributes:
        message: Human-readable confirmation.
        runner: Final runner state.
    """

    message: str = Field(..., description="Human-readable confirmation")
    runner: RunnerStateResponse = Field(..., description="Final runner state")


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str = Field(..., description="Health status")
