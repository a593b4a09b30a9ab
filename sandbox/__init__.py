"""Sandboxed command-execution engine.

This package contains the in-memory filesystem, the goal DSL, mission records,
the tmux session emulator, the mission runner that ties them together, and the
engine that owns the mission catalog and runner lifecycles.
"""

from sandbox.config import SandboxSettings
from sandbox.errors import (
    CommandNotFoundError,
    GoalParseError,
    InvalidPatternError,
    IsDirectoryError,
    MissingOperandError,
    NotDirectoryError,
    OperationNotPermittedError,
    PathNotFoundError,
    SandboxError,
    SessionGuardError,
)
from sandbox.filesystem import FileKind, FileNode, Filesystem
from sandbox.goal import GoalNode, GoalView, parse_goal
from sandbox.mission import Mission, MissionResult, SetupAction
from sandbox.session import SessionState
from sandbox.runner import MissionRunner
from sandbox.engine import MissionNotFoundError, RunnerNotFoundError, SandboxEngine

__all__ = [
    "SandboxSettings",
    "SandboxError",
    "PathNotFoundError",
    "NotDirectoryError",
    "IsDirectoryError",
    "OperationNotPermittedError",
    "CommandNotFoundError",
    "MissingOperandError",
    "InvalidPatternError",
    "SessionGuardError",
    "GoalParseError",
    "FileKind",
    "FileNode",
    "Filesystem",
    "GoalNode",
    "GoalView",
    "parse_goal",
    "Mission",
    "MissionResult",
    "SetupAction",
    "SessionState",
    "MissionRunner",
    "MissionNotFoundError",
    "RunnerNotFoundError",
    "SandboxEngine",
]
