"""Error taxonomy for the sandbox engine.

Filesystem and command errors are non-fatal: the mission runner catches every
SandboxError and reports its message in the command result so the learner can
retry. GoalParseError is raised while loading a mission definition and is fatal
for that mission.
"""


class SandboxError(Exception):
    """Base class for all recoverable sandbox errors.

    Args:
        message: Human-readable error description shown to the learner.
    """

    kind = "SandboxError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class PathNotFoundError(SandboxError):
    """Raised when a path does not resolve to any node."""

    kind = "NotFound"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"no such file or directory: {path}")


class NotDirectoryError(SandboxError):
    """Raised when a path segment that must be a directory is a file."""

    kind = "NotADirectory"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"not a directory: {path}")


class IsDirectoryError(SandboxError):
    """Raised when a file operation targets a directory."""

    kind = "IsADirectory"

    def __init__(self, path: str, hint: str | None = None) -> None:
        self.path = path
        if hint:
            super().__init__(f"is a directory ({hint}): {path}")
        else:
            super().__init__(f"is a directory: {path}")


class OperationNotPermittedError(SandboxError):
    """Raised for structurally forbidden operations (removing the root, moving a
    directory into its own subtree)."""

    kind = "OperationNotPermitted"


class CommandNotFoundError(SandboxError):
    """Raised when the runner has no handler for a command verb."""

    kind = "CommandNotFound"


class MissingOperandError(SandboxError):
    """Raised when a command is missing a required argument."""

    kind = "MissingOperand"


class InvalidPatternError(SandboxError):
    """Raised when a wildcard pattern is malformed."""

    kind = "InvalidPattern"

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"invalid pattern '{pattern}': {reason}")


class SessionGuardError(SandboxError):
    """Raised when a tmux subcommand is not allowed in the current session state."""

    kind = "SessionGuardViolation"


class GoalParseError(ValueError):
    """Raised when a goal structure cannot be parsed into a goal tree.

    Subclasses ValueError so that loaders and the API treat it like any other
    invalid input value.
    """

    kind = "GoalParseError"
