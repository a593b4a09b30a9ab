"""Goal DSL: mission-completion predicates over filesystem state.

A goal is written as a single-key mapping, for example::

    {"and": [
        {"path_exists": "/home/learner/documents/report.pdf"},
        {"not": {"path_exists": "/home/learner/downloads/report.pdf"}},
    ]}

parse_goal() turns such a structure into an immutable tree of GoalNode
variants (discriminated on ``kind``). The tree is evaluated against any object
satisfying the read-only GoalView protocol plus the raw command that was just
run.
"""

import fnmatch
import logging
from abc import abstractmethod
from typing import Annotated, Any, Callable, Literal, Protocol, Union

from pydantic import BaseModel, Field

from sandbox.errors import GoalParseError, InvalidPatternError, SandboxError
from sandbox.filesystem import validate_pattern

logger = logging.getLogger(__name__)


class GoalView(Protocol):
    """Read-only capabilities the goal evaluator needs from a filesystem."""

    def pwd(self) -> str: ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def read_file(self, path: str) -> str: ...


class GoalNode(BaseModel):
    """Base class for all goal variants.

    Goals are frozen value objects: built once when a mission is loaded and
    evaluated after every command.

    Args:
        kind: Goal variant tag (equal to the DSL key).
    """

    kind: str = Field(description="Goal variant tag")

    class Config:
        frozen = True

    @abstractmethod
    def evaluate(self, view: GoalView, command: str = "") -> bool:
        """Decide whether this goal holds.

        Args:
            view: Read-only filesystem view.
            command: Raw command line that was just executed.

        Returns:
            True if the goal is satisfied.
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Return a compact human-readable rendering of this goal."""
        pass

    def to_dict(self) -> dict[str, Any]:
        """Render this goal back into its DSL mapping."""
        return {self.kind: self._dsl_value()}

    def _dsl_value(self) -> Any:
        return True


class AlwaysGoal(GoalNode):
    """Vacuously true goal."""

    kind: Literal["always"] = Field(default="always", description="Always 'always'")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return True

    def describe(self) -> str:
        return "always"


class PathGoal(GoalNode):
    """Shared shape for goals that take a single path operand."""

    path: str = Field(description="Path checked by the goal")

    def _dsl_value(self) -> Any:
        return self.path


class PwdEqualsGoal(PathGoal):
    """Current directory equals a path."""

    kind: Literal["pwd_equals"] = Field(default="pwd_equals", description="Always 'pwd_equals'")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return view.pwd() == self.path

    def describe(self) -> str:
        return f"pwd == {self.path}"


class PathExistsGoal(PathGoal):
    kind: Literal["path_exists"] = Field(default="path_exists", description="Always 'path_exists'")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return view.exists(self.path)

    def describe(self) -> str:
        return f"exists({self.path})"


class PathNotExistsGoal(PathGoal):
    kind: Literal["path_not_exists"] = Field(
        default="path_not_exists", description="Always 'path_not_exists'"
    )

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return not view.exists(self.path)

    def describe(self) -> str:
        return f"!exists({self.path})"


class IsDirGoal(PathGoal):
    kind: Literal["is_dir"] = Field(default="is_dir", description="Always 'is_dir'")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return view.is_dir(self.path)

    def describe(self) -> str:
        return f"is_dir({self.path})"


class IsFileGoal(PathGoal):
    """Path exists and is not a directory."""

    kind: Literal["is_file"] = Field(default="is_file", description="Always 'is_file'")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return view.exists(self.path) and not view.is_dir(self.path)

    def describe(self) -> str:
        return f"is_file({self.path})"


class FileContainsGoal(PathGoal):
    """File content contains a literal substring. False if the file cannot be read."""

    kind: Literal["file_contains"] = Field(
        default="file_contains", description="Always 'file_contains'"
    )
    content: str = Field(description="Substring the file must contain")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        try:
            return self.content in view.read_file(self.path)
        except SandboxError:
            return False

    def describe(self) -> str:
        return f"{self.path} contains {self.content!r}"

    def _dsl_value(self) -> Any:
        return {"path": self.path, "content": self.content}


class CommandMatchesGoal(GoalNode):
    """The trimmed raw command matches a shell-style wildcard pattern."""

    kind: Literal["command_matches"] = Field(
        default="command_matches", description="Always 'command_matches'"
    )
    pattern: str = Field(description="Wildcard pattern matched against the command")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return fnmatch.fnmatchcase(command.strip(), self.pattern)

    def describe(self) -> str:
        return f"command ~ {self.pattern!r}"

    def _dsl_value(self) -> Any:
        return self.pattern


class AndGoal(GoalNode):
    """True iff every condition holds (true for an empty list)."""

    kind: Literal["and"] = Field(default="and", description="Always 'and'")
    conditions: list["Goal"] = Field(default_factory=list, description="Conjuncts, in order")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return all(condition.evaluate(view, command) for condition in self.conditions)

    def describe(self) -> str:
        if not self.conditions:
            return "true"
        return "(" + " and ".join(condition.describe() for condition in self.conditions) + ")"

    def _dsl_value(self) -> Any:
        return [condition.to_dict() for condition in self.conditions]


class OrGoal(GoalNode):
    """True iff any condition holds (false for an empty list)."""

    kind: Literal["or"] = Field(default="or", description="Always 'or'")
    conditions: list["Goal"] = Field(default_factory=list, description="Disjuncts, in order")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return any(condition.evaluate(view, command) for condition in self.conditions)

    def describe(self) -> str:
        if not self.conditions:
            return "false"
        return "(" + " or ".join(condition.describe() for condition in self.conditions) + ")"

    def _dsl_value(self) -> Any:
        return [condition.to_dict() for condition in self.conditions]


class NotGoal(GoalNode):
    kind: Literal["not"] = Field(default="not", description="Always 'not'")
    condition: "Goal" = Field(description="Negated goal")

    def evaluate(self, view: GoalView, command: str = "") -> bool:
        return not self.condition.evaluate(view, command)

    def describe(self) -> str:
        return f"not {self.condition.describe()}"

    def _dsl_value(self) -> Any:
        return self.condition.to_dict()


Goal = Annotated[
    Union[
        AlwaysGoal,
        PwdEqualsGoal,
        PathExistsGoal,
        PathNotExistsGoal,
        IsDirGoal,
        IsFileGoal,
        FileContainsGoal,
        CommandMatchesGoal,
        AndGoal,
        OrGoal,
        NotGoal,
    ],
    Field(discriminator="kind"),
]

AndGoal.model_rebuild()
OrGoal.model_rebuild()
NotGoal.model_rebuild()


# ===== Parsing =====


def _require_string(key: str, value: Any) -> str:
    # bool is not accepted where a path or pattern is expected
    if not isinstance(value, str):
        raise GoalParseError(f"{key}: expected a string, got {type(value).__name__}")
    return value


def _parse_always(value: Any) -> GoalNode:
    return AlwaysGoal()


def _path_parser(goal_class: type[PathGoal], key: str) -> Callable[[Any], GoalNode]:
    def parse(value: Any) -> GoalNode:
        return goal_class(path=_require_string(key, value))

    return parse


def _parse_file_contains(value: Any) -> GoalNode:
    if not isinstance(value, dict):
        raise GoalParseError(
            f"file_contains: expected a mapping with 'path' and 'content', "
            f"got {type(value).__name__}"
        )
    for field_name in ("path", "content"):
        if field_name not in value:
            raise GoalParseError(f"file_contains: missing '{field_name}'")
    return FileContainsGoal(
        path=_require_string("file_contains.path", value["path"]),
        content=_require_string("file_contains.content", value["content"]),
    )


def _parse_command_matches(value: Any) -> GoalNode:
    pattern = _require_string("command_matches", value)
    try:
        validate_pattern(pattern)
    except InvalidPatternError as e:
        raise GoalParseError(f"command_matches: {e}") from e
    return CommandMatchesGoal(pattern=pattern)


def _parse_conditions(key: str, value: Any) -> list[GoalNode]:
    if not isinstance(value, list):
        raise GoalParseError(f"{key}: expected a list of goals, got {type(value).__name__}")
    conditions = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise GoalParseError(
                f"{key}[{index}]: expected a goal mapping, got {type(item).__name__}"
            )
        try:
            conditions.append(parse_goal(item))
        except GoalParseError as e:
            raise GoalParseError(f"{key}[{index}]: {e}") from e
    return conditions


def _parse_and(value: Any) -> GoalNode:
    return AndGoal(conditions=_parse_conditions("and", value))


def _parse_or(value: Any) -> GoalNode:
    return OrGoal(conditions=_parse_conditions("or", value))


def _parse_not(value: Any) -> GoalNode:
    if not isinstance(value, dict):
        raise GoalParseError(f"not: expected a goal mapping, got {type(value).__name__}")
    try:
        return NotGoal(condition=parse_goal(value))
    except GoalParseError as e:
        raise GoalParseError(f"not: {e}") from e


GOAL_PARSERS: dict[str, Callable[[Any], GoalNode]] = {
    "always": _parse_always,
    "pwd_equals": _path_parser(PwdEqualsGoal, "pwd_equals"),
    "path_exists": _path_parser(PathExistsGoal, "path_exists"),
    "path_not_exists": _path_parser(PathNotExistsGoal, "path_not_exists"),
    "is_dir": _path_parser(IsDirGoal, "is_dir"),
    "is_file": _path_parser(IsFileGoal, "is_file"),
    "file_contains": _parse_file_contains,
    "command_matches": _parse_command_matches,
    "and": _parse_and,
    "or": _parse_or,
    "not": _parse_not,
}


def parse_goal(raw: Any) -> GoalNode:
    """Parse a DSL structure into a goal tree.

    Args:
        raw: Single-key mapping as described in the module docstring. None or
            an empty mapping parses to AlwaysGoal.

    Returns:
        The root GoalNode.

    Raises:
        GoalParseError: If the structure is malformed anywhere in the tree.
    """
    if raw is None:
        return AlwaysGoal()
    if not isinstance(raw, dict):
        raise GoalParseError(f"goal must be a mapping, got {type(raw).__name__}")
    if not raw:
        return AlwaysGoal()
    if len(raw) > 1:
        keys = ", ".join(sorted(str(key) for key in raw))
        raise GoalParseError(f"goal must have exactly one key, got: {keys}")

    key, value = next(iter(raw.items()))
    parser = GOAL_PARSERS.get(key)
    if parser is None:
        raise GoalParseError(f"unknown goal key: {key}")
    return parser(value)
