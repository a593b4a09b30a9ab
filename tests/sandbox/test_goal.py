"""Unit tests for the goal DSL.

This module tests parse_goal() (shape validation and error locations), the
evaluation laws of every goal variant, and rendering via describe() and
to_dict().
"""

import pytest
from pydantic import ValidationError

from sandbox.errors import GoalParseError
from sandbox.goal import (
    AlwaysGoal,
    AndGoal,
    CommandMatchesGoal,
    FileContainsGoal,
    NotGoal,
    OrGoal,
    PathExistsGoal,
    parse_goal,
)
from tests.fixtures.filesystems import create_filesystem

TRUE_GOAL = {"path_exists": "/"}
FALSE_GOAL = {"path_exists": "/missing"}


@pytest.fixture
def view():
    """Provide a small filesystem to evaluate goals against."""
    return create_filesystem(
        files={"/test.txt": "Hello World!", "/docs/readme.md": "read me"},
        cwd="/docs",
    )


class RecordingView:
    """Goal view over a fixed set of paths that records every exists() call."""

    def __init__(self, paths: set[str]):
        self.paths = paths
        self.checked: list[str] = []

    def pwd(self) -> str:
        return "/"

    def exists(self, path: str) -> bool:
        self.checked.append(path)
        return path in self.paths

    def is_dir(self, path: str) -> bool:
        return False

    def read_file(self, path: str) -> str:
        return ""


class TestParseGoal:
    """Tests for parse_goal() structure handling."""

    @pytest.mark.parametrize("raw", [None, {}, {"always": True}])
    def test_always_forms(self, raw):
        """Test that None, {} and {always: true} parse to AlwaysGoal."""
        assert isinstance(parse_goal(raw), AlwaysGoal)

    def test_nested_structure(self):
        """Test parsing a nested and/not tree."""
        goal = parse_goal(
            {
                "and": [
                    {"path_exists": "/documents/report.pdf"},
                    {"not": {"path_exists": "/downloads/report.pdf"}},
                ]
            }
        )

        assert isinstance(goal, AndGoal)
        assert isinstance(goal.conditions[0], PathExistsGoal)
        assert isinstance(goal.conditions[1], NotGoal)
        assert goal.conditions[1].condition.path == "/downloads/report.pdf"

    def test_file_contains(self):
        """Test parsing the file_contains mapping."""
        goal = parse_goal({"file_contains": {"path": "/a.txt", "content": "hi"}})
        assert goal == FileContainsGoal(path="/a.txt", content="hi")

    def test_unknown_key(self):
        """Test that an unknown key is a parse error."""
        with pytest.raises(GoalParseError) as exc_info:
            parse_goal({"file_exists": "/a"})
        assert "unknown goal key: file_exists" in str(exc_info.value)

    def test_multiple_keys(self):
        """Test that a mapping with two keys is a parse error."""
        with pytest.raises(GoalParseError) as exc_info:
            parse_goal({"path_exists": "/a", "is_dir": "/b"})
        assert "exactly one key" in str(exc_info.value)

    @pytest.mark.parametrize(
        "raw",
        [
            {"path_exists": 42},
            {"pwd_equals": True},
            {"is_dir": ["/a"]},
            {"and": {"path_exists": "/a"}},
            {"or": "nope"},
            {"not": ["/a"]},
            {"file_contains": "/a.txt"},
            {"file_contains": {"path": "/a.txt"}},
            {"file_contains": {"path": "/a.txt", "content": 3}},
            {"command_matches": "[ls"},
            "path_exists",
        ],
    )
    def test_wrong_value_types(self, raw):
        """Test that wrongly typed values are parse errors, not results."""
        with pytest.raises(GoalParseError):
            parse_goal(raw)

    def test_nested_error_location(self):
        """Test that nested errors name their position in the tree."""
        with pytest.raises(GoalParseError) as exc_info:
            parse_goal({"and": [TRUE_GOAL, {"not": {"bogus": 1}}]})
        assert str(exc_info.value) == "and[1]: not: unknown goal key: bogus"

    def test_non_mapping_list_element(self):
        """Test that list elements must be mappings."""
        with pytest.raises(GoalParseError) as exc_info:
            parse_goal({"or": ["/a"]})
        assert str(exc_info.value).startswith("or[0]:")

    def test_is_a_value_error(self):
        """Test that GoalParseError can be handled as ValueError."""
        with pytest.raises(ValueError):
            parse_goal({"nope": 1})


class TestGoalLaws:
    """Tests for the evaluation laws of the combinators."""

    def test_empty_structure_is_true(self, view):
        """Test that the empty goal holds."""
        assert parse_goal({}).evaluate(view) is True
        assert parse_goal({"always": True}).evaluate(view) is True

    def test_empty_and_is_true(self, view):
        """Test that and([]) holds."""
        assert parse_goal({"and": []}).evaluate(view) is True

    def test_empty_or_is_false(self, view):
        """Test that or([]) does not hold."""
        assert parse_goal({"or": []}).evaluate(view) is False

    @pytest.mark.parametrize("inner", [TRUE_GOAL, FALSE_GOAL, {"and": []}, {"or": []}])
    def test_not_inverts(self, view, inner):
        """Test that not(X) is the negation of X."""
        assert parse_goal({"not": inner}).evaluate(view) is not parse_goal(inner).evaluate(view)

    @pytest.mark.parametrize(
        "left,right,expected",
        [
            (TRUE_GOAL, TRUE_GOAL, True),
            (TRUE_GOAL, FALSE_GOAL, False),
            (FALSE_GOAL, TRUE_GOAL, False),
            (FALSE_GOAL, FALSE_GOAL, False),
        ],
    )
    def test_and_truth_table(self, view, left, right, expected):
        """Test that and([A, B]) holds iff both hold."""
        assert parse_goal({"and": [left, right]}).evaluate(view) is expected

    @pytest.mark.parametrize(
        "left,right,expected",
        [
            (TRUE_GOAL, TRUE_GOAL, True),
            (TRUE_GOAL, FALSE_GOAL, True),
            (FALSE_GOAL, TRUE_GOAL, True),
            (FALSE_GOAL, FALSE_GOAL, False),
        ],
    )
    def test_or_truth_table(self, view, left, right, expected):
        """Test that or([A, B]) holds iff either holds."""
        assert parse_goal({"or": [left, right]}).evaluate(view) is expected

    def test_and_stops_at_first_false(self):
        """Test that and() skips the conditions after the first failure."""
        view = RecordingView({"/yes"})
        goal = parse_goal({"and": [{"path_exists": "/no"}, {"path_exists": "/yes"}]})

        assert goal.evaluate(view) is False
        assert view.checked == ["/no"]

    def test_or_stops_at_first_true(self):
        """Test that or() skips the conditions after the first success."""
        view = RecordingView({"/yes"})
        goal = parse_goal(
            {"or": [{"path_exists": "/no"}, {"path_exists": "/yes"}, {"path_exists": "/later"}]}
        )

        assert goal.evaluate(view) is True
        assert view.checked == ["/no", "/yes"]


class TestLeafGoals:
    """Tests for the leaf goal variants."""

    def test_pwd_equals(self, view):
        """Test that pwd_equals compares the current directory."""
        assert parse_goal({"pwd_equals": "/docs"}).evaluate(view)
        assert not parse_goal({"pwd_equals": "/"}).evaluate(view)

    def test_path_exists_and_not_exists(self, view):
        """Test the existence checks."""
        assert parse_goal({"path_exists": "/docs/readme.md"}).evaluate(view)
        assert parse_goal({"path_not_exists": "/docs/other.md"}).evaluate(view)
        assert not parse_goal({"path_not_exists": "/test.txt"}).evaluate(view)

    def test_is_dir_and_is_file(self, view):
        """Test the file and directory checks."""
        assert parse_goal({"is_dir": "/docs"}).evaluate(view)
        assert not parse_goal({"is_dir": "/test.txt"}).evaluate(view)
        assert parse_goal({"is_file": "/test.txt"}).evaluate(view)
        assert not parse_goal({"is_file": "/docs"}).evaluate(view)
        assert not parse_goal({"is_file": "/missing"}).evaluate(view)

    def test_file_contains_tracks_content(self, view):
        """Test file_contains before and after the file is rewritten."""
        goal = parse_goal({"file_contains": {"path": "/test.txt", "content": "World"}})
        assert goal.evaluate(view) is True

        view.write_file("/test.txt", "Goodbye")

        assert goal.evaluate(view) is False

    def test_file_contains_unreadable_is_false(self, view):
        """Test that a missing file or a directory yields false, not an error."""
        assert not parse_goal({"file_contains": {"path": "/nope", "content": ""}}).evaluate(view)
        assert not parse_goal({"file_contains": {"path": "/docs", "content": ""}}).evaluate(view)

    def test_relative_paths_resolve_against_cwd(self, view):
        """Test that goal paths go through the view's path resolution."""
        assert parse_goal({"path_exists": "readme.md"}).evaluate(view)

    def test_command_matches(self, view):
        """Test wildcard matching against the trimmed command."""
        goal = parse_goal({"command_matches": "ls -*[aA]*"})

        assert goal.evaluate(view, "ls -la")
        assert goal.evaluate(view, "  ls -A  ")
        assert not goal.evaluate(view, "ls")
        assert not goal.evaluate(view)

    def test_command_matches_pipeline(self, view):
        """Test matching a pipeline command line."""
        goal = CommandMatchesGoal(pattern="ls*| grep *log*")
        assert goal.evaluate(view, "ls | grep log")


class TestRendering:
    """Tests for describe() and to_dict()."""

    def test_to_dict_round_trips(self):
        """Test that to_dict() renders back to the parsed structure."""
        raw = {
            "and": [
                {"path_exists": "/a"},
                {"not": {"file_contains": {"path": "/b", "content": "x"}}},
                {"or": [{"command_matches": "ls*"}]},
            ]
        }
        assert parse_goal(raw).to_dict() == raw

    def test_describe(self):
        """Test the compact human-readable rendering."""
        goal = parse_goal(
            {"and": [{"path_exists": "/a"}, {"not": {"pwd_equals": "/b"}}]}
        )
        assert goal.describe() == "(exists(/a) and not pwd == /b)"
        assert AndGoal().describe() == "true"
        assert OrGoal().describe() == "false"

    def test_goals_are_frozen(self):
        """Test that goal nodes cannot be mutated after parsing."""
        goal = parse_goal({"path_exists": "/a"})
        with pytest.raises(ValidationError):
            goal.path = "/b"
