"""Fixtures for missions and mission runners."""

from typing import Any

import pytest

from sandbox.mission import Mission
from sandbox.runner import MissionRunner
from tests.fixtures.filesystems import TEST_HOME, TEST_USER


def create_mission_definition(
    mission_id: str = "test.1-sample",
    goal: Any = None,
    setup_actions: list[dict[str, Any]] | None = None,
    **kwargs,
) -> dict[str, Any]:
    """Create a mission definition mapping in the camelCase contract shape.

    Args:
        mission_id: Mission identifier.
        goal: Goal DSL structure (None means always complete).
        setup_actions: Setup action mappings (default: cd home).
        **kwargs: Additional definition keys to override.

    Returns:
        Mission definition dictionary.
    """
    definition = {
        "id": mission_id,
        "skillId": kwargs.pop("skill_id", "test-skill"),
        "level": kwargs.pop("level", 2),
        "title": kwargs.pop("title", "Sample Mission"),
        "briefing": kwargs.pop("briefing", "Do the thing."),
        "hint": kwargs.pop("hint", "Try the obvious command."),
        "explanation": kwargs.pop("explanation", "That was the thing."),
        "exampleCommands": kwargs.pop("example_commands", ["pwd"]),
        "setupActions": setup_actions if setup_actions is not None else [{"cd": TEST_HOME}],
    }
    if goal is not None:
        definition["goal"] = goal
    definition.update(kwargs)
    return definition


def create_mission(
    mission_id: str = "test.1-sample",
    goal: Any = None,
    setup_actions: list[dict[str, Any]] | None = None,
    **kwargs,
) -> Mission:
    """Create a Mission from a generated definition.

    Args:
        mission_id: Mission identifier.
        goal: Goal DSL structure (None means always complete).
        setup_actions: Setup action mappings (default: cd home).
        **kwargs: Additional definition keys to override.

    Returns:
        Mission instance ready for testing.
    """
    return Mission.from_definition(
        create_mission_definition(mission_id, goal, setup_actions, **kwargs)
    )


def create_runner(mission: Mission | None = None, **kwargs) -> MissionRunner:
    """Create a MissionRunner on the default learner filesystem.

    Args:
        mission: Mission to run (default: MOVE_REPORT_MISSION).
        **kwargs: Passed to create_mission when no mission is given.

    Returns:
        MissionRunner instance ready for testing.
    """
    if mission is None:
        mission = create_mission(**kwargs) if kwargs else MOVE_REPORT_MISSION
    return MissionRunner.create(mission, user=TEST_USER)


# Pre-built example constants
MOVE_REPORT_MISSION = create_mission(
    mission_id="test.2-move-report",
    goal={
        "and": [
            {"path_exists": f"{TEST_HOME}/documents/report.pdf"},
            {"not": {"path_exists": f"{TEST_HOME}/downloads/report.pdf"}},
        ]
    },
    setup_actions=[
        {"mkdir": f"{TEST_HOME}/downloads"},
        {"mkdir": f"{TEST_HOME}/documents"},
        {"writeFile": {"path": f"{TEST_HOME}/downloads/report.pdf", "content": "numbers"}},
        {"cd": TEST_HOME},
    ],
)

PWD_MISSION = create_mission(
    mission_id="test.0-pwd",
    level=0,
    skill_id="pwd",
    goal={"command_matches": "pwd"},
    setup_actions=[{"cd": f"{TEST_HOME}/projects"}],
)

ECHO_MISSION = create_mission(
    mission_id="test.2-echo",
    skill_id="redirect",
    goal={"file_contains": {"path": f"{TEST_HOME}/notes/message.txt", "content": "Hello World"}},
    setup_actions=[{"mkdir": f"{TEST_HOME}/notes"}, {"cd": f"{TEST_HOME}/notes"}],
)

TEST_MISSIONS = [PWD_MISSION, MOVE_REPORT_MISSION, ECHO_MISSION]


@pytest.fixture
def move_report_runner():
    """Provide a fresh runner for the move-the-report mission."""
    return create_runner(MOVE_REPORT_MISSION)


@pytest.fixture
def pwd_runner():
    """Provide a fresh runner for a command_matches("pwd") mission."""
    return create_runner(PWD_MISSION)


@pytest.fixture
def echo_runner():
    """Provide a fresh runner for the echo-to-file mission."""
    return create_runner(ECHO_MISSION)
