"""Unit tests for the built-in mission catalog and definition loading."""

import pytest

from sandbox.catalog import (
    builtin_mission_definitions,
    get_missions_by_level,
    get_missions_for_skill,
    load_builtin_missions,
    load_missions,
)
from sandbox.errors import GoalParseError
from sandbox.runner import MissionRunner
from tests.fixtures.missions import create_mission_definition


class TestBuiltinCatalog:
    """Tests for the built-in mission definitions."""

    def test_loads_every_definition(self):
        """Test that the whole catalog parses."""
        missions = load_builtin_missions()
        assert len(missions) == len(builtin_mission_definitions())
        assert len({mission.id for mission in missions}) == len(missions)

    def test_ordered_by_level(self):
        """Test that levels never decrease through the catalog."""
        levels = [mission.level for mission in load_builtin_missions()]
        assert levels == sorted(levels)
        assert set(levels) == {0, 1, 2, 3}

    def test_home_is_substituted(self):
        """Test that paths follow the configured home directory."""
        missions = {mission.id: mission for mission in load_builtin_missions("/home/ada")}
        assert missions["0.3-go-home"].goal.path == "/home/ada"

    @pytest.mark.parametrize("mission", load_builtin_missions(), ids=lambda m: m.id)
    def test_setup_applies_cleanly(self, mission):
        """Test that every mission's setup succeeds on the default filesystem."""
        runner = MissionRunner.create(mission)
        assert runner.filesystem.validate_tree() == []

    @pytest.mark.parametrize("mission", load_builtin_missions(), ids=lambda m: m.id)
    def test_not_complete_before_any_command(self, mission):
        """Test that no mission's goal already holds right after setup."""
        runner = MissionRunner.create(mission)
        assert not mission.goal.evaluate(runner.filesystem, "")

    @pytest.mark.parametrize("mission", load_builtin_missions(), ids=lambda m: m.id)
    def test_example_commands_complete_mission(self, mission):
        """Test that running the example commands completes each mission."""
        runner = MissionRunner.create(mission)

        for command in mission.example_commands:
            result = runner.execute(command)
            assert result.success, f"{command!r} failed: {result.error}"
            if result.completed:
                break

        assert runner.completed, f"{mission.id} not completed by {mission.example_commands}"


class TestLoadMissions:
    """Tests for load_missions()."""

    def test_duplicate_ids_rejected(self):
        """Test that two definitions with one id are rejected."""
        definitions = [create_mission_definition("dup"), create_mission_definition("dup")]
        with pytest.raises(ValueError) as exc_info:
            load_missions(definitions)
        assert "duplicate mission id: dup" in str(exc_info.value)

    def test_bad_goal_names_mission(self):
        """Test that goal errors name the offending mission."""
        definitions = [create_mission_definition("bad.1", goal={"bogus": "/a"})]
        with pytest.raises(GoalParseError) as exc_info:
            load_missions(definitions)
        assert str(exc_info.value) == "mission bad.1: unknown goal key: bogus"

    def test_invalid_field_names_mission(self):
        """Test that other validation errors become ValueError naming the mission."""
        definitions = [create_mission_definition("bad.2", level=9)]
        with pytest.raises(ValueError) as exc_info:
            load_missions(definitions)
        assert str(exc_info.value).startswith("mission bad.2: invalid definition")


class TestGrouping:
    """Tests for the catalog grouping helpers."""

    def test_by_level_preserves_order(self):
        """Test grouping by level keeps catalog order."""
        by_level = get_missions_by_level(load_builtin_missions())
        assert [mission.id for mission in by_level[0]][:2] == ["0.1-where-am-i", "0.2-whats-here"]

    def test_for_skill(self):
        """Test filtering by skill id."""
        ids = [mission.id for mission in get_missions_for_skill(load_builtin_missions(), "mv")]
        assert ids == ["2.4-move-file", "2.5-rename-file"]
