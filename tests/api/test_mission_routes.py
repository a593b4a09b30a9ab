"""Integration tests for mission catalog routes.

These tests verify the behavior of the mission endpoints:
- GET /missions - List missions, optionally filtered
- GET /missions/{mission_id} - Get one mission with its goal
- POST /missions/{mission_id}/start - Start a new attempt
"""

from tests.fixtures.filesystems import TEST_HOME
from tests.fixtures.missions import create_mission


class TestListMissions:
    """Tests for GET /missions endpoint."""

    def test_lists_builtin_catalog(self, client_with_engine):
        """Test that every loaded mission is listed in catalog order."""
        client, engine = client_with_engine

        response = client.get("/missions")

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == list(engine.missions)
        assert data[0]["id"] == "0.1-where-am-i"
        assert set(data[0]) == {"id", "skill_id", "level", "title", "briefing"}

    def test_filter_by_level(self, client_with_engine):
        """Test the level query parameter."""
        client, _ = client_with_engine

        response = client.get("/missions", params={"level": 0})

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 6
        assert all(item["level"] == 0 for item in data)

    def test_filter_by_skill(self, client_with_engine):
        """Test the skill_id query parameter."""
        client, _ = client_with_engine

        response = client.get("/missions", params={"skill_id": "mv"})

        assert [item["id"] for item in response.json()] == ["2.4-move-file", "2.5-rename-file"]

    def test_unknown_skill_is_empty(self, client_with_engine):
        """Test that filters with no match return an empty list."""
        client, _ = client_with_engine
        assert client.get("/missions", params={"skill_id": "vim"}).json() == []

    def test_level_out_of_range(self, client_with_engine):
        """Test that an invalid level is rejected by request validation."""
        client, _ = client_with_engine
        assert client.get("/missions", params={"level": 9}).status_code == 422


class TestGetMission:
    """Tests for GET /missions/{mission_id} endpoint."""

    def test_returns_detail(self, client_with_engine):
        """Test the detail shape, including the rendered goal."""
        client, _ = client_with_engine

        response = client.get("/missions/0.3-go-home")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "0.3-go-home"
        assert data["skill_id"] == "cd"
        assert data["example_commands"] == ["cd", "cd ~"]
        assert data["goal"] == {"pwd_equals": TEST_HOME}
        assert data["goal_description"] == f"pwd == {TEST_HOME}"
        assert data["hint"]

    def test_missing_mission(self, client_with_engine):
        """Test the 404 body for an unknown mission."""
        client, _ = client_with_engine

        response = client.get("/missions/9.9-nope")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Mission Not Found"
        assert data["detail"] == "Mission '9.9-nope' not found"
        assert data["mission_id"] == "9.9-nope"


class TestStartMission:
    """Tests for POST /missions/{mission_id}/start endpoint."""

    def test_creates_runner(self, client_with_engine):
        """Test that starting returns the new runner's state."""
        client, engine = client_with_engine

        response = client.post("/missions/0.3-go-home/start")

        assert response.status_code == 201
        data = response.json()
        assert data["mission_id"] == "0.3-go-home"
        assert data["cwd"] == "/tmp"
        assert data["location"] == "/tmp"
        assert data["attempts"] == 0
        assert data["history"] == []
        assert data["completed"] is False
        assert data["session_status"] == "no tmux session"
        assert engine.get_runner(data["runner_id"]).mission.id == "0.3-go-home"

    def test_missing_mission(self, client_with_engine):
        """Test that starting an unknown mission returns 404."""
        client, engine = client_with_engine

        response = client.post("/missions/9.9-nope/start")

        assert response.status_code == 404
        assert engine.active_runner_count == 0

    def test_failing_setup_returns_conflict(self, client_with_engine):
        """Test that a setup error is reported as a sandbox conflict."""
        client, engine = client_with_engine
        broken = create_mission("test.9-broken", setup_actions=[{"cd": "/missing"}])
        engine.missions[broken.id] = broken

        response = client.post("/missions/test.9-broken/start")

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "Sandbox Error"
        assert data["type"] == "NotFound"
        assert data["detail"] == "no such file or directory: /missing"
