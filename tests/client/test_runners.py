"""Unit tests for the RunnersClient and AsyncRunnersClient.

This module tests the runner sub-clients defined in client/_runners.py:
- get(runner_id): Get runner state
- execute(runner_id, command): Execute a command line
- reset(runner_id): Reset the sandbox
- filesystem(runner_id): Get the filesystem tree
- end(runner_id): End the mission attempt

Note: These tests use mock HTTP clients to avoid real network calls.
"""

from unittest.mock import AsyncMock, MagicMock

from client._runners import AsyncRunnersClient, RunnersClient
from client.models import CommandResult, FilesystemSnapshot, MissionEndedResponse

RUNNER_STATE = {
    "runner_id": "r1",
    "mission_id": "2.4-move-file",
    "cwd": "/home/learner",
    "location": "~ (your home directory)",
    "session_status": "no tmux session",
    "attempts": 1,
    "history": ["ls"],
    "completed": False,
    "created_at": "2024-06-15T10:30:00+00:00",
}

TREE = {
    "name": "/",
    "kind": "directory",
    "modified_at": "2024-06-15T10:30:00+00:00",
    "children": [
        {
            "name": "home",
            "kind": "directory",
            "modified_at": "2024-06-15T10:30:00+00:00",
            "children": [
                {
                    "name": "readme.txt",
                    "kind": "regular",
                    "modified_at": "2024-06-15T10:30:00+00:00",
                    "content": "hi",
                    "size": 2,
                }
            ],
        }
    ],
}

SNAPSHOT = {
    "runner_id": "r1",
    "cwd": "/home",
    "home": "/home/learner",
    "user": "learner",
    "root": TREE,
}


class TestRunnersClient:
    """Tests for the synchronous RunnersClient."""

    def test_get(self) -> None:
        """get() calls the runner endpoint."""
        mock_http = MagicMock()
        mock_http.get.return_value = RUNNER_STATE

        result = RunnersClient(mock_http).get("r1")

        assert result.history == ["ls"]
        mock_http.get.assert_called_once_with("/runners/r1", params=None)

    def test_execute(self) -> None:
        """execute() posts the command and returns a CommandResult."""
        mock_http = MagicMock()
        mock_http.post.return_value = {
            "output": "",
            "success": False,
            "error": "ls: command not found",
            "completed": False,
        }

        result = RunnersClient(mock_http).execute("r1", "ls")

        assert isinstance(result, CommandResult)
        assert result.success is False
        assert result.error == "ls: command not found"
        mock_http.post.assert_called_once_with(
            "/runners/r1/execute", json={"command": "ls"}, params=None
        )

    def test_reset(self) -> None:
        """reset() posts to the reset endpoint."""
        mock_http = MagicMock()
        mock_http.post.return_value = {**RUNNER_STATE, "attempts": 0, "history": []}

        result = RunnersClient(mock_http).reset("r1")

        assert result.attempts == 0
        mock_http.post.assert_called_once_with("/runners/r1/reset", json=None, params=None)

    def test_filesystem(self) -> None:
        """filesystem() returns a FilesystemSnapshot."""
        mock_http = MagicMock()
        mock_http.get.return_value = SNAPSHOT

        result = RunnersClient(mock_http).filesystem("r1")

        assert isinstance(result, FilesystemSnapshot)
        mock_http.get.assert_called_once_with("/runners/r1/filesystem", params=None)

    def test_end(self) -> None:
        """end() deletes the runner and returns the final state."""
        mock_http = MagicMock()
        mock_http.delete.return_value = {"message": "Mission 2.4-move-file ended", "runner": RUNNER_STATE}

        result = RunnersClient(mock_http).end("r1")

        assert isinstance(result, MissionEndedResponse)
        assert result.runner.runner_id == "r1"
        mock_http.delete.assert_called_once_with("/runners/r1", params=None)


class TestFilesystemSnapshot:
    """Tests for FilesystemSnapshot.find_node()."""

    def test_find_existing_nodes(self) -> None:
        """Nodes are found by absolute path, the root by "/"."""
        snapshot = FilesystemSnapshot(**SNAPSHOT)

        assert snapshot.find_node("/")["name"] == "/"
        assert snapshot.find_node("/home/readme.txt")["content"] == "hi"

    def test_missing_nodes(self) -> None:
        """Missing paths and paths through files return None."""
        snapshot = FilesystemSnapshot(**SNAPSHOT)

        assert snapshot.find_node("/tmp") is None
        assert snapshot.find_node("/home/readme.txt/x") is None


class TestAsyncRunnersClient:
    """Tests for the asynchronous AsyncRunnersClient."""

    async def test_execute(self) -> None:
        """execute() awaits the POST with the command body."""
        mock_http = MagicMock()
        mock_http.post = AsyncMock(
            return_value={"output": "/home/learner", "success": True, "error": "", "completed": True}
        )

        result = await AsyncRunnersClient(mock_http).execute("r1", "pwd")

        assert result.completed is True
        mock_http.post.assert_awaited_once_with(
            "/runners/r1/execute", json={"command": "pwd"}, params=None
        )

    async def test_get_reset_and_end(self) -> None:
        """The remaining endpoints parse their models."""
        mock_http = MagicMock()
        mock_http.get = AsyncMock(side_effect=[RUNNER_STATE, SNAPSHOT])
        mock_http.post = AsyncMock(return_value=RUNNER_STATE)
        mock_http.delete = AsyncMock(return_value={"message": "done", "runner": RUNNER_STATE})
        client = AsyncRunnersClient(mock_http)

        assert (await client.get("r1")).runner_id == "r1"
        assert (await client.filesystem("r1")).user == "learner"
        assert (await client.reset("r1")).mission_id == "2.4-move-file"
        assert (await client.end("r1")).message == "done"
