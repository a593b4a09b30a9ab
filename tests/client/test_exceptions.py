"""Unit tests for the sandbox client exception hierarchy."""

import httpx
import pytest

from client.exceptions import (
    APIError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    SandboxClientError,
    ServerError,
    TimeoutError,
    ValidationError,
)


class TestHierarchy:
    """Tests for the inheritance relationships."""

    @pytest.mark.parametrize(
        "error_class",
        [ValidationError, NotFoundError, ConflictError, ServerError],
    )
    def test_api_errors(self, error_class) -> None:
        """Every HTTP error is an APIError and a SandboxClientError."""
        assert issubclass(error_class, APIError)
        assert issubclass(error_class, SandboxClientError)

    @pytest.mark.parametrize("error_class", [ConnectionError, TimeoutError])
    def test_transport_errors(self, error_class) -> None:
        """Transport errors are not APIErrors."""
        assert issubclass(error_class, SandboxClientError)
        assert not issubclass(error_class, APIError)


class TestMessages:
    """Tests for attributes and string rendering."""

    def test_base_error(self) -> None:
        """The base error renders its message."""
        assert str(SandboxClientError("boom")) == "boom"

    def test_connection_error(self) -> None:
        """ConnectionError keeps the URL and cause."""
        cause = httpx.ConnectError("refused")
        error = ConnectionError("Failed to connect", url="http://x/health", cause=cause)

        assert error.cause is cause
        assert str(error) == "Failed to connect (url: http://x/health)"
        assert str(ConnectionError("Failed to connect")) == "Failed to connect"

    def test_timeout_error(self) -> None:
        """TimeoutError renders the timeout and URL when known."""
        assert str(TimeoutError("Timed out", timeout=5.0, url="http://x")) == (
            "Timed out (timeout: 5.0s, url: http://x)"
        )
        assert str(TimeoutError("Timed out")) == "Timed out"

    def test_api_error(self) -> None:
        """APIError renders status and optional type."""
        error = APIError("bad goal", status_code=400, error_type="GoalParseError")

        assert str(error) == "[HTTP 400] [GoalParseError] bad goal"
        assert str(APIError("teapot", status_code=418)) == "[HTTP 418] teapot"

    def test_not_found_error(self) -> None:
        """NotFoundError is a 404 naming the resource."""
        error = NotFoundError("Runner 'r1' not found", resource_type="runner", resource_id="r1")

        assert error.status_code == 404
        assert error.error_type == "not_found"
        assert error.resource_type == "runner"
        assert error.resource_id == "r1"

    def test_conflict_error(self) -> None:
        """ConflictError is a 409 carrying the sandbox error kind."""
        error = ConflictError("no such file or directory: /x", sandbox_error="NotFound")

        assert error.status_code == 409
        assert error.sandbox_error == "NotFound"

    def test_validation_and_server_errors(self) -> None:
        """ValidationError is always 422; ServerError defaults to 500."""
        assert ValidationError("bad").status_code == 422
        assert ServerError("down").status_code == 500
        assert ServerError("gateway", status_code=503).status_code == 503
