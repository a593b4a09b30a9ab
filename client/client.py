"""Main sandbox client classes.

- SandboxClient: Synchronous client for the sandbox REST API
- AsyncSandboxClient: Asynchronous client for the sandbox REST API

Both expose the API through the ``missions`` and ``runners`` sub-clients.

Example:
    Synchronous usage::

        from client import SandboxClient

        with SandboxClient(base_url="http://localhost:8000") as client:
            runner = client.missions.start("0.3-go-home")
            result = client.runners.execute(runner.runner_id, "cd ~")
            print(result.completed)

    Asynchronous usage::

        from client import AsyncSandboxClient

        async with AsyncSandboxClient() as client:
            runner = await client.missions.start("0.3-go-home")
            await client.runners.execute(runner.runner_id, "cd")
"""

from typing import Any

from client._http import AsyncHTTPClient, HTTPClient
from client._missions import AsyncMissionsClient, MissionsClient
from client._runners import AsyncRunnersClient, RunnersClient
from client.exceptions import SandboxClientError
from client.models import HealthResponse


class SandboxClient:
    """Synchronous client for the sandbox REST API.

    Attributes:
        base_url: The base URL of the sandbox server.
        timeout: Request timeout in seconds.
        retry_enabled: Whether automatic retry is enabled.
        max_retries: Maximum number of retry attempts.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: The base URL of the sandbox server.
            timeout: Request timeout in seconds.
            retry_enabled: Whether to retry connection errors, timeouts and
                HTTP 502/503/504 with exponential backoff.
            max_retries: Maximum number of retry attempts when retry is enabled.
            transport: Custom HTTP transport (e.g. httpx.MockTransport in tests).
        """
        self._base_url = base_url
        self._timeout = timeout
        self._retry_enabled = retry_enabled
        self._max_retries = max_retries

        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._missions: MissionsClient | None = None
        self._runners: RunnersClient | None = None

    def __enter__(self) -> "SandboxClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    @property
    def missions(self) -> MissionsClient:
        """Access mission catalog endpoints (/missions/*)."""
        if self._missions is None:
            self._missions = MissionsClient(self._http)
        return self._missions

    @property
    def runners(self) -> RunnersClient:
        """Access mission runner endpoints (/runners/*)."""
        if self._runners is None:
            self._runners = RunnersClient(self._http)
        return self._runners

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def retry_enabled(self) -> bool:
        return self._retry_enabled

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def health(self) -> HealthResponse:
        """Check server health.

        Returns:
            HealthResponse with the server status.
        """
        return HealthResponse(**self._http.get("/health"))

    def is_healthy(self) -> bool:
        """Return True if the server answers its health check."""
        try:
            return self.health().status == "healthy"
        except SandboxClientError:
            return False


class AsyncSandboxClient:
    """Asynchronous client for the sandbox REST API.

    Takes the same arguments as SandboxClient.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._retry_enabled = retry_enabled
        self._max_retries = max_retries

        self._http = AsyncHTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._missions: AsyncMissionsClient | None = None
        self._runners: AsyncRunnersClient | None = None

    async def __aenter__(self) -> "AsyncSandboxClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    @property
    def missions(self) -> AsyncMissionsClient:
        """Access mission catalog endpoints (/missions/*)."""
        if self._missions is None:
            self._missions = AsyncMissionsClient(self._http)
        return self._missions

    @property
    def runners(self) -> AsyncRunnersClient:
        """Access mission runner endpoints (/runners/*)."""
        if self._runners is None:
            self._runners = AsyncRunnersClient(self._http)
        return self._runners

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def retry_enabled(self) -> bool:
        return self._retry_enabled

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def health(self) -> HealthResponse:
        """Check server health."""
        return HealthResponse(**await self._http.get("/health"))

    async def is_healthy(self) -> bool:
        """Return True if the server answers its health check."""
        try:
            return (await self.health()).status == "healthy"
        except SandboxClientError:
            return False
