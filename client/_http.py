"""Internal HTTP layer for the sandbox client.

Wraps httpx with error mapping (HTTP status → client exception) and optional
retries with exponential backoff for connection failures, timeouts and
HTTP 502/503/504.

This is an internal module and should not be imported directly by users.
"""

import asyncio
import logging
import time
from typing import Any, Literal

import httpx

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

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "DELETE"]

# Status codes that trigger automatic retry (when retry is enabled)
RETRYABLE_STATUS_CODES = {502, 503, 504}

DEFAULT_RETRY_BACKOFF_BASE = 0.5  # seconds
DEFAULT_RETRY_BACKOFF_MAX = 30.0  # seconds


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_from_response(response: httpx.Response) -> APIError:
    """Build the client exception matching an error response.

    The server answers errors with ``{"error", "detail", "type", ...}``;
    FastAPI's own request validation answers with a ``detail`` list.

    Args:
        response: A response with a 4xx/5xx status.

    Returns:
        The exception to raise.
    """
    body = _response_body(response)
    status_code = response.status_code
    error_type = None
    details: dict[str, Any] | None = None

    if isinstance(body, dict):
        detail = body.get("detail")
        error_type = body.get("type")
        if isinstance(detail, list):
            message = "; ".join(
                f"{err.get('loc', ['unknown'])[-1]}: {err.get('msg', 'invalid')}"
                for err in detail
            )
            details = {"errors": detail}
        elif "validation_errors" in body:
            message = str(detail or body.get("error"))
            details = {"errors": body["validation_errors"]}
        else:
            message = str(detail or body.get("error") or f"HTTP {status_code} error")
            details = {
                key: value
                for key, value in body.items()
                if key not in ("error", "detail", "type")
            } or None
    else:
        message = str(body).strip() or f"HTTP {status_code} error"

    if status_code == 422:
        return ValidationError(message=message, details=details, response_body=body)
    if status_code == 404:
        resource_type, resource_id = None, None
        if isinstance(body, dict):
            for resource in ("mission", "runner"):
                if f"{resource}_id" in body:
                    resource_type, resource_id = resource, body[f"{resource}_id"]
        return NotFoundError(
            message=message,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            response_body=body,
        )
    if status_code == 409:
        return ConflictError(
            message=message,
            sandbox_error=error_type,
            details=details,
            response_body=body,
        )
    if status_code >= 500:
        return ServerError(
            message=message,
            status_code=status_code,
            details=details,
            response_body=body,
        )
    return APIError(
        message=message,
        status_code=status_code,
        error_type=error_type,
        details=details,
        response_body=body,
    )


def _calculate_backoff(attempt: int, base: float = DEFAULT_RETRY_BACKOFF_BASE) -> float:
    """Delay before retry number ``attempt`` (0-indexed): base * 2^attempt, capped."""
    return min(base * (2**attempt), DEFAULT_RETRY_BACKOFF_MAX)


def _transport_error(exc: httpx.TransportError, url: str, timeout: float) -> SandboxClientError:
    if isinstance(exc, httpx.TimeoutException):
        return TimeoutError(message=f"Request to {url} timed out", timeout=timeout, url=url)
    return ConnectionError(message=f"Failed to connect to {url}", url=url, cause=exc)


def _decode(response: httpx.Response) -> Any:
    if not response.is_success:
        raise _error_from_response(response)
    if response.content:
        return response.json()
    return None


class _RequestSettings:
    """Settings and retry decisions shared by the sync and async clients."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        retry_enabled: bool,
        max_retries: int,
        retry_backoff_base: float,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base

    @property
    def attempts(self) -> int:
        return self.max_retries + 1 if self.retry_enabled else 1

    def can_retry(self, attempt: int) -> bool:
        return self.retry_enabled and attempt < self.attempts - 1

    def backoff(self, attempt: int) -> float:
        return _calculate_backoff(attempt, self.retry_backoff_base)

    @staticmethod
    def clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
        if not params:
            return params
        return {key: value for key, value in params.items() if value is not None}


class HTTPClient(_RequestSettings):
    """Synchronous HTTP client for the sandbox API.

    Attributes:
        base_url: The base URL for all API requests.
        timeout: Request timeout in seconds.
        retry_enabled: Whether to retry on transient failures.
        max_retries: Maximum number of retry attempts.
        retry_backoff_base: First retry delay in seconds (doubles per retry).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
        retry_backoff_base: float = DEFAULT_RETRY_BACKOFF_BASE,
    ) -> None:
        super().__init__(base_url, timeout, retry_enabled, max_retries, retry_backoff_base)
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: URL path appended to base_url.
            params: Query parameters (None values are dropped).
            json: JSON request body.

        Returns:
            The parsed JSON response body, or None for empty responses.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the server returns an error response.
        """
        url = f"{self.base_url}{path}"
        params = self.clean_params(params)

        for attempt in range(self.attempts):
            try:
                response = self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as e:
                if not self.can_retry(attempt):
                    raise _transport_error(e, url, self.timeout) from e
                logger.debug(f"{method} {url} failed ({e}), retry {attempt + 1}")
                time.sleep(self.backoff(attempt))
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and self.can_retry(attempt):
                logger.debug(f"{method} {url} returned {response.status_code}, retry {attempt + 1}")
                time.sleep(self.backoff(attempt))
                continue

            return _decode(response)

        raise RuntimeError("Unexpected error in request retry loop")

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return self.request("POST", path, params=params, json=json)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)


class AsyncHTTPClient(_RequestSettings):
    """Asynchronous HTTP client for the sandbox API.

    Same behaviour as HTTPClient, over httpx.AsyncClient.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff_base: float = DEFAULT_RETRY_BACKOFF_BASE,
    ) -> None:
        super().__init__(base_url, timeout, retry_enabled, max_retries, retry_backoff_base)
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the server returns an error response.
        """
        url = f"{self.base_url}{path}"
        params = self.clean_params(params)

        for attempt in range(self.attempts):
            try:
                response = await self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as e:
                if not self.can_retry(attempt):
                    raise _transport_error(e, url, self.timeout) from e
                logger.debug(f"{method} {url} failed ({e}), retry {attempt + 1}")
                await asyncio.sleep(self.backoff(attempt))
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and self.can_retry(attempt):
                logger.debug(f"{method} {url} returned {response.status_code}, retry {attempt + 1}")
                await asyncio.sleep(self.backoff(attempt))
                continue

            return _decode(response)

        raise RuntimeError("Unexpected error in request retry loop")

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("DELETE", path, params=params)
