"""Exception handlers for the sandbox FastAPI application.

This module converts engine and sandbox exceptions into consistent JSON
responses with ``error`` and ``detail`` keys.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from sandbox.engine import MissionNotFoundError, RunnerNotFoundError
from sandbox.errors import GoalParseError, SandboxError

logger = logging.getLogger(__name__)


async def mission_not_found_handler(request: Request, exc: MissionNotFoundError):
    """Handle MissionNotFoundError exceptions.

    Returns a 404 naming the requested mission.

    Args:
        request: The incoming request that triggered the error.
        exc: The MissionNotFoundError exception.

    Returns:
        JSONResponse with 404 status.
    """
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Mission Not Found",
            "detail": str(exc),
            "mission_id": exc.mission_id,
            "suggestion": "List available missions with GET /missions",
        },
    )


async def runner_not_found_handler(request: Request, exc: RunnerNotFoundError):
    """Handle RunnerNotFoundError exceptions.

    Runners disappear when a mission is ended or evicted, so the response
    suggests starting a new attempt.

    Args:
        request: The incoming request that triggered the error.
        exc: The RunnerNotFoundError exception.

    Returns:
        JSONResponse with 404 status.
    """
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Runner Not Found",
            "detail": str(exc),
            "runner_id": exc.runner_id,
            "suggestion": "Start a mission with POST /missions/{mission_id}/start",
        },
    )


async def sandbox_error_handler(request: Request, exc: SandboxError):
    """Handle sandbox errors that escape a runner (e.g. failing setup actions).

    Args:
        request: The incoming request that triggered the error.
        exc: The SandboxError exception.

    Returns:
        JSONResponse with 409 status.
    """
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "Sandbox Error",
            "detail": exc.message,
            "type": exc.kind,
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValidationError exception.

    Returns:
        JSONResponse with validation error details.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "validation_errors": exc.errors(include_url=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions, including GoalParseError.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValueError exception.

    Returns:
        JSONResponse with 400 status.
    """
    error_type = "GoalParseError" if isinstance(exc, GoalParseError) else "ValueError"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": error_type,
        },
    )


async def runtime_error_handler(request: Request, exc: RuntimeError):
    """Handle RuntimeError exceptions.

    Args:
        request: The incoming request that triggered the error.
        exc: The RuntimeError exception.

    Returns:
        JSONResponse with 500 status.
    """
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Runtime Error",
            "detail": str(exc),
            "type": "RuntimeError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions without exposing stack traces.

    Args:
        request: The incoming request that triggered the error.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )
