"""Dependency injection providers for the FastAPI application.

This module defines dependencies that can be injected into route handlers,
providing access to the shared SandboxEngine.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from sandbox.config import SandboxSettings
from sandbox.engine import SandboxEngine

logger = logging.getLogger(__name__)


# Global state
# A single engine instance is created when the app starts
_sandbox_engine: SandboxEngine | None = None


def get_sandbox_engine() -> SandboxEngine:
    """Get the shared SandboxEngine instance.

    Returns:
        The shared SandboxEngine instance.

    Raises:
        RuntimeError: If the engine hasn't been initialized yet.
    """
    if _sandbox_engine is None:
        raise RuntimeError(
            "SandboxEngine not initialized. Call initialize_sandbox_engine() first."
        )

    return _sandbox_engine


def initialize_sandbox_engine(settings: Optional[SandboxSettings] = None) -> SandboxEngine:
    """Initialize the shared SandboxEngine instance.

    Called once when the FastAPI app starts up. Loads the built-in mission
    catalog for the configured learner.

    Args:
        settings: Runtime settings. Read from the environment when omitted.

    Returns:
        The newly created SandboxEngine instance.
    """
    global _sandbox_engine

    settings = settings or SandboxSettings.from_env()
    _sandbox_engine = SandboxEngine.create(settings=settings)
    return _sandbox_engine


def shutdown_sandbox_engine() -> None:
    """Shut down the SandboxEngine, ending every active runner."""
    global _sandbox_engine

    if _sandbox_engine is not None:
        _sandbox_engine.shutdown()

    _sandbox_engine = None


# Type alias for dependency injection
SandboxEngineDep = Annotated[SandboxEngine, Depends(get_sandbox_engine)]
