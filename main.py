"""Main entry point for the Terminal Sandbox FastAPI application.

This module creates and configures the FastAPI app instance that serves the
REST API for running terminal-skills missions in an in-memory sandbox.

To run the development server:
    uv run uvicorn main:app --reload

To run in production:
    uv run uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from pydantic import ValidationError

from api.dependencies import initialize_sandbox_engine, shutdown_sandbox_engine
from api.exceptions import (
    generic_exception_handler,
    mission_not_found_handler,
    runner_not_found_handler,
    runtime_error_handler,
    sandbox_error_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.routes import missions as missions_routes
from api.routes import runners as runners_routes
from sandbox.config import SandboxSettings
from sandbox.engine import MissionNotFoundError, RunnerNotFoundError
from sandbox.errors import SandboxError

load_dotenv()

settings = SandboxSettings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to FastAPI to handle requests.
    """
    logger.info(f"Starting Terminal Sandbox for user '{settings.user}'")
    initialize_sandbox_engine(settings)

    yield

    logger.info("Shutting down Terminal Sandbox")
    shutdown_sandbox_engine()


app = FastAPI(
    title="Terminal Sandbox",
    description="API for practising terminal commands in an in-memory sandbox",
    version="0.1.0",
    lifespan=lifespan,
)

# Register exception handlers
# Order matters: specific exceptions before general ones
app.add_exception_handler(MissionNotFoundError, mission_not_found_handler)
app.add_exception_handler(RunnerNotFoundError, runner_not_found_handler)
app.add_exception_handler(SandboxError, sandbox_error_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(RuntimeError, runtime_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register route modules
app.include_router(missions_routes.router)
app.include_router(runners_routes.router)


@app.get("/")
async def root():
    """Root endpoint - returns a welcome message."""
    return {
        "message": "Welcome to the Terminal Sandbox API",
        "version": "0.1.0",
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
