"""Environment-driven settings for the sandbox engine.

Values come from process environment variables. main.py calls
``load_dotenv()`` first, so a local ``.env`` file can provide them too.
"""

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_USER = "learner"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_RUNNERS = 100


class SandboxSettings(BaseModel):
    """Runtime settings.

    Args:
        user: Learner user name; home directory is /home/<user>.
        log_level: Logging level name.
        max_runners: Cap on concurrently active mission runners.
    """

    user: str = Field(default=DEFAULT_USER, description="Learner user name")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Logging level name")
    max_runners: int = Field(default=DEFAULT_MAX_RUNNERS, description="Cap on active runners")

    @field_validator("user")
    @classmethod
    def validate_user(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError(f"invalid user name: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {v}")
        return level

    @field_validator("max_runners")
    @classmethod
    def validate_max_runners(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_runners must be at least 1")
        return v

    @property
    def home(self) -> str:
        return f"/home/{self.user}"

    @classmethod
    def from_env(cls) -> "SandboxSettings":
        """Build settings from SANDBOX_* environment variables."""
        return cls(
            user=os.getenv("SANDBOX_USER", DEFAULT_USER),
            log_level=os.getenv("SANDBOX_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            max_runners=int(os.getenv("SANDBOX_MAX_RUNNERS", str(DEFAULT_MAX_RUNNERS))),
        )
