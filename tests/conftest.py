"""Pytest configuration and shared fixtures."""

# Load environment variables from .env file at test startup
# so SANDBOX_* settings are visible before fixtures are created
from dotenv import load_dotenv
load_dotenv()

# Import all fixtures from the fixture modules
pytest_plugins = [
    "tests.fixtures.filesystems",
    "tests.fixtures.missions",
    "tests.fixtures.api",
]
