"""Pytest configuration and shared fixtures."""

# Load CHATSIM_* settings from .env before any Settings() is built
from dotenv import load_dotenv

load_dotenv()

pytest_plugins = [
    "tests.fixtures.core.schedulers",
    "tests.fixtures.screens.chat",
    "tests.fixtures.api",
]
