"""Core infrastructure fixtures."""

from tests.fixtures.core.schedulers import create_scheduler
from tests.fixtures.core.times import START_TIME, create_clock

__all__ = [
    "START_TIME",
    "create_clock",
    "create_scheduler",
]
