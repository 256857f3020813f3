"""Fixtures for Scheduler."""

from datetime import datetime

import pytest

from models.scheduler import Scheduler
from tests.fixtures.core.times import START_TIME, create_clock


def create_scheduler(start: datetime | None = None, running: bool = False) -> Scheduler:
    """Create a manual-mode Scheduler starting at ``start`` (default START_TIME)."""
    scheduler = Scheduler(clock=create_clock(start or START_TIME))
    if running:
        scheduler.start()
    return scheduler


@pytest.fixture
def scheduler():
    """A fresh, stopped Scheduler at START_TIME."""
    return create_scheduler()


@pytest.fixture
def running_scheduler():
    """A started manual-mode Scheduler; stopped again on teardown."""
    scheduler = create_scheduler(running=True)
    yield scheduler
    scheduler.stop()
