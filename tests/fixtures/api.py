"""Shared fixtures for API testing.

These fixtures provide a fresh Scheduler and ChatManager for each test,
ensuring test isolation.
"""

import pytest

from tests.fixtures.core.schedulers import create_scheduler
from tests.fixtures.screens.chat import create_chat_manager


@pytest.fixture
def fresh_chatsim():
    """Provide a fresh (scheduler, chat manager) pair.

    The scheduler starts stopped at START_TIME; the chat manager uses the
    default delays and a seeded reply pool.
    """
    scheduler = create_scheduler()
    chat = create_chat_manager(scheduler)
    yield scheduler, chat
    chat.close()
    if scheduler.is_running:
        scheduler.stop()
