"""Shared fixtures for API integration tests.

This module provides the TestClient setup used across all API test files,
injecting a fresh Scheduler and ChatManager through FastAPI's dependency
overrides.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_chat_manager, get_scheduler
from main import app


@pytest.fixture
def client_with_chat(fresh_chatsim):
    """Provide a TestClient with a fresh scheduler and chat screen injected.

    The scheduler is started in manual mode before each test so time only
    moves when the test advances it, and stopped again during cleanup.

    Args:
        fresh_chatsim: A pytest fixture providing a fresh (scheduler, chat) pair.

    Yields:
        A tuple of (TestClient, Scheduler, ChatManager) for testing.

    Example:
        def test_something(client_with_chat):
            client, scheduler, chat = client_with_chat
            response = client.post("/chat/send", json={"content": "hi"})
            assert response.status_code == 200
    """
    scheduler, chat = fresh_chatsim
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_chat_manager] = lambda: chat

    client = TestClient(app)

    response = client.post("/scheduler/start", json={"auto_advance": False})
    assert response.status_code == 200, f"Failed to start scheduler: {response.json()}"

    yield client, scheduler, chat

    client.post("/scheduler/stop")
    app.dependency_overrides.clear()


@pytest.fixture
def client_stopped(fresh_chatsim):
    """Provide a TestClient whose scheduler has not been started."""
    scheduler, chat = fresh_chatsim
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_chat_manager] = lambda: chat

    yield TestClient(app), scheduler, chat

    app.dependency_overrides.clear()
