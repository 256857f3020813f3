"""Dependency injection providers for the FastAPI application.

This module defines dependencies that can be injected into route handlers,
providing access to the shared Scheduler and the ChatManager running on it.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from models.chat_manager import ChatManager
from models.config import Settings
from models.scheduler import Scheduler

logger = logging.getLogger(__name__)


# Global state
# One scheduler and one chat screen per process, created when the app starts.
_scheduler: Scheduler | None = None
_chat_manager: ChatManager | None = None


def get_scheduler() -> Scheduler:
    """Get the shared Scheduler instance.

    This function is a FastAPI dependency. When you add it to a route handler's
    parameters, FastAPI will automatically call this function and inject the result.

    Returns:
        The shared Scheduler instance.

    Raises:
        RuntimeError: If the app hasn't been initialized yet.
    """
    if _scheduler is None:
        raise RuntimeError("Scheduler not initialized. Call initialize_chatsim() first.")
    return _scheduler


def get_chat_manager() -> ChatManager:
    """Get the shared ChatManager instance.

    Raises:
        RuntimeError: If the app hasn't been initialized yet.
    """
    if _chat_manager is None:
        raise RuntimeError("ChatManager not initialized. Call initialize_chatsim() first.")
    return _chat_manager


def initialize_chatsim(settings: Optional[Settings] = None) -> tuple[Scheduler, ChatManager]:
    """Create the shared Scheduler and ChatManager.

    This should be called once when the FastAPI app starts up. The
    scheduler is created stopped; clients start it via POST /scheduler/start.

    Args:
        settings: Process settings. Read from the environment when omitted.

    Returns:
        The new (scheduler, chat manager) pair.
    """
    global _scheduler, _chat_manager

    settings = settings or Settings()

    _scheduler = Scheduler()
    _chat_manager = ChatManager(_scheduler, config=settings.to_chat_config())

    logger.info(
        f"Initialized scheduler {_scheduler.scheduler_id} with chat {_chat_manager.manager_id}"
    )
    return _scheduler, _chat_manager


def shutdown_chatsim() -> None:
    """Close the chat screen and stop the scheduler's driver thread."""
    global _scheduler, _chat_manager

    if _chat_manager is not None:
        _chat_manager.close()

    if _scheduler is not None and _scheduler.is_running:
        _scheduler.stop()

    _scheduler = None
    _chat_manager = None


# Type aliases for dependency injection
SchedulerDep = Annotated[Scheduler, Depends(get_scheduler)]
ChatManagerDep = Annotated[ChatManager, Depends(get_chat_manager)]
