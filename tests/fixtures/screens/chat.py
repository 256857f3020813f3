"""Fixtures for the chat screen."""

import random

import pytest

from models.capability import CapabilityGate
from models.chat_manager import ChatManager
from models.config import ChatConfig
from models.observable import StateChange
from models.scheduler import Scheduler
from tests.fixtures.core.schedulers import create_scheduler

REPLY_POOL = ["That's interesting!", "I see what you mean.", "Sounds good to me!"]


def create_chat_config(**overrides) -> ChatConfig:
    """Create a ChatConfig with the default delays and a short reply pool.

    Args:
        **overrides: Any ChatConfig field.
    """
    values = {"reply_pool": list(REPLY_POOL)}
    values.update(overrides)
    return ChatConfig(**values)


def create_chat_manager(
    scheduler: Scheduler | None = None,
    capabilities: CapabilityGate | None = None,
    seed: int = 0,
    **config_overrides,
) -> ChatManager:
    """Create a ChatManager on its own scheduler (unless one is given).

    Args:
        scheduler: Timeline to run on (defaults to a fresh one at START_TIME).
        capabilities: Optional capability gate.
        seed: Seed for reply selection.
        **config_overrides: ChatConfig fields.
    """
    return ChatManager(
        scheduler or create_scheduler(),
        config=create_chat_config(**config_overrides),
        capabilities=capabilities,
        rng=random.Random(seed),
    )


class ChangeRecorder:
    """Listener that records every StateChange it receives."""

    def __init__(self) -> None:
        self.changes: list[StateChange] = []

    def __call__(self, change: StateChange) -> None:
        self.changes.append(change)

    @property
    def kinds(self) -> list[str]:
        return [c.kind for c in self.changes]


@pytest.fixture
def chat(scheduler):
    """A ChatManager on the ``scheduler`` fixture, closed on teardown."""
    manager = create_chat_manager(scheduler)
    yield manager
    manager.close()


@pytest.fixture
def recorder(chat):
    """A ChangeRecorder subscribed to the ``chat`` fixture."""
    listener = ChangeRecorder()
    chat.subscribe(listener)
    return listener
