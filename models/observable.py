"""Change notification and callback registration contracts."""

import logging
from datetime import datetime
from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from models.errors import ScreenError

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class StateChange(BaseModel):
    """Notice delivered to listeners after a manager mutates its state.

    Args:
        screen: Which screen manager changed (e.g. "chat").
        kind: What changed (e.g. "message_appended", "typing_changed").
        at: Virtual time of the change.
        payload: Change-specific data (ids, new values).
    """

    screen: str
    kind: str
    at: datetime
    payload: dict[str, Any] = Field(default_factory=dict)


Listener = Callable[[StateChange], None]


class Observable:
    """Mixin giving a manager a subscribe/unsubscribe contract.

    Listeners are called synchronously, in subscription order, after each
    mutation. A listener that raises is logged and skipped; it never undoes
    the mutation or stops other listeners.
    """

    screen_name: str = "screen"

    def __init__(self) -> None:
        self._listeners: dict[str, Listener] = {}

    def subscribe(self, listener: Listener) -> str:
        """Register a listener.

        Returns:
            Subscription token for ``unsubscribe``.
        """
        token = str(uuid4())
        self._listeners[token] = listener
        return token

    def unsubscribe(self, token: str) -> bool:
        """Remove a listener; returns False if the token was unknown."""
        return self._listeners.pop(token, None) is not None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, kind: str, at: datetime, **payload: Any) -> None:
        change = StateChange(screen=self.screen_name, kind=kind, at=at, payload=payload)
        for token, listener in list(self._listeners.items()):
            try:
                listener(change)
            except Exception as e:
                logger.error(
                    f"Listener {token} failed on {self.screen_name}.{kind}: {e}",
                    exc_info=True,
                )


class CallbackSet(Generic[ResultT]):
    """Pair of "on-result" / "on-error" callbacks for one asynchronous request.

    Replaces delegate objects: the requester passes plain callables and the
    collaborator calls exactly one of them, at most once.
    """

    def __init__(
        self,
        on_result: Optional[Callable[[ResultT], None]] = None,
        on_error: Optional[Callable[[ScreenError], None]] = None,
    ) -> None:
        self.on_result = on_result
        self.on_error = on_error
        self.settled = False

    def resolve(self, result: ResultT) -> bool:
        """Deliver a result; returns False if already settled."""
        if self.settled:
            return False
        self.settled = True
        if self.on_result is not None:
            self.on_result(result)
        return True

    def reject(self, error: ScreenError) -> bool:
        """Deliver an error; returns False if already settled."""
        if self.settled:
            return False
        self.settled = True
        if self.on_error is not None:
            self.on_error(error)
        return True
