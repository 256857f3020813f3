"""Callback timeline model."""

import bisect
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.callback import CallbackStatus, ScheduledCallback


def _order_key(callback: ScheduledCallback) -> tuple:
    # Earlier first, then higher priority, then scheduling order.
    return (callback.due_time, -callback.priority, callback.sequence)


def _is_finished(callback: ScheduledCallback) -> bool:
    return not callback.is_pending and callback.status != CallbackStatus.FIRING


class CallbackTimeline(BaseModel):
    """Time-ordered list of scheduled callbacks.

    Pending callbacks are kept sorted by due time so the scheduler can pick
    the next one cheaply. Fired, failed and cancelled callbacks stay in the
    list as history until ``prune`` or ``trim_history`` removes them.

    Args:
        callbacks: Every callback ever scheduled and not yet pruned.
        next_sequence: Counter used to stamp scheduling order.
    """

    callbacks: list[ScheduledCallback] = Field(default_factory=list)
    next_sequence: int = Field(default=0)

    class Config:
        arbitrary_types_allowed = True

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self.callbacks if c.is_pending)

    @property
    def next_due_time(self) -> Optional[datetime]:
        """Due time of the next pending callback, or None."""
        upcoming = self.peek_next()
        return upcoming.due_time if upcoming else None

    def add(self, callback: ScheduledCallback) -> ScheduledCallback:
        """Insert a callback in order and stamp its sequence number.

        Raises:
            ValueError: If the id is already present or the callback is invalid.
        """
        if any(c.callback_id == callback.callback_id for c in self.callbacks):
            raise ValueError(f"Callback {callback.callback_id} already scheduled")

        errors = callback.validate_callback()
        if errors:
            raise ValueError(f"Invalid callback: {errors}")

        callback.sequence = self.next_sequence
        self.next_sequence += 1

        bisect.insort(self.callbacks, callback, key=_order_key)
        return callback

    def get(self, callback_id: str) -> Optional[ScheduledCallback]:
        for callback in self.callbacks:
            if callback.callback_id == callback_id:
                return callback
        return None

    def peek_next(self) -> Optional[ScheduledCallback]:
        """Return the earliest pending callback without changing it."""
        for callback in self.callbacks:
            if callback.is_pending:
                return callback
        return None

    def pop_due(self, now: datetime) -> Optional[ScheduledCallback]:
        """Return the earliest pending callback due at or before ``now``.

        The callback stays in the list; the caller fires it, which moves it
        out of the pending state.
        """
        upcoming = self.peek_next()
        if upcoming is not None and upcoming.due_time <= now:
            return upcoming
        return None

    def get_due(self, now: datetime) -> list[ScheduledCallback]:
        return [c for c in self.callbacks if c.is_due(now)]

    def by_status(self, status: CallbackStatus) -> list[ScheduledCallback]:
        return [c for c in self.callbacks if c.status == status]

    def by_owner(self, owner: str, pending_only: bool = True) -> list[ScheduledCallback]:
        return [
            c
            for c in self.callbacks
            if c.owner == owner and (c.is_pending or not pending_only)
        ]

    def cancel_owner(self, owner: str, reason: str) -> int:
        """Cancel every pending callback scheduled by ``owner``.

        Returns:
            Number of callbacks cancelled.
        """
        return sum(1 for c in self.by_owner(owner) if c.cancel(reason))

    def prune(self, before: Optional[datetime] = None) -> int:
        """Drop finished callbacks (optionally only those fired before ``before``).

        Returns:
            Number of callbacks removed.
        """
        initial = len(self.callbacks)

        def finished(c: ScheduledCallback) -> bool:
            if not _is_finished(c):
                return False
            if before is None:
                return True
            stamp = c.fired_at or c.due_time
            return stamp < before

        self.callbacks = [c for c in self.callbacks if not finished(c)]
        return initial - len(self.callbacks)

    def trim_history(self, keep: int) -> int:
        """Keep only the ``keep`` latest finished callbacks; pending ones always stay.

        Returns:
            Number of callbacks removed.
        """
        finished = [c for c in self.callbacks if _is_finished(c)]
        excess = len(finished) - keep
        if excess <= 0:
            return 0
        dropped = {c.callback_id for c in finished[:excess]}
        self.callbacks = [c for c in self.callbacks if c.callback_id not in dropped]
        return excess

    def validate_timeline(self) -> list[str]:
        """Check ordering, id uniqueness and per-callback consistency."""
        errors = []

        ids = [c.callback_id for c in self.callbacks]
        if len(ids) != len(set(ids)):
            duplicates = {cid for cid in ids if ids.count(cid) > 1}
            errors.append(f"Duplicate callback IDs found: {duplicates}")

        for i in range(len(self.callbacks) - 1):
            if _order_key(self.callbacks[i]) > _order_key(self.callbacks[i + 1]):
                errors.append(f"Callbacks not ordered at index {i}")

        for callback in self.callbacks:
            problems = callback.validate_callback()
            if problems:
                errors.append(f"Callback {callback.callback_id}: {problems}")

        return errors
