"""Scheduled callback model."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr

logger = logging.getLogger(__name__)


class CallbackStatus(str, Enum):
    """Lifecycle of a scheduled callback."""

    PENDING = "pending"
    FIRING = "firing"
    FIRED = "fired"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScheduledCallback(BaseModel):
    """A delayed effect waiting on the virtual timeline.

    Callbacks are how screen managers simulate network round-trips: instead
    of sleeping, a manager schedules a callable to run once the virtual clock
    reaches ``due_time``. The callable must look up whatever it mutates at
    fire time; it is never handed a reference captured at schedule time.

    Args:
        callback_id: Unique identifier for this callback.
        due_time: Virtual time at which the callback fires.
        label: Short name used in logs and listings (e.g. "chat.deliver").
        owner: Which screen manager scheduled it.
        priority: Tie-breaker for equal due times (higher fires first).
        sequence: Scheduling order, assigned by the timeline.
        status: Current lifecycle state.
        created_at: Virtual time the callback was scheduled.
        fired_at: Virtual time the callback actually ran.
        error_message: Failure details when status is FAILED.
        metadata: Free-form extra data (cancel reasons, target ids).
    """

    callback_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique identifier for this callback",
    )
    due_time: datetime = Field(description="Virtual time at which the callback fires")
    label: str = Field(description="Short name used in logs and listings")
    owner: str = Field(default="scheduler", description="Screen manager that owns it")
    priority: int = Field(default=0, description="Higher fires first on ties")
    sequence: int = Field(default=0, description="Scheduling order")
    status: CallbackStatus = Field(default=CallbackStatus.PENDING)
    created_at: datetime = Field(description="Virtual time the callback was scheduled")
    fired_at: Optional[datetime] = Field(default=None)
    error_message: Optional[str] = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)

    _action: Optional[Callable[[], None]] = PrivateAttr(default=None)

    def __init__(self, action: Optional[Callable[[], None]] = None, **data: Any):
        super().__init__(**data)
        self._action = action

    @property
    def is_pending(self) -> bool:
        return self.status == CallbackStatus.PENDING

    def is_due(self, now: datetime) -> bool:
        """Whether this callback is pending and its due time has been reached."""
        return self.is_pending and self.due_time <= now

    def fire(self, now: datetime) -> None:
        """Run the action and record the outcome.

        Failures are captured on the callback rather than raised so one
        broken effect cannot stall the rest of the timeline.

        Raises:
            RuntimeError: If the callback is not pending.
        """
        if self.status != CallbackStatus.PENDING:
            raise RuntimeError(
                f"Cannot fire callback {self.callback_id} with status {self.status.value}"
            )

        self.status = CallbackStatus.FIRING
        try:
            if self._action is not None:
                self._action()
            self.status = CallbackStatus.FIRED
        except Exception as e:
            self.status = CallbackStatus.FAILED
            self.error_message = f"{type(e).__name__}: {e}"
            logger.error(
                f"Callback {self.label} ({self.callback_id}) failed: {e}",
                exc_info=True,
            )
        finally:
            self.fired_at = now
            self._action = None

    def cancel(self, reason: str) -> bool:
        """Cancel the callback if it has not run yet.

        Returns:
            True if the callback was pending and is now cancelled, False if it
            had already fired, failed or been cancelled.
        """
        if self.status != CallbackStatus.PENDING:
            return False

        self.status = CallbackStatus.CANCELLED
        self.metadata["cancel_reason"] = reason
        self._action = None
        return True

    def validate_callback(self) -> list[str]:
        """Return consistency problems (empty if none)."""
        errors = []

        if not self.label.strip():
            errors.append("Label cannot be empty")

        if self.due_time < self.created_at:
            errors.append(
                f"due_time ({self.due_time}) is before created_at ({self.created_at})"
            )

        if self.status in (CallbackStatus.FIRED, CallbackStatus.FAILED) and self.fired_at is None:
            errors.append(f"Callback has status {self.status.value} but fired_at is None")

        if self.status == CallbackStatus.FAILED and not self.error_message:
            errors.append("Callback has status failed but no error_message")

        return errors

    def get_summary(self) -> str:
        """One-line description, e.g. ``[12:00:00.500] chat.deliver (pending)``."""
        time_str = self.due_time.strftime("%H:%M:%S.%f")[:-3]
        return f"[{time_str}] {self.label} ({self.status.value})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "callback_id": self.callback_id,
            "label": self.label,
            "owner": self.owner,
            "due_time": self.due_time.isoformat(),
            "priority": self.priority,
            "status": self.status.value,
            "fired_at": self.fired_at.isoformat() if self.fired_at else None,
            "error_message": self.error_message,
        }
