"""Utility functions for API route handlers."""

from api.exceptions import SchedulerNotRunningError
from api.models import CallbackDetail
from models.callback import CallbackStatus, ScheduledCallback
from models.scheduler import Scheduler


def require_running(scheduler: Scheduler, operation: str) -> None:
    """Raise SchedulerNotRunningError unless the scheduler has been started.

    Args:
        scheduler: The shared Scheduler.
        operation: Description used in the error message.
    """
    if not scheduler.is_running:
        raise SchedulerNotRunningError(f"Cannot {operation}: scheduler is not running")


def summarize_fired(fired: list[ScheduledCallback]) -> dict:
    """Count and describe callbacks returned by an advance."""
    failed = [c for c in fired if c.status == CallbackStatus.FAILED]
    return {
        "callbacks_fired": len(fired) - len(failed),
        "callbacks_failed": len(failed),
        "fired_details": [CallbackDetail.from_callback(c) for c in fired],
    }
