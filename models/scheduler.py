"""Scheduler and real-time driver.

The Scheduler is the single logical timeline every screen manager runs on.
Manager mutations and fired callbacks all happen under one re-entrant lock,
so there is never more than one writer, and callbacks fire strictly in
(due_time, priority, scheduling order).

The SchedulerLoop is the optional real-time driver: a daemon thread that
advances the virtual clock by scaled wall time and fires whatever is due.
"""

import logging
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from models.callback import CallbackStatus, ScheduledCallback
from models.clock import VirtualClock
from models.timeline import CallbackTimeline

logger = logging.getLogger(__name__)


class Scheduler(BaseModel):
    """Virtual-time callback scheduler.

    Attributes:
        clock: The injectable clock managers read "now" from.
        timeline: Every scheduled callback, ordered by due time.
        scheduler_id: Unique identifier for this scheduler.
        is_running: Whether the scheduler accepts time control.
        max_callbacks_per_advance: Guard against callbacks that reschedule
            themselves at the same instant forever.
        history_limit: Finished callbacks kept on the timeline for listings;
            older ones are dropped after every advance.
    """

    clock: VirtualClock = Field(default_factory=lambda: VirtualClock.starting_at())
    timeline: CallbackTimeline = Field(default_factory=CallbackTimeline)
    scheduler_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    is_running: bool = False
    max_callbacks_per_advance: int = Field(default=10_000, gt=0)
    history_limit: int = Field(default=500, ge=0)

    class Config:
        arbitrary_types_allowed = True

    def __init__(self, **data: Any):
        super().__init__(**data)
        self._loop: Optional[SchedulerLoop] = None
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock serialising every mutation on this timeline."""
        return self._lock

    def now(self) -> datetime:
        return self.clock.now()

    # ===== Scheduling =====

    def schedule(
        self,
        delay: float | timedelta,
        action: Callable[[], None],
        label: str,
        owner: str = "scheduler",
        priority: int = 0,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ScheduledCallback:
        """Schedule ``action`` to run ``delay`` after the current virtual time.

        Args:
            delay: Seconds (or a timedelta) from now; must not be negative.
            action: Zero-argument callable run when the callback fires.
            label: Short name for logs and listings.
            owner: Screen manager that owns the callback.
            priority: Tie-breaker for equal due times (higher first).
            metadata: Extra data stored on the callback.

        Returns:
            The scheduled callback (use its callback_id to cancel).

        Raises:
            ValueError: If delay is negative.
        """
        if not isinstance(delay, timedelta):
            delay = timedelta(seconds=delay)
        if delay < timedelta(0):
            raise ValueError(f"Delay must not be negative, got {delay}")

        with self._lock:
            now = self.clock.now()
            callback = ScheduledCallback(
                action=action,
                due_time=now + delay,
                label=label,
                owner=owner,
                priority=priority,
                created_at=now,
                metadata=metadata or {},
            )
            self.timeline.add(callback)

        logger.debug(f"Scheduled {label} for {callback.due_time} ({callback.callback_id})")
        return callback

    def cancel(self, callback_id: str, reason: str = "cancelled") -> bool:
        """Cancel a pending callback.

        Returns:
            True if a pending callback was cancelled; False if it was unknown
            or had already run.
        """
        with self._lock:
            callback = self.timeline.get(callback_id)
            if callback is None:
                return False
            cancelled = callback.cancel(reason)

        if cancelled:
            logger.debug(f"Cancelled {callback.label} ({callback_id}): {reason}")
        return cancelled

    def cancel_owner(self, owner: str, reason: str = "owner closed") -> int:
        with self._lock:
            return self.timeline.cancel_owner(owner, reason)

    def pending(self, owner: Optional[str] = None) -> list[ScheduledCallback]:
        with self._lock:
            if owner is None:
                return self.timeline.by_status(CallbackStatus.PENDING)
            return self.timeline.by_owner(owner)

    # ===== Lifecycle =====

    def start(self, auto_advance: bool = False, time_scale: float = 1.0, tick_interval: float = 0.01) -> dict:
        """Start accepting time control, optionally with the real-time driver.

        Raises:
            RuntimeError: If already running.
        """
        if self.is_running:
            raise RuntimeError("Scheduler is already running")

        self.is_running = True

        if auto_advance:
            self.clock.set_scale(time_scale)
            self.clock.auto_advance = True
            self._loop = SchedulerLoop(scheduler=self, tick_interval=tick_interval)
            self._loop.start()
            mode = "auto_advance"
        else:
            mode = "manual"

        logger.info(
            f"Scheduler {self.scheduler_id} started in {mode} mode at {self.clock.now()}"
        )

        return {
            "scheduler_id": self.scheduler_id,
            "status": "running",
            "mode": mode,
            "current_time": self.clock.now().isoformat(),
            "time_scale": time_scale if auto_advance else None,
        }

    def stop(self) -> dict:
        """Stop the driver thread (if any) and report timeline counts."""
        if not self.is_running:
            logger.warning("stop() called but scheduler is not running")
            return {"scheduler_id": self.scheduler_id, "status": "stopped", "final_time": None}

        if self._loop is not None and self._loop.is_running:
            self._loop.stop()
        self._loop = None
        self.clock.auto_advance = False
        self.is_running = False

        logger.info(f"Scheduler {self.scheduler_id} stopped at {self.clock.now()}")

        return {
            "scheduler_id": self.scheduler_id,
            "status": "stopped",
            "final_time": self.clock.now().isoformat(),
            "fired": len(self.timeline.by_status(CallbackStatus.FIRED)),
            "failed": len(self.timeline.by_status(CallbackStatus.FAILED)),
            "pending": self.timeline.pending_count,
        }

    # ===== Time control =====

    def advance(self, delta: float | timedelta) -> list[ScheduledCallback]:
        """Advance virtual time by ``delta``, firing everything that falls due.

        The clock steps to each callback's due time before firing it, so a
        callback observes the time it was scheduled for and anything it
        schedules inside the window also fires during this call.

        Returns:
            Callbacks fired (including failed ones) in firing order.

        Raises:
            ValueError: If delta is not positive.
        """
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        if delta <= timedelta(0):
            raise ValueError(f"Time delta must be positive, got {delta}")
        if self.clock.is_paused:
            raise ValueError("Cannot advance time while paused")

        with self._lock:
            target = self.clock.now() + delta
            fired = self._fire_until(target)
            self.clock.move_to(target)

        if fired:
            logger.info(f"Advanced {delta} to {target}, fired {len(fired)} callbacks")
        return fired

    def advance_to(self, target: datetime) -> list[ScheduledCallback]:
        """Advance virtual time to an absolute ``target``."""
        with self._lock:
            delta = target - self.clock.now()
            if delta <= timedelta(0):
                raise ValueError(f"Target {target} is not after current time {self.clock.now()}")
            return self.advance(delta)

    def skip_to_next(self) -> list[ScheduledCallback]:
        """Jump to the next pending callback and fire everything due then.

        Returns:
            Callbacks fired (empty when nothing is pending).
        """
        if self.clock.is_paused:
            raise ValueError("Cannot skip ahead while paused")

        with self._lock:
            upcoming = self.timeline.peek_next()
            if upcoming is None:
                return []
            target = max(upcoming.due_time, self.clock.now())
            fired = self._fire_until(target)
            self.clock.move_to(target)
            return fired

    def run_until_idle(self, limit: int = 1000) -> list[ScheduledCallback]:
        """Keep skipping to the next callback until none are pending.

        Raises:
            RuntimeError: If more than ``limit`` callbacks fire, which means
                something keeps rescheduling itself (ambient loops do).
        """
        fired: list[ScheduledCallback] = []
        with self._lock:
            while self.timeline.peek_next() is not None:
                fired.extend(self.skip_to_next())
                if len(fired) > limit:
                    raise RuntimeError(
                        f"Timeline did not go idle after {limit} callbacks"
                    )
        return fired

    def pause(self) -> None:
        self.clock.pause()
        logger.info(f"Scheduler {self.scheduler_id} paused")

    def resume(self) -> None:
        self.clock.resume()
        logger.info(f"Scheduler {self.scheduler_id} resumed")

    def tick(self) -> None:
        """Advance by scaled wall time since the last tick (driver thread only)."""
        with self._lock:
            wall_now = datetime.now(timezone.utc)
            delta = self.clock.scaled(wall_now - self.clock.last_wall_time_update)
            if delta > timedelta(0):
                fired = self.advance(delta)
                if fired:
                    logger.debug(f"Tick: advanced {delta}, fired {len(fired)} callbacks")

    def _fire_until(self, target: datetime) -> list[ScheduledCallback]:
        fired: list[ScheduledCallback] = []
        while True:
            callback = self.timeline.pop_due(target)
            if callback is None:
                break
            if len(fired) >= self.max_callbacks_per_advance:
                raise RuntimeError(
                    f"More than {self.max_callbacks_per_advance} callbacks fired in one advance"
                )
            if callback.due_time > self.clock.now():
                self.clock.move_to(callback.due_time)
            callback.fire(self.clock.now())
            fired.append(callback)
            logger.debug(f"Fired {callback.get_summary()}")

        trimmed = self.timeline.trim_history(self.history_limit)
        if trimmed:
            logger.debug(f"Dropped {trimmed} finished callbacks from the timeline")
        return fired

    # ===== State access =====

    def get_snapshot(self) -> dict[str, Any]:
        with self._lock:
            upcoming = self.timeline.peek_next()
            return {
                "scheduler_id": self.scheduler_id,
                "is_running": self.is_running,
                "mode": "auto_advance" if (self._loop and self._loop.is_running) else "manual",
                "clock": self.clock.to_dict(),
                "pending_callbacks": self.timeline.pending_count,
                "fired_callbacks": len(self.timeline.by_status(CallbackStatus.FIRED)),
                "failed_callbacks": len(self.timeline.by_status(CallbackStatus.FAILED)),
                "next_callback": upcoming.to_dict() if upcoming else None,
            }

    def validate(self) -> list[str]:
        return [f"Timeline: {e}" for e in self.timeline.validate_timeline()]


class SchedulerLoop:
    """Daemon thread that drives a Scheduler in real time.

    Holds no scheduling logic of its own; every tick delegates to
    ``Scheduler.tick()``.

    Attributes:
        scheduler: The Scheduler to drive.
        tick_interval: Seconds slept between ticks.
        is_running: Whether the thread is active.
    """

    def __init__(self, scheduler: Scheduler, tick_interval: float = 0.01) -> None:
        self.scheduler = scheduler
        self.tick_interval = tick_interval

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.is_running = False

    def start(self) -> None:
        """Start the driver thread.

        Raises:
            RuntimeError: If already running.
        """
        if self.is_running:
            raise RuntimeError("Scheduler loop is already running")

        self.is_running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="scheduler-loop")
        self._thread.start()
        logger.info("SchedulerLoop started")

    def stop(self) -> None:
        if not self.is_running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=1.0)

        self.is_running = False
        self._thread = None
        logger.info("SchedulerLoop stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            if not self.scheduler.clock.is_paused:
                try:
                    self.scheduler.tick()
                except Exception as e:
                    logger.error(f"Error during scheduler tick: {e}", exc_info=True)
            time.sleep(self.tick_interval)
