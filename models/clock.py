"""Virtual clock model."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ClockMode(str, Enum):
    """How the clock is currently being driven."""

    PAUSED = "paused"
    MANUAL = "manual"
    REAL_TIME = "real_time"
    FAST_FORWARD = "fast_forward"
    SLOW_MOTION = "slow_motion"


class VirtualClock(BaseModel):
    """Injectable clock that every screen manager reads "now" from.

    Virtual time never moves on its own. Tests push it forward explicitly
    through the Scheduler; the SchedulerLoop pushes it forward by scaled
    wall-clock time when auto-advance is on.

    Args:
        current_time: Current virtual timestamp (timezone-aware).
        time_scale: Virtual seconds per wall second in auto-advance mode.
        is_paused: Whether advancement is frozen.
        last_wall_time_update: Wall-clock anchor used for auto-advance.
        auto_advance: Whether a driver thread advances the clock.
    """

    current_time: datetime = Field(description="Current virtual timestamp")
    time_scale: float = Field(
        default=1.0,
        gt=0.0,
        description="Virtual seconds per wall second",
    )
    is_paused: bool = Field(default=False, description="Whether advancement is frozen")
    last_wall_time_update: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Wall-clock anchor for auto-advance",
    )
    auto_advance: bool = Field(
        default=False, description="Whether a driver thread advances the clock"
    )

    @field_validator("current_time", "last_wall_time_update")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Reject naive datetimes."""
        if v.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware (recommend UTC)")
        return v

    @classmethod
    def starting_at(cls, start: Optional[datetime] = None) -> "VirtualClock":
        """Build a manual clock starting at ``start`` (defaults to now, UTC)."""
        wall_now = datetime.now(timezone.utc)
        return cls(current_time=start or wall_now, last_wall_time_update=wall_now)

    @property
    def mode(self) -> ClockMode:
        """Derive the driving mode from pause, auto-advance and scale."""
        if self.is_paused:
            return ClockMode.PAUSED
        if not self.auto_advance:
            return ClockMode.MANUAL
        if self.time_scale == 1.0:
            return ClockMode.REAL_TIME
        if self.time_scale > 1.0:
            return ClockMode.FAST_FORWARD
        return ClockMode.SLOW_MOTION

    def now(self) -> datetime:
        """Return the current virtual time."""
        return self.current_time

    def scaled(self, wall_elapsed: timedelta) -> timedelta:
        """Convert elapsed wall time into virtual time (zero while paused)."""
        if self.is_paused:
            return timedelta(0)
        return timedelta(seconds=wall_elapsed.total_seconds() * self.time_scale)

    def advance(self, delta: timedelta) -> None:
        """Move virtual time forward by ``delta``.

        Raises:
            ValueError: If delta is negative or the clock is paused.
        """
        if delta < timedelta(0):
            raise ValueError("Cannot advance time backwards")
        if self.is_paused:
            raise ValueError("Cannot advance time while paused")

        self.current_time += delta
        self.last_wall_time_update = datetime.now(timezone.utc)

    def move_to(self, target: datetime) -> None:
        """Jump virtual time to ``target``.

        Raises:
            ValueError: If target is naive or earlier than the current time.
        """
        if target.tzinfo is None:
            raise ValueError("target must be timezone-aware")
        if target < self.current_time:
            raise ValueError(
                f"Cannot move time backwards: {target} < {self.current_time}"
            )

        self.current_time = target
        self.last_wall_time_update = datetime.now(timezone.utc)

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        """Unfreeze the clock and re-anchor wall time so no jump occurs."""
        self.is_paused = False
        self.last_wall_time_update = datetime.now(timezone.utc)

    def set_scale(self, scale: float) -> None:
        """Change the auto-advance scale.

        Raises:
            ValueError: If scale is not positive.
        """
        if scale <= 0.0:
            raise ValueError(f"Time scale must be positive, got {scale}")

        self.time_scale = scale
        self.last_wall_time_update = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        """Export clock state for API responses."""
        return {
            "current_time": self.current_time.isoformat(),
            "time_scale": self.time_scale,
            "is_paused": self.is_paused,
            "auto_advance": self.auto_advance,
            "mode": self.mode.value,
        }
