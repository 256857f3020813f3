"""Virtual time sub-client for the ChatSim API.

This module provides TimeClient and AsyncTimeClient for the time control
endpoints (/scheduler/time/*).

This is an internal module. Import from `client` instead.
"""

from datetime import datetime

from pydantic import BaseModel

from client._base import AsyncBaseClient, BaseClient
from client.models import CallbackDetail


# Response models for time endpoints


class TimeStateResponse(BaseModel):
    """Response model for current time state.

    Attributes:
        current_time: The current virtual time.
        time_scale: Multiplier for time progression (1.0 = real-time).
        is_paused: Whether time progression is paused.
        auto_advance: Whether a driver thread advances time.
        mode: paused, manual, real_time, fast_forward or slow_motion.
    """

    current_time: datetime
    time_scale: float
    is_paused: bool
    auto_advance: bool
    mode: str


class AdvanceTimeResponse(BaseModel):
    """Response model for advance, set and skip-next.

    Attributes:
        previous_time: The virtual time before advancement.
        current_time: The virtual time after advancement.
        callbacks_fired: Callbacks that ran successfully.
        callbacks_failed: Callbacks that raised.
        fired_details: Every callback that ran, in firing order.
        next_callback_time: Due time of the next pending callback, if any.
    """

    previous_time: datetime
    current_time: datetime
    callbacks_fired: int
    callbacks_failed: int
    fired_details: list[CallbackDetail]
    next_callback_time: datetime | None = None


# Synchronous TimeClient


class TimeClient(BaseClient):
    """Synchronous client for virtual time control (/scheduler/time/*).

    All control operations need a started scheduler; otherwise they raise
    ConflictError.

    Example:
        with ChatSimClient() as client:
            client.scheduler.start()
            client.chat.send("hi")
            result = client.time.advance(seconds=2)
            print(result.callbacks_fired)  # delivery + reply
    """

    _BASE_PATH = "/scheduler/time"

    def get_state(self) -> TimeStateResponse:
        """Get the current virtual time state."""
        data = self._get(self._BASE_PATH)
        return TimeStateResponse(**data)

    def advance(self, seconds: float) -> AdvanceTimeResponse:
        """Advance virtual time, firing every callback that falls due.

        Args:
            seconds: Virtual seconds to advance (must be positive).

        Raises:
            ValidationError: If seconds is not positive or time is paused.
            ConflictError: If the scheduler is not running.
        """
        data = self._post(f"{self._BASE_PATH}/advance", json={"seconds": seconds})
        return AdvanceTimeResponse(**data)

    def set(self, target_time: datetime) -> AdvanceTimeResponse:
        """Advance to an absolute virtual time.

        Raises:
            ValidationError: If the target is not in the future.
            ConflictError: If the scheduler is not running.
        """
        data = self._post(
            f"{self._BASE_PATH}/set",
            json={"target_time": target_time.isoformat()},
        )
        return AdvanceTimeResponse(**data)

    def skip_next(self) -> AdvanceTimeResponse:
        """Jump to the next pending callback and fire it."""
        data = self._post(f"{self._BASE_PATH}/skip-next")
        return AdvanceTimeResponse(**data)

    def set_scale(self, scale: float) -> TimeStateResponse:
        data = self._post(f"{self._BASE_PATH}/set-scale", json={"scale": scale})
        return TimeStateResponse(**data)

    def pause(self) -> TimeStateResponse:
        data = self._post(f"{self._BASE_PATH}/pause")
        return TimeStateResponse(**data)

    def resume(self) -> TimeStateResponse:
        data = self._post(f"{self._BASE_PATH}/resume")
        return TimeStateResponse(**data)


# Asynchronous AsyncTimeClient


class AsyncTimeClient(AsyncBaseClient):
    """Asynchronous client for virtual time control (/scheduler/time/*)."""

    _BASE_PATH = "/scheduler/time"

    async def get_state(self) -> TimeStateResponse:
        data = await self._get(self._BASE_PATH)
        return TimeStateResponse(**data)

    async def advance(self, seconds: float) -> AdvanceTimeResponse:
        data = await self._post(f"{self._BASE_PATH}/advance", json={"seconds": seconds})
        return AdvanceTimeResponse(**data)

    async def set(self, target_time: datetime) -> AdvanceTimeResponse:
        data = await self._post(
            f"{self._BASE_PATH}/set",
            json={"target_time": target_time.isoformat()},
        )
        return AdvanceTimeResponse(**data)

    async def skip_next(self) -> AdvanceTimeResponse:
        data = await self._post(f"{self._BASE_PATH}/skip-next")
        return AdvanceTimeResponse(**data)

    async def set_scale(self, scale: float) -> TimeStateResponse:
        data = await self._post(f"{self._BASE_PATH}/set-scale", json={"scale": scale})
        return TimeStateResponse(**data)

    async def pause(self) -> TimeStateResponse:
        data = await self._post(f"{self._BASE_PATH}/pause")
        return TimeStateResponse(**data)

    async def resume(self) -> TimeStateResponse:
        data = await self._post(f"{self._BASE_PATH}/resume")
        return TimeStateResponse(**data)
