"""Scheduler lifecycle sub-client for the ChatSim API.

This module provides SchedulerClient and AsyncSchedulerClient for the
scheduler endpoints (/scheduler/start, /stop, /status, /callbacks).

This is an internal module. Import from `client` instead.
"""

from typing import Any, Literal

from pydantic import BaseModel

from client._base import AsyncBaseClient, BaseClient
from client.models import CallbackDetail

CallbackState = Literal["pending", "firing", "fired", "failed", "cancelled"]


# Response models for scheduler endpoints


class StartSchedulerResponse(BaseModel):
    """Response model for scheduler start.

    Attributes:
        scheduler_id: Unique identifier for the scheduler.
        status: "running".
        mode: "manual" or "auto_advance".
        current_time: Virtual time at start (ISO string).
        time_scale: Time multiplier (if auto-advance enabled).
    """

    scheduler_id: str
    status: str
    mode: str
    current_time: str
    time_scale: float | None = None


class StopSchedulerResponse(BaseModel):
    scheduler_id: str
    status: str
    final_time: str | None = None
    fired: int | None = None
    failed: int | None = None
    pending: int | None = None


class SchedulerStatusResponse(BaseModel):
    """Response model for scheduler status.

    Attributes:
        scheduler_id: Unique identifier for the scheduler.
        is_running: Whether the scheduler has been started.
        mode: "manual" or "auto_advance".
        current_time: Current virtual time (ISO string).
        is_paused: Whether time is frozen.
        time_scale: Current time multiplier.
        pending_callbacks: Count of pending callbacks.
        fired_callbacks: Count of fired callbacks.
        failed_callbacks: Count of failed callbacks.
        next_callback_time: Due time of the next pending callback.
    """

    scheduler_id: str
    is_running: bool
    mode: str
    current_time: str
    is_paused: bool
    time_scale: float
    pending_callbacks: int
    fired_callbacks: int
    failed_callbacks: int
    next_callback_time: str | None = None


class CallbackListResponse(BaseModel):
    callbacks: list[CallbackDetail]
    total_count: int


def _start_body(auto_advance: bool, time_scale: float, tick_interval: float) -> dict[str, Any]:
    return {
        "auto_advance": auto_advance,
        "time_scale": time_scale,
        "tick_interval": tick_interval,
    }


# Synchronous SchedulerClient


class SchedulerClient(BaseClient):
    """Synchronous client for scheduler lifecycle endpoints.

    Example:
        with ChatSimClient() as client:
            client.scheduler.start()
            print(client.scheduler.status().pending_callbacks)
            client.scheduler.stop()
    """

    _BASE_PATH = "/scheduler"

    def start(
        self,
        auto_advance: bool = False,
        time_scale: float = 1.0,
        tick_interval: float = 0.01,
    ) -> StartSchedulerResponse:
        """Start the scheduler.

        Args:
            auto_advance: Drive virtual time from wall time in the background.
            time_scale: Virtual seconds per wall second in auto-advance mode.
            tick_interval: Seconds between driver ticks.

        Raises:
            ConflictError: If the scheduler is already running.
        """
        data = self._post(
            f"{self._BASE_PATH}/start",
            json=_start_body(auto_advance, time_scale, tick_interval),
        )
        return StartSchedulerResponse(**data)

    def stop(self) -> StopSchedulerResponse:
        """Stop the scheduler; pending callbacks stay on the timeline."""
        data = self._post(f"{self._BASE_PATH}/stop")
        return StopSchedulerResponse(**data)

    def status(self) -> SchedulerStatusResponse:
        data = self._get(f"{self._BASE_PATH}/status")
        return SchedulerStatusResponse(**data)

    def callbacks(
        self,
        status: CallbackState | None = None,
        owner: str | None = None,
        label: str | None = None,
    ) -> CallbackListResponse:
        """List callbacks on the timeline, optionally filtered."""
        data = self._get(
            f"{self._BASE_PATH}/callbacks",
            params={"status": status, "owner": owner, "label": label},
        )
        return CallbackListResponse(**data)


# Asynchronous AsyncSchedulerClient


class AsyncSchedulerClient(AsyncBaseClient):
    """Asynchronous client for scheduler lifecycle endpoints."""

    _BASE_PATH = "/scheduler"

    async def start(
        self,
        auto_advance: bool = False,
        time_scale: float = 1.0,
        tick_interval: float = 0.01,
    ) -> StartSchedulerResponse:
        data = await self._post(
            f"{self._BASE_PATH}/start",
            json=_start_body(auto_advance, time_scale, tick_interval),
        )
        return StartSchedulerResponse(**data)

    async def stop(self) -> StopSchedulerResponse:
        data = await self._post(f"{self._BASE_PATH}/stop")
        return StopSchedulerResponse(**data)

    async def status(self) -> SchedulerStatusResponse:
        data = await self._get(f"{self._BASE_PATH}/status")
        return SchedulerStatusResponse(**data)

    async def callbacks(
        self,
        status: CallbackState | None = None,
        owner: str | None = None,
        label: str | None = None,
    ) -> CallbackListResponse:
        data = await self._get(
            f"{self._BASE_PATH}/callbacks",
            params={"status": status, "owner": owner, "label": label},
        )
        return CallbackListResponse(**data)
