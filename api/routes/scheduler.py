"""Scheduler lifecycle endpoints.

These endpoints start and stop the scheduler, report its status and list
the callbacks on its timeline.
"""

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from api.dependencies import SchedulerDep
from api.models import CallbackDetail
from models.callback import CallbackStatus

router = APIRouter(
    prefix="/scheduler",
    tags=["scheduler"],
)


class StartSchedulerRequest(BaseModel):
    """Request model for starting the scheduler.

    Attributes:
        auto_advance: Drive virtual time from wall time on a background thread.
        time_scale: Virtual seconds per wall second in auto-advance mode.
        tick_interval: Seconds between driver ticks.
    """

    auto_advance: bool = Field(default=False)
    time_scale: float = Field(default=1.0, gt=0)
    tick_interval: float = Field(default=0.01, gt=0, le=1.0)


class StartSchedulerResponse(BaseModel):
    """Response model for scheduler start.

    Attributes:
        scheduler_id: Unique identifier for the scheduler.
        status: "running".
        mode: "manual" or "auto_advance".
        current_time: Virtual time at start.
        time_scale: Time multiplier (if auto-advance enabled).
    """

    scheduler_id: str
    status: str
    mode: str
    current_time: str
    time_scale: Optional[float] = None


class StopSchedulerResponse(BaseModel):
    """Response model for scheduler stop.

    Attributes:
        scheduler_id: Unique identifier for the scheduler.
        status: "stopped".
        final_time: Virtual time when stopped (None if it wasn't running).
        fired: Callbacks fired so far (None if it wasn't running).
        failed: Callbacks that raised (None if it wasn't running).
        pending: Callbacks still waiting (None if it wasn't running).
    """

    scheduler_id: str
    status: str
    final_time: Optional[str] = None
    fired: Optional[int] = None
    failed: Optional[int] = None
    pending: Optional[int] = None


class SchedulerStatusResponse(BaseModel):
    """Response model for scheduler status.

    Attributes:
        scheduler_id: Unique identifier for the scheduler.
        is_running: Whether the scheduler has been started.
        mode: "manual" or "auto_advance".
        current_time: Current virtual time.
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
    next_callback_time: Optional[str] = None


class CallbackListResponse(BaseModel):
    """Response model for the callback listing.

    Attributes:
        callbacks: Matching callbacks ordered by due time.
        total_count: Number of matching callbacks.
    """

    callbacks: list[CallbackDetail]
    total_count: int


@router.post("/start", response_model=StartSchedulerResponse)
async def start_scheduler(scheduler: SchedulerDep, request: StartSchedulerRequest | None = None):
    """Start the scheduler, optionally with the real-time driver (409 if running)."""
    request = request or StartSchedulerRequest()
    try:
        result = scheduler.start(
            auto_advance=request.auto_advance,
            time_scale=request.time_scale,
            tick_interval=request.tick_interval,
        )
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StartSchedulerResponse(**result)


@router.post("/stop", response_model=StopSchedulerResponse)
async def stop_scheduler(scheduler: SchedulerDep):
    """Stop the scheduler. Pending callbacks stay on the timeline."""
    return StopSchedulerResponse(**scheduler.stop())


@router.get("/status", response_model=SchedulerStatusResponse)
async def get_scheduler_status(scheduler: SchedulerDep):
    """Get the scheduler's status and timeline counts."""
    snapshot = scheduler.get_snapshot()
    clock = snapshot["clock"]
    upcoming = snapshot["next_callback"]
    return SchedulerStatusResponse(
        scheduler_id=snapshot["scheduler_id"],
        is_running=snapshot["is_running"],
        mode=snapshot["mode"],
        current_time=clock["current_time"],
        is_paused=clock["is_paused"],
        time_scale=clock["time_scale"],
        pending_callbacks=snapshot["pending_callbacks"],
        fired_callbacks=snapshot["fired_callbacks"],
        failed_callbacks=snapshot["failed_callbacks"],
        next_callback_time=upcoming["due_time"] if upcoming else None,
    )


@router.get("/callbacks", response_model=CallbackListResponse)
async def list_callbacks(
    scheduler: SchedulerDep,
    status: Literal["pending", "firing", "fired", "failed", "cancelled"] | None = Query(default=None),
    owner: str | None = Query(default=None),
    label: str | None = Query(default=None),
):
    """List callbacks on the timeline, optionally filtered."""
    with scheduler.lock:
        callbacks = list(scheduler.timeline.callbacks)

    if status is not None:
        callbacks = [c for c in callbacks if c.status == CallbackStatus(status)]
    if owner is not None:
        callbacks = [c for c in callbacks if c.owner == owner]
    if label is not None:
        callbacks = [c for c in callbacks if c.label == label]

    return CallbackListResponse(
        callbacks=[CallbackDetail.from_callback(c) for c in callbacks],
        total_count=len(callbacks),
    )
