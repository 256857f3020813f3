"""Virtual time control endpoints.

These endpoints allow clients to query and drive the scheduler's virtual
clock. Every control operation requires a started scheduler (409 otherwise).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import SchedulerDep
from api.models import CallbackDetail
from api.utils import require_running, summarize_fired

router = APIRouter(
    prefix="/scheduler/time",
    tags=["time"],
)


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


class AdvanceTimeRequest(BaseModel):
    """Request model for advancing time by a duration.

    Attributes:
        seconds: Number of virtual seconds to advance.
    """

    seconds: float = Field(
        ...,
        gt=0,
        description="Number of seconds to advance (must be positive)",
    )


class SetTimeRequest(BaseModel):
    """Request model for advancing to a specific time.

    Attributes:
        target_time: The virtual time to advance to; callbacks on the way fire.
    """

    target_time: datetime = Field(
        ...,
        description="The target virtual time (must be timezone-aware)",
    )


class SetScaleRequest(BaseModel):
    """Request model for setting time scale.

    Attributes:
        scale: Time multiplier (must be > 0).
    """

    scale: float = Field(
        ...,
        gt=0,
        description="Time multiplier (1.0 = real-time, >1.0 = fast-forward, <1.0 = slow-motion)",
    )


class AdvanceTimeResponse(BaseModel):
    """Response model for the advancing endpoints.

    Attributes:
        previous_time: The virtual time before advancement.
        current_time: The virtual time after advancement.
        callbacks_fired: Number of callbacks that ran successfully.
        callbacks_failed: Number of callbacks that raised.
        fired_details: Every callback that ran, in firing order.
        next_callback_time: Due time of the next pending callback, if any.
    """

    previous_time: datetime
    current_time: datetime
    callbacks_fired: int
    callbacks_failed: int
    fired_details: list[CallbackDetail]
    next_callback_time: Optional[datetime] = None


def _time_state(scheduler) -> TimeStateResponse:
    clock = scheduler.clock
    return TimeStateResponse(
        current_time=clock.current_time,
        time_scale=clock.time_scale,
        is_paused=clock.is_paused,
        auto_advance=clock.auto_advance,
        mode=clock.mode.value,
    )


def _advance_response(scheduler, previous_time: datetime, fired) -> AdvanceTimeResponse:
    return AdvanceTimeResponse(
        previous_time=previous_time,
        current_time=scheduler.now(),
        next_callback_time=scheduler.timeline.next_due_time,
        **summarize_fired(fired),
    )


@router.get("", response_model=TimeStateResponse)
async def get_time_state(scheduler: SchedulerDep):
    """Get the current virtual time state."""
    return _time_state(scheduler)


@router.post("/advance", response_model=AdvanceTimeResponse)
async def advance_time(request: AdvanceTimeRequest, scheduler: SchedulerDep):
    """Advance virtual time by a specified duration.

    Every callback falling due inside the window fires in time order,
    including callbacks scheduled by other callbacks during the advance.
    """
    require_running(scheduler, "advance time")
    with scheduler.lock:
        previous_time = scheduler.now()
        fired = scheduler.advance(request.seconds)
        return _advance_response(scheduler, previous_time, fired)


@router.post("/set", response_model=AdvanceTimeResponse)
async def set_time(request: SetTimeRequest, scheduler: SchedulerDep):
    """Advance virtual time to an absolute target (400 if not in the future)."""
    require_running(scheduler, "set time")
    if request.target_time.tzinfo is None:
        raise ValueError("target_time must be timezone-aware")
    with scheduler.lock:
        previous_time = scheduler.now()
        fired = scheduler.advance_to(request.target_time)
        return _advance_response(scheduler, previous_time, fired)


@router.post("/skip-next", response_model=AdvanceTimeResponse)
async def skip_to_next(scheduler: SchedulerDep):
    """Jump to the next pending callback and fire everything due then.

    When nothing is pending the clock stays put and nothing fires.
    """
    require_running(scheduler, "skip ahead")
    with scheduler.lock:
        previous_time = scheduler.now()
        fired = scheduler.skip_to_next()
        return _advance_response(scheduler, previous_time, fired)


@router.post("/set-scale", response_model=TimeStateResponse)
async def set_time_scale(request: SetScaleRequest, scheduler: SchedulerDep):
    """Change the time multiplier used by the real-time driver."""
    scheduler.clock.set_scale(request.scale)
    return _time_state(scheduler)


@router.post("/pause", response_model=TimeStateResponse)
async def pause_time(scheduler: SchedulerDep):
    """Freeze virtual time. Advancing while paused is rejected with 400."""
    require_running(scheduler, "pause time")
    scheduler.pause()
    return _time_state(scheduler)


@router.post("/resume", response_model=TimeStateResponse)
async def resume_time(scheduler: SchedulerDep):
    """Unfreeze virtual time."""
    require_running(scheduler, "resume time")
    scheduler.resume()
    return _time_state(scheduler)
