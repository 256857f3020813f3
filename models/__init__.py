"""ChatSim data models package.

This package contains the virtual-time scheduling core (clock, callbacks,
timeline, scheduler), the shared screen contracts (observable state,
callback sets, request gates, capability gate, error taxonomy) and the
chat screen itself.
"""

from models.callback import CallbackStatus, ScheduledCallback
from models.capability import CapabilityGate, CapabilityStatus
from models.chat_manager import ChatManager
from models.clock import ClockMode, VirtualClock
from models.config import ChatConfig, Settings
from models.errors import (
    DeviceUnavailableError,
    ErrorKind,
    NotFoundError,
    PermissionDeniedError,
    RequestFailedError,
    RequestTimeoutError,
    ScreenError,
    ScreenFault,
)
from models.message import (
    ConnectionStatus,
    DeliveryStatus,
    Message,
    MessageType,
    Participant,
)
from models.observable import CallbackSet, Observable, StateChange
from models.requests import LatestRequestGate, RequestStatus, RequestTicket
from models.scheduler import Scheduler, SchedulerLoop
from models.timeline import CallbackTimeline

__all__ = [
    "CallbackSet",
    "CallbackStatus",
    "CallbackTimeline",
    "CapabilityGate",
    "CapabilityStatus",
    "ChatConfig",
    "ChatManager",
    "ClockMode",
    "ConnectionStatus",
    "DeliveryStatus",
    "DeviceUnavailableError",
    "ErrorKind",
    "LatestRequestGate",
    "Message",
    "MessageType",
    "NotFoundError",
    "Observable",
    "Participant",
    "PermissionDeniedError",
    "RequestFailedError",
    "RequestStatus",
    "RequestTicket",
    "RequestTimeoutError",
    "Scheduler",
    "SchedulerLoop",
    "ScreenError",
    "ScreenFault",
    "Settings",
    "StateChange",
    "VirtualClock",
]
