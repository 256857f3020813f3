"""ChatSim API Client Library.

A typed Python client for the ChatSim REST API, in synchronous and
asynchronous flavours.

Example:
    Synchronous usage::

        from client import ChatSimClient

        with ChatSimClient(base_url="http://localhost:8000") as client:
            client.scheduler.start()
            client.chat.send("hi")
            client.time.advance(seconds=0.5)
            state = client.chat.get_state()

    Asynchronous usage::

        from client import AsyncChatSimClient

        async with AsyncChatSimClient() as client:
            await client.scheduler.start()
            await client.chat.send("hi")

Exports:
    ChatSimClient: Synchronous client.
    AsyncChatSimClient: Asynchronous client.

    Exceptions:
        ChatSimClientError: Base exception for all client errors.
        ConnectionError: Failed to connect to the server.
        TimeoutError: Request timed out.
        APIError: Server returned an error response.
        ValidationError: Request rejected as invalid (HTTP 400/422).
        PermissionError: Capability not granted (HTTP 403).
        NotFoundError: Resource not found (HTTP 404).
        ConflictError: Scheduler state conflict (HTTP 409).
        ServerError: Server-side error (HTTP 5xx).
"""

from client._chat import (
    ChatActionResponse,
    ChatFault,
    ChatMessage,
    ChatQueryResponse,
    ChatStateResponse,
    ConnectionResponse,
    PermissionResponse,
)
from client._scheduler import (
    CallbackListResponse,
    SchedulerStatusResponse,
    StartSchedulerResponse,
    StopSchedulerResponse,
)
from client._time import AdvanceTimeResponse, TimeStateResponse
from client.client import AsyncChatSimClient, ChatSimClient
from client.exceptions import (
    APIError,
    ChatSimClientError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    PermissionError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from client.models import CallbackDetail, HealthResponse

__all__ = [
    # Clients
    "ChatSimClient",
    "AsyncChatSimClient",
    # Exceptions
    "ChatSimClientError",
    "ConnectionError",
    "TimeoutError",
    "APIError",
    "ValidationError",
    "PermissionError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
    # Chat models
    "ChatMessage",
    "ChatFault",
    "ChatStateResponse",
    "ChatQueryResponse",
    "ChatActionResponse",
    "ConnectionResponse",
    "PermissionResponse",
    # Time models
    "TimeStateResponse",
    "AdvanceTimeResponse",
    # Scheduler models
    "StartSchedulerResponse",
    "StopSchedulerResponse",
    "SchedulerStatusResponse",
    "CallbackListResponse",
    "CallbackDetail",
    "HealthResponse",
]
