"""Chat screen endpoints.

Provides REST API endpoints for the chat screen: reading the conversation,
sending text and image messages, the remote typing indicator, reactions and
the simulated connection.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field, field_validator

from api.dependencies import ChatManagerDep
from api.models import ErrorResponse, PaginationParams
from models.errors import ScreenFault
from models.message import Message

router = APIRouter(
    prefix="/chat",
    tags=["chat"],
)


# ============================================================================
# Request Models
# ============================================================================


class SendMessageRequest(BaseModel):
    """Request model for sending a text message.

    Attributes:
        content: Message text (must not be blank).
        reply_to_id: Optional id of the message being replied to.
    """

    content: str = Field(min_length=1, description="Message text")
    reply_to_id: Optional[str] = Field(default=None, description="Message being replied to")

    @field_validator("content")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content cannot be blank")
        return value


class SendImageRequest(BaseModel):
    """Request model for sending an image message.

    Attributes:
        attachment_ref: Reference to the picked image.
        caption: Optional caption text.
        reply_to_id: Optional id of the message being replied to.
    """

    attachment_ref: str = Field(min_length=1, description="Reference to the picked image")
    caption: str = Field(default="", description="Caption text")
    reply_to_id: Optional[str] = Field(default=None, description="Message being replied to")


class SetTypingRequest(BaseModel):
    """Request model for the remote typing indicator.

    Attributes:
        is_typing: True to raise the indicator, False to lower it.
    """

    is_typing: bool = Field(description="Raise (true) or lower (false) the indicator")


class AddReactionRequest(BaseModel):
    """Request model for reacting to a message.

    Attributes:
        message_id: Message to react to.
        symbol: Reaction symbol (e.g. an emoji).
    """

    message_id: str = Field(description="Message to react to")
    symbol: str = Field(min_length=1, max_length=32, description="Reaction symbol")


class ConnectRequest(BaseModel):
    """Request model for connecting.

    Attributes:
        timeout: Optional deadline in seconds for the connect.
    """

    timeout: Optional[float] = Field(default=None, gt=0, description="Connect deadline")


class ChatQueryRequest(PaginationParams):
    """Request model for querying chat messages.

    Attributes:
        sender_id: Filter by sender.
        status: Filter by delivery state.
        message_type: Filter by message type.
        search: Search for text in message content (case-insensitive).
        since: Filter messages at or after this time.
        until: Filter messages at or before this time.
        limit: Maximum number of results to return.
        offset: Number of results to skip (for pagination).
    """

    sender_id: str | None = Field(default=None, description="Filter by sender")
    status: Literal["sending", "sent", "delivered", "read"] | None = Field(
        default=None, description="Filter by delivery state"
    )
    message_type: Literal["text", "image", "system"] | None = Field(
        default=None, description="Filter by message type"
    )
    search: str | None = Field(default=None, description="Search message content")
    since: datetime | None = Field(default=None, description="Messages at or after this time")
    until: datetime | None = Field(default=None, description="Messages at or before this time")

    @field_validator("since", "until")
    @classmethod
    def require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            raise ValueError("time bounds must be timezone-aware")
        return value


# ============================================================================
# Response Models
# ============================================================================


class ChatStateResponse(BaseModel):
    """Response model for chat state endpoint.

    Attributes:
        current_time: Current virtual time.
        messages: The conversation log in display order.
        message_count: Number of messages.
        typing: User id -> typing flag.
        typing_users: Users currently typing.
        connection_status: connected, connecting or disconnected.
        capabilities: Capability -> permission status.
        last_fault: Most recent user-visible failure, if any.
        pending_callbacks: Delayed effects still waiting to fire.
    """

    current_time: datetime
    messages: list[Message]
    message_count: int
    typing: dict[str, bool]
    typing_users: list[str]
    connection_status: str
    capabilities: dict[str, str]
    last_fault: Optional[ScreenFault] = None
    pending_callbacks: int


class ChatQueryResponse(BaseModel):
    """Response model for chat query endpoint.

    Attributes:
        messages: Query results (matching messages).
        total_count: Total number of results matching query.
        returned_count: Number of results returned (after pagination).
        query: Echo of query parameters for debugging.
    """

    messages: list[Message]
    total_count: int
    returned_count: int
    query: dict


class ChatActionResponse(BaseModel):
    """Response model for chat action endpoints.

    Attributes:
        action: What was done.
        current_time: Virtual time of the action.
        message: Human-readable description of the result.
        chat_message: The message created or updated, if any.
        applied: False when the action was a no-op.
    """

    action: str
    current_time: datetime
    message: str
    chat_message: Optional[Message] = None
    applied: bool = True


class ConnectionResponse(BaseModel):
    """Response model for connect/disconnect.

    Attributes:
        connection_status: Status right after the call.
        current_time: Virtual time of the call.
        request_id: Ticket of the in-flight connect, if one was issued.
    """

    connection_status: str
    current_time: datetime
    request_id: Optional[str] = None


class PermissionResponse(BaseModel):
    """Response model for a capability prompt.

    Attributes:
        capability: The capability asked for.
        status: Permission status right after the call.
        request_id: Ticket of the pending prompt, if one was shown.
    """

    capability: str
    status: str
    request_id: Optional[str] = None


# ============================================================================
# Route Handlers
# ============================================================================


@router.get("/state", response_model=ChatStateResponse)
async def get_chat_state(chat: ChatManagerDep) -> ChatStateResponse:
    """Get current chat state.

    Returns a complete snapshot of the conversation, typing indicators,
    connection status and the last recorded fault.
    """
    with chat.scheduler.lock:
        return ChatStateResponse(
            current_time=chat.scheduler.now(),
            messages=list(chat.messages),
            message_count=len(chat.messages),
            typing=chat.typing,
            typing_users=chat.typing_users,
            connection_status=chat.connection_status.value,
            capabilities=chat.capabilities.statuses(),
            last_fault=chat.last_fault,
            pending_callbacks=len(chat.scheduler.pending(chat.owner)),
        )


@router.post("/query", response_model=ChatQueryResponse)
async def query_chat(request: ChatQueryRequest, chat: ChatManagerDep) -> ChatQueryResponse:
    """Query chat messages with filters.

    Args:
        request: Query filters and pagination parameters.
        chat: The chat manager dependency.

    Returns:
        Filtered message results with counts.
    """
    query_params = request.model_dump(exclude_none=True)
    result = chat.query(query_params)

    return ChatQueryResponse(
        messages=[Message.model_validate(m) for m in result["messages"]],
        total_count=result["total_count"],
        returned_count=result["count"],
        query=request.model_dump(mode="json", exclude_none=True),
    )


@router.get(
    "/messages/{message_id}",
    response_model=Message,
    responses={404: {"model": ErrorResponse}},
)
async def get_chat_message(message_id: str, chat: ChatManagerDep) -> Message:
    """Get a single message by id (404 when absent)."""
    return chat.get_message(message_id)


@router.post("/send", response_model=ChatActionResponse)
async def send_chat_message(request: SendMessageRequest, chat: ChatManagerDep) -> ChatActionResponse:
    """Send a text message as the current user.

    The message is returned in state ``sending``; delivery and the scripted
    reply happen as virtual time advances.
    """
    sent = chat.send_message(request.content, reply_to_id=request.reply_to_id)
    return ChatActionResponse(
        action="send_message",
        current_time=chat.scheduler.now(),
        message=f"Message {sent.message_id} sent",
        chat_message=sent,
    )


@router.post(
    "/image",
    response_model=ChatActionResponse,
    responses={403: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def send_chat_image(request: SendImageRequest, chat: ChatManagerDep) -> ChatActionResponse:
    """Send an image message (403 unless photo library access is granted)."""
    sent = chat.send_image(
        request.caption,
        request.attachment_ref,
        reply_to_id=request.reply_to_id,
    )
    return ChatActionResponse(
        action="send_image",
        current_time=chat.scheduler.now(),
        message=f"Image {sent.message_id} sent",
        chat_message=sent,
    )


@router.post("/photo-access", response_model=PermissionResponse)
async def request_photo_access(chat: ChatManagerDep) -> PermissionResponse:
    """Prompt for photo library access.

    The answer arrives after the simulated prompt delay; poll /chat/state
    for the resulting capability status.
    """
    ticket = chat.request_photo_access()
    return PermissionResponse(
        capability="photo_library",
        status=chat.capabilities.status("photo_library").value,
        request_id=ticket.request_id if ticket else None,
    )


@router.post("/typing", response_model=ChatActionResponse)
async def set_typing(request: SetTypingRequest, chat: ChatManagerDep) -> ChatActionResponse:
    """Raise or lower the remote user's typing indicator."""
    chat.set_typing(request.is_typing)
    return ChatActionResponse(
        action="set_typing",
        current_time=chat.scheduler.now(),
        message=f"Typing {'started' if request.is_typing else 'stopped'}",
    )


@router.post("/react", response_model=ChatActionResponse)
async def add_reaction(request: AddReactionRequest, chat: ChatManagerDep) -> ChatActionResponse:
    """React to a message. Reacting to an unknown id is a no-op."""
    updated = chat.add_reaction(request.message_id, request.symbol)
    if updated is None:
        return ChatActionResponse(
            action="add_reaction",
            current_time=chat.scheduler.now(),
            message=f"Message {request.message_id} not in conversation; nothing changed",
            applied=False,
        )
    return ChatActionResponse(
        action="add_reaction",
        current_time=chat.scheduler.now(),
        message=f"Reacted {request.symbol} to {request.message_id}",
        chat_message=updated,
    )


@router.post("/connect", response_model=ConnectionResponse)
async def connect(chat: ChatManagerDep, request: ConnectRequest | None = None) -> ConnectionResponse:
    """Start connecting. Any connect already in flight is superseded."""
    ticket = chat.connect(timeout=request.timeout if request else None)
    return ConnectionResponse(
        connection_status=chat.connection_status.value,
        current_time=chat.scheduler.now(),
        request_id=ticket.request_id,
    )


@router.post("/disconnect", response_model=ConnectionResponse)
async def disconnect(chat: ChatManagerDep) -> ConnectionResponse:
    """Drop the connection and stop the remote user's ambient typing."""
    status = chat.disconnect()
    return ConnectionResponse(
        connection_status=status.value,
        current_time=chat.scheduler.now(),
    )


@router.post("/sample-messages", response_model=ChatStateResponse)
async def load_sample_messages(chat: ChatManagerDep) -> ChatStateResponse:
    """Replace the conversation with the canned sample messages."""
    chat.load_sample_messages()
    return await get_chat_state(chat)
