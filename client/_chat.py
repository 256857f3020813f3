"""Chat sub-client for the ChatSim API.

This module provides ChatClient and AsyncChatClient for the chat screen
endpoints (/chat/*).

This is an internal module. Import from `client` instead.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from client._base import AsyncBaseClient, BaseClient

DeliveryState = Literal["sending", "sent", "delivered", "read"]
MessageKind = Literal["text", "image", "system"]


# Response models for chat endpoints


class ChatMessage(BaseModel):
    """A message in the conversation log.

    Attributes:
        message_id: Unique message identifier.
        content: Message text (caption for images).
        sender_id: Who sent it.
        sender_name: Display name of the sender.
        timestamp: Virtual time the message was created.
        message_type: text, image or system.
        status: Delivery state.
        reply_to_id: Id of the message this one replies to.
        reactions: Reaction symbol -> count.
        attachment_ref: Image reference for image messages.
    """

    message_id: str
    content: str
    sender_id: str
    sender_name: str
    timestamp: datetime
    message_type: str = "text"
    status: str
    reply_to_id: str | None = None
    reactions: dict[str, int] = Field(default_factory=dict)
    attachment_ref: str | None = None


class ChatFault(BaseModel):
    """The last user-visible failure recorded by the chat screen."""

    kind: str
    message: str
    recoverable: bool = True
    occurred_at: datetime | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ChatStateResponse(BaseModel):
    """Response model for the chat state endpoint.

    Attributes:
        current_time: Current virtual time.
        messages: The conversation in display order.
        message_count: Number of messages.
        typing: User id -> typing flag.
        typing_users: Users currently typing.
        connection_status: connected, connecting or disconnected.
        capabilities: Capability -> permission status.
        last_fault: Most recent failure, if any.
        pending_callbacks: Delayed effects still waiting.
    """

    current_time: datetime
    messages: list[ChatMessage]
    message_count: int
    typing: dict[str, bool]
    typing_users: list[str]
    connection_status: str
    capabilities: dict[str, str]
    last_fault: ChatFault | None = None
    pending_callbacks: int


class ChatQueryResponse(BaseModel):
    """Response model for the chat query endpoint."""

    messages: list[ChatMessage]
    total_count: int
    returned_count: int
    query: dict[str, Any]


class ChatActionResponse(BaseModel):
    """Response model for chat actions.

    Attributes:
        action: What was done.
        current_time: Virtual time of the action.
        message: Human-readable description.
        chat_message: The message created or updated, if any.
        applied: False when the action was a no-op.
    """

    action: str
    current_time: datetime
    message: str
    chat_message: ChatMessage | None = None
    applied: bool = True


class ConnectionResponse(BaseModel):
    connection_status: str
    current_time: datetime
    request_id: str | None = None


class PermissionResponse(BaseModel):
    capability: str
    status: str
    request_id: str | None = None


def _query_body(
    sender_id: str | None,
    status: DeliveryState | None,
    message_type: MessageKind | None,
    search: str | None,
    since: datetime | None,
    until: datetime | None,
    limit: int | None,
    offset: int,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "sender_id": sender_id,
        "status": status,
        "message_type": message_type,
        "search": search,
        "since": since.isoformat() if since else None,
        "until": until.isoformat() if until else None,
        "limit": limit,
        "offset": offset or None,
    }
    return {k: v for k, v in body.items() if v is not None}


def _image_body(attachment_ref: str, caption: str, reply_to_id: str | None) -> dict[str, Any]:
    body: dict[str, Any] = {"attachment_ref": attachment_ref, "caption": caption}
    if reply_to_id is not None:
        body["reply_to_id"] = reply_to_id
    return body


# Synchronous ChatClient


class ChatClient(BaseClient):
    """Synchronous client for the chat screen endpoints (/chat/*).

    Example:
        with ChatSimClient() as client:
            client.scheduler.start()
            sent = client.chat.send("hi")
            client.time.advance(seconds=0.5)
            state = client.chat.get_state()
            print(state.messages[-1].status)  # "delivered"
    """

    _BASE_PATH = "/chat"

    def get_state(self) -> ChatStateResponse:
        """Get the current chat state.

        Returns:
            Messages, typing flags, connection status and last fault.

        Raises:
            APIError: If the request fails.
        """
        data = self._get(f"{self._BASE_PATH}/state")
        return ChatStateResponse(**data)

    def get_message(self, message_id: str) -> ChatMessage:
        """Get a single message.

        Raises:
            NotFoundError: If the message is not in the conversation.
        """
        data = self._get(f"{self._BASE_PATH}/messages/{message_id}")
        return ChatMessage(**data)

    def query(
        self,
        sender_id: str | None = None,
        status: DeliveryState | None = None,
        message_type: MessageKind | None = None,
        search: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> ChatQueryResponse:
        """Query messages with filters.

        Args:
            sender_id: Only messages from this sender.
            status: Only messages in this delivery state.
            message_type: Only messages of this type.
            search: Case-insensitive substring of the content.
            since: Messages at or after this time.
            until: Messages at or before this time.
            limit: Maximum number of results to return.
            offset: Number of results to skip (for pagination).

        Returns:
            Matching messages with counts.

        Raises:
            ValidationError: If query parameters are invalid.
        """
        body = _query_body(sender_id, status, message_type, search, since, until, limit, offset)
        data = self._post(f"{self._BASE_PATH}/query", json=body)
        return ChatQueryResponse(**data)

    def send(self, content: str, reply_to_id: str | None = None) -> ChatActionResponse:
        """Send a text message as the current user.

        The returned message is in state ``sending``; delivery and the
        scripted reply happen as virtual time advances.

        Raises:
            ValidationError: If the content is blank.
        """
        body: dict[str, Any] = {"content": content}
        if reply_to_id is not None:
            body["reply_to_id"] = reply_to_id
        data = self._post(f"{self._BASE_PATH}/send", json=body)
        return ChatActionResponse(**data)

    def send_image(
        self,
        attachment_ref: str,
        caption: str = "",
        reply_to_id: str | None = None,
    ) -> ChatActionResponse:
        """Send an image message.

        Raises:
            PermissionError: If photo library access has not been granted.
        """
        data = self._post(
            f"{self._BASE_PATH}/image",
            json=_image_body(attachment_ref, caption, reply_to_id),
        )
        return ChatActionResponse(**data)

    def request_photo_access(self) -> PermissionResponse:
        """Prompt for photo library access; the answer arrives after a short delay."""
        data = self._post(f"{self._BASE_PATH}/photo-access")
        return PermissionResponse(**data)

    def set_typing(self, is_typing: bool) -> ChatActionResponse:
        """Raise or lower the remote user's typing indicator."""
        data = self._post(f"{self._BASE_PATH}/typing", json={"is_typing": is_typing})
        return ChatActionResponse(**data)

    def react(self, message_id: str, symbol: str) -> ChatActionResponse:
        """React to a message. ``applied`` is False when the id is unknown."""
        data = self._post(
            f"{self._BASE_PATH}/react",
            json={"message_id": message_id, "symbol": symbol},
        )
        return ChatActionResponse(**data)

    def connect(self, timeout: float | None = None) -> ConnectionResponse:
        body = {"timeout": timeout} if timeout is not None else None
        data = self._post(f"{self._BASE_PATH}/connect", json=body)
        return ConnectionResponse(**data)

    def disconnect(self) -> ConnectionResponse:
        data = self._post(f"{self._BASE_PATH}/disconnect")
        return ConnectionResponse(**data)

    def load_sample_messages(self) -> ChatStateResponse:
        """Replace the conversation with the canned sample messages."""
        data = self._post(f"{self._BASE_PATH}/sample-messages")
        return ChatStateResponse(**data)


# Asynchronous AsyncChatClient


class AsyncChatClient(AsyncBaseClient):
    """Asynchronous client for the chat screen endpoints (/chat/*).

    Mirrors ChatClient method for method.
    """

    _BASE_PATH = "/chat"

    async def get_state(self) -> ChatStateResponse:
        data = await self._get(f"{self._BASE_PATH}/state")
        return ChatStateResponse(**data)

    async def get_message(self, message_id: str) -> ChatMessage:
        data = await self._get(f"{self._BASE_PATH}/messages/{message_id}")
        return ChatMessage(**data)

    async def query(
        self,
        sender_id: str | None = None,
        status: DeliveryState | None = None,
        message_type: MessageKind | None = None,
        search: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> ChatQueryResponse:
        body = _query_body(sender_id, status, message_type, search, since, until, limit, offset)
        data = await self._post(f"{self._BASE_PATH}/query", json=body)
        return ChatQueryResponse(**data)

    async def send(self, content: str, reply_to_id: str | None = None) -> ChatActionResponse:
        body: dict[str, Any] = {"content": content}
        if reply_to_id is not None:
            body["reply_to_id"] = reply_to_id
        data = await self._post(f"{self._BASE_PATH}/send", json=body)
        return ChatActionResponse(**data)

    async def send_image(
        self,
        attachment_ref: str,
        caption: str = "",
        reply_to_id: str | None = None,
    ) -> ChatActionResponse:
        data = await self._post(
            f"{self._BASE_PATH}/image",
            json=_image_body(attachment_ref, caption, reply_to_id),
        )
        return ChatActionResponse(**data)

    async def request_photo_access(self) -> PermissionResponse:
        data = await self._post(f"{self._BASE_PATH}/photo-access")
        return PermissionResponse(**data)

    async def set_typing(self, is_typing: bool) -> ChatActionResponse:
        data = await self._post(f"{self._BASE_PATH}/typing", json={"is_typing": is_typing})
        return ChatActionResponse(**data)

    async def react(self, message_id: str, symbol: str) -> ChatActionResponse:
        data = await self._post(
            f"{self._BASE_PATH}/react",
            json={"message_id": message_id, "symbol": symbol},
        )
        return ChatActionResponse(**data)

    async def connect(self, timeout: float | None = None) -> ConnectionResponse:
        body = {"timeout": timeout} if timeout is not None else None
        data = await self._post(f"{self._BASE_PATH}/connect", json=body)
        return ConnectionResponse(**data)

    async def disconnect(self) -> ConnectionResponse:
        data = await self._post(f"{self._BASE_PATH}/disconnect")
        return ConnectionResponse(**data)

    async def load_sample_messages(self) -> ChatStateResponse:
        data = await self._post(f"{self._BASE_PATH}/sample-messages")
        return ChatStateResponse(**data)
