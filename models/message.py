"""Chat message models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class DeliveryStatus(str, Enum):
    """Lifecycle stage of a sent message; only ever moves forward."""

    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def precedes(self, other: "DeliveryStatus") -> bool:
        return self.rank < other.rank


_STATUS_ORDER = [
    DeliveryStatus.SENDING,
    DeliveryStatus.SENT,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.READ,
]


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    SYSTEM = "system"


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"


class Participant(BaseModel):
    """Someone who can appear as a sender in the conversation."""

    user_id: str
    name: str
    avatar: Optional[str] = None


class Message(BaseModel):
    """A single entry in the conversation log.

    Messages are frozen. The two permitted changes, delivery-state
    transitions and reaction increments, return a new Message with the same
    ``message_id`` which the owning manager swaps into its log.

    Args:
        message_id: Unique identifier.
        content: Message text (caption for images).
        sender_id: Who sent it.
        sender_name: Display name of the sender.
        timestamp: Creation time (virtual clock).
        message_type: text, image or system.
        status: Delivery state.
        reply_to_id: Id of the message this one replies to.
        reactions: Reaction symbol -> count.
        attachment_ref: Reference to the attached image, for image messages.
    """

    message_id: str = Field(default_factory=lambda: str(uuid4()))
    content: str
    sender_id: str
    sender_name: str
    timestamp: datetime
    message_type: MessageType = MessageType.TEXT
    status: DeliveryStatus = DeliveryStatus.SENDING
    reply_to_id: Optional[str] = None
    reactions: dict[str, int] = Field(default_factory=dict)
    attachment_ref: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("reactions")
    @classmethod
    def validate_reactions(cls, value: dict[str, int]) -> dict[str, int]:
        for symbol, count in value.items():
            if not symbol:
                raise ValueError("Reaction symbol cannot be empty")
            if count < 1:
                raise ValueError(f"Reaction count for {symbol!r} must be positive, got {count}")
        return value

    def is_from(self, user_id: str) -> bool:
        return self.sender_id == user_id

    def with_status(self, status: DeliveryStatus) -> "Message":
        """Return a copy advanced to ``status``.

        Raises:
            ValueError: If ``status`` would move delivery state backwards.
        """
        if status.precedes(self.status):
            raise ValueError(
                f"Delivery state cannot move backwards: {self.status.value} -> {status.value}"
            )
        return self.model_copy(update={"status": status})

    def with_reaction(self, symbol: str) -> "Message":
        """Return a copy with ``symbol``'s count incremented by one."""
        if not symbol:
            raise ValueError("Reaction symbol cannot be empty")
        reactions = dict(self.reactions)
        reactions[symbol] = reactions.get(symbol, 0) + 1
        return self.model_copy(update={"reactions": reactions})

    def get_summary(self) -> str:
        """One-line description for logs, e.g. ``Alex: 'Great idea!' (sent)``."""
        preview = self.content if len(self.content) <= 50 else self.content[:47] + "..."
        if self.message_type == MessageType.IMAGE:
            return f"{self.sender_name}: [image] '{preview}' ({self.status.value})"
        return f"{self.sender_name}: '{preview}' ({self.status.value})"

    def to_dict(self) -> dict[str, Any]:
        result = {
            "message_id": self.message_id,
            "content": self.content,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "timestamp": self.timestamp.isoformat(),
            "message_type": self.message_type.value,
            "status": self.status.value,
            "reply_to_id": self.reply_to_id,
            "reactions": dict(self.reactions),
        }
        if self.attachment_ref is not None:
            result["attachment_ref"] = self.attachment_ref
        return result
