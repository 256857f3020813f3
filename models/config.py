"""Configuration models.

``ChatConfig`` holds the scripted behaviour of the chat screen (delays, who
is talking, the reply pool). ``Settings`` reads process-level configuration
from ``CHATSIM_*`` environment variables and an optional ``.env`` file.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.message import Participant

DEFAULT_REPLY_POOL = [
    "That's interesting!",
    "I see what you mean.",
    "Sounds good to me!",
    "Let me think about that...",
    "Great idea!",
    "I totally agree.",
    "That makes sense.",
]


class ChatConfig(BaseModel):
    """Scripted behaviour of one chat screen.

    Args:
        current_user: The local user (sender of outgoing messages).
        remote_user: The simulated other party.
        system_user: Sender used for system notices.
        delivery_delay: Seconds until an outgoing message is delivered.
        reply_delay: Seconds until the scripted reply arrives.
        read_delay: Seconds until a delivered message is read (None = never).
        typing_timeout: Seconds a typing flag lasts before auto-clearing.
        connect_delay: Seconds a connect takes.
        start_connected: Open the screen already connected, with ambient
            typing running when enabled.
        ambient_typing: Whether the remote user types periodically while connected.
        ambient_typing_interval: Seconds between ambient typing bursts.
        reply_on_typing_timeout: Send the scripted reply when the typing
            timeout elapses, instead of only after sends.
        reply_pool: Replies the remote user picks from.
        seed_sample_messages: Load the sample conversation at construction.
        reply_seed: Seed for reply selection (None = nondeterministic).
    """

    current_user: Participant = Field(
        default_factory=lambda: Participant(user_id="current-user", name="You")
    )
    remote_user: Participant = Field(
        default_factory=lambda: Participant(user_id="other-user", name="Alex")
    )
    system_user: Participant = Field(
        default_factory=lambda: Participant(user_id="system", name="System")
    )
    delivery_delay: float = Field(default=0.5, gt=0)
    reply_delay: float = Field(default=2.0, gt=0)
    read_delay: Optional[float] = Field(default=None, gt=0)
    typing_timeout: float = Field(default=3.0, gt=0)
    connect_delay: float = Field(default=1.0, gt=0)
    start_connected: bool = True
    ambient_typing: bool = False
    ambient_typing_interval: float = Field(default=15.0, gt=0)
    reply_on_typing_timeout: bool = False
    reply_pool: list[str] = Field(default_factory=lambda: list(DEFAULT_REPLY_POOL))
    seed_sample_messages: bool = False
    reply_seed: Optional[int] = None

    @field_validator("reply_pool")
    @classmethod
    def validate_reply_pool(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("reply_pool cannot be empty")
        if any(not reply.strip() for reply in value):
            raise ValueError("reply_pool entries cannot be blank")
        return value

    @model_validator(mode="after")
    def validate_delays(self) -> "ChatConfig":
        if self.reply_delay <= self.delivery_delay:
            raise ValueError(
                f"reply_delay ({self.reply_delay}) must be longer than "
                f"delivery_delay ({self.delivery_delay})"
            )
        ids = {self.current_user.user_id, self.remote_user.user_id, self.system_user.user_id}
        if len(ids) != 3:
            raise ValueError("current, remote and system users need distinct ids")
        return self


class Settings(BaseSettings):
    """Process settings, read from ``CHATSIM_*`` variables and ``.env``."""

    log_level: str = "INFO"
    auto_advance: bool = False
    time_scale: float = Field(default=1.0, gt=0)
    tick_interval: float = Field(default=0.01, gt=0)

    delivery_delay: float = Field(default=0.5, gt=0)
    reply_delay: float = Field(default=2.0, gt=0)
    read_delay: Optional[float] = Field(default=None, gt=0)
    typing_timeout: float = Field(default=3.0, gt=0)
    connect_delay: float = Field(default=1.0, gt=0)
    start_connected: bool = True
    ambient_typing: bool = True
    reply_on_typing_timeout: bool = False
    seed_sample_messages: bool = True
    reply_seed: Optional[int] = None

    model_config = SettingsConfigDict(env_prefix="CHATSIM_", env_file=".env", extra="ignore")

    def to_chat_config(self) -> ChatConfig:
        return ChatConfig(
            delivery_delay=self.delivery_delay,
            reply_delay=self.reply_delay,
            read_delay=self.read_delay,
            typing_timeout=self.typing_timeout,
            connect_delay=self.connect_delay,
            start_connected=self.start_connected,
            ambient_typing=self.ambient_typing,
            reply_on_typing_timeout=self.reply_on_typing_timeout,
            seed_sample_messages=self.seed_sample_messages,
            reply_seed=self.reply_seed,
        )
