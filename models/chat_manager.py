"""Chat screen manager.

Owns the state of one chat screen: the ordered message log, per-user typing
flags and the connection status. Network behaviour is simulated with
callbacks on the shared Scheduler, so nothing here ever sleeps: sending a
message appends it immediately, the delivery receipt and the scripted reply
arrive later on the virtual timeline.
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from models.capability import PHOTO_LIBRARY, CapabilityGate
from models.config import ChatConfig
from models.errors import NotFoundError, ScreenError, ScreenFault
from models.message import (
    ConnectionStatus,
    DeliveryStatus,
    Message,
    MessageType,
    Participant,
)
from models.observable import CallbackSet, Observable
from models.requests import LatestRequestGate, RequestTicket
from models.scheduler import Scheduler

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | str) -> datetime:
    """Parse a query bound; naive values are read as UTC like every log timestamp."""
    moment = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class ChatManager(Observable):
    """State and simulated behaviour of a chat screen.

    Every mutation, whether called directly or fired from the timeline, runs
    under the scheduler's lock and is followed by a change notice to
    subscribers.

    Args:
        scheduler: Timeline that delayed effects are scheduled on.
        config: Delays, identities and reply pool.
        capabilities: Permission gate for the image picker. A gate owned by
            this manager is created when omitted.
        rng: Random source for reply selection.
    """

    screen_name = "chat"

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[ChatConfig] = None,
        capabilities: Optional[CapabilityGate] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__()
        self.scheduler = scheduler
        self.config = config or ChatConfig()
        self.manager_id = str(uuid4())
        self.owner = f"chat:{self.manager_id}"
        self.capabilities = capabilities or CapabilityGate(scheduler, owner=self.owner)
        self.rng = rng or random.Random(self.config.reply_seed)
        self.last_fault: Optional[ScreenFault] = None

        self._log: list[Message] = []
        self._positions: dict[str, int] = {}
        self._typing: dict[str, bool] = {self.config.remote_user.user_id: False}
        self._typing_clear_id: Optional[str] = None
        self._ambient_id: Optional[str] = None
        self._connection_status = ConnectionStatus.DISCONNECTED
        self._connect_gate: LatestRequestGate[ConnectionStatus] = LatestRequestGate(
            scheduler, label="chat.connect", owner=self.owner
        )
        self._closed = False

        if self.config.seed_sample_messages:
            self.load_sample_messages()

        if self.config.start_connected:
            self._connection_status = ConnectionStatus.CONNECTED
            self._start_ambient_typing()

    # ===== Read accessors =====

    @property
    def messages(self) -> tuple[Message, ...]:
        """Read-only view of the log, in display order."""
        with self.scheduler.lock:
            return tuple(self._log)

    @property
    def typing(self) -> dict[str, bool]:
        with self.scheduler.lock:
            return dict(self._typing)

    @property
    def typing_users(self) -> list[str]:
        with self.scheduler.lock:
            return [user_id for user_id, flag in self._typing.items() if flag]

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._connection_status

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_message(self, message_id: str) -> Message:
        """Look up a message by id.

        Raises:
            NotFoundError: If no message has that id.
        """
        with self.scheduler.lock:
            position = self._positions.get(message_id)
            if position is None:
                raise NotFoundError("message", message_id)
            return self._log[position]

    # ===== Sending =====

    def send_message(self, text: str, reply_to_id: Optional[str] = None) -> Message:
        """Append an outgoing text message and start its delivery pipeline.

        The message is visible in the log, in state ``sending``, as soon as
        this returns. After ``delivery_delay`` it is marked delivered; after
        ``reply_delay`` the remote user answers from the reply pool.
        """
        with self.scheduler.lock:
            self._ensure_open()
            message = self._outgoing(text, MessageType.TEXT, reply_to_id=reply_to_id)
            self._append(message)
            self._schedule_delivery(message.message_id)
            self._schedule_reply()

        logger.info(f"Sent {message.get_summary()}")
        return message

    def send_image(
        self,
        caption: str,
        attachment_ref: str,
        reply_to_id: Optional[str] = None,
    ) -> Message:
        """Append an outgoing image message.

        Raises:
            PermissionDeniedError: Photo library access is not granted.
            DeviceUnavailableError: The device has no photo library.
        """
        with self.scheduler.lock:
            self._ensure_open()
            try:
                self.capabilities.require(PHOTO_LIBRARY)
            except ScreenError as e:
                self._record_fault(e)
                raise

            message = self._outgoing(
                caption,
                MessageType.IMAGE,
                reply_to_id=reply_to_id,
                attachment_ref=attachment_ref,
            )
            self._append(message)
            self._schedule_delivery(message.message_id)
            self._schedule_reply()

        logger.info(f"Sent {message.get_summary()}")
        return message

    def request_photo_access(
        self, callbacks: Optional[CallbackSet[bool]] = None
    ) -> Optional[RequestTicket]:
        """Prompt for photo library access; a refusal is recorded as a fault."""
        callbacks = callbacks or CallbackSet()

        def refused(error: ScreenError) -> None:
            self._record_fault(error)
            callbacks.reject(error)

        with self.scheduler.lock:
            self._ensure_open()
            return self.capabilities.request(
                PHOTO_LIBRARY, CallbackSet(on_result=callbacks.resolve, on_error=refused)
            )

    # ===== Typing =====

    def set_typing(self, is_typing: bool) -> None:
        """Raise or lower the remote user's typing flag.

        A raised flag clears itself after ``typing_timeout``; raising it
        again restarts that countdown. Lowering it cancels the countdown.
        With ``reply_on_typing_timeout`` the countdown ends in a scripted reply.
        """
        with self.scheduler.lock:
            self._ensure_open()
            if is_typing:
                self._raise_typing(reply_on_timeout=self.config.reply_on_typing_timeout)
            else:
                self._cancel_typing_clear()
                self._set_typing_flag(self.config.remote_user.user_id, False)

    # ===== Reactions =====

    def add_reaction(self, message_id: str, symbol: str) -> Optional[Message]:
        """Increment ``symbol``'s count on a message.

        Returns:
            The updated message, or None when the id is not in the log.
        """
        with self.scheduler.lock:
            self._ensure_open()
            position = self._positions.get(message_id)
            if position is None:
                logger.debug(f"Ignoring reaction {symbol!r} for unknown message {message_id}")
                return None
            updated = self._log[position].with_reaction(symbol)
            self._log[position] = updated
            self._notify(
                "reaction_added",
                self.scheduler.now(),
                message_id=message_id,
                symbol=symbol,
                count=updated.reactions[symbol],
            )
            return updated

    # ===== Connection =====

    def connect(
        self,
        callbacks: Optional[CallbackSet[ConnectionStatus]] = None,
        timeout: Optional[float] = None,
    ) -> RequestTicket:
        """Start connecting; the connection is up after ``connect_delay``.

        A connect issued while another is pending supersedes it.

        Args:
            callbacks: Told the final status, or the failure.
            timeout: Optional deadline for the connect.
        """
        callbacks = callbacks or CallbackSet()

        def establish() -> ConnectionStatus:
            self._set_connection(ConnectionStatus.CONNECTED)
            self._start_ambient_typing()
            return ConnectionStatus.CONNECTED

        def failed(error: ScreenError) -> None:
            self._record_fault(error)
            self._set_connection(ConnectionStatus.DISCONNECTED)
            callbacks.reject(error)

        with self.scheduler.lock:
            self._ensure_open()
            self._stop_ambient_typing()
            self._set_connection(ConnectionStatus.CONNECTING)
            ticket = self._connect_gate.issue(
                self.config.connect_delay,
                establish,
                CallbackSet(on_result=callbacks.resolve, on_error=failed),
                timeout=timeout,
            )

        logger.info(f"Chat {self.manager_id} connecting")
        return ticket

    def disconnect(self) -> ConnectionStatus:
        """Drop the connection, abandoning any connect still in flight."""
        with self.scheduler.lock:
            self._ensure_open()
            self._connect_gate.cancel("disconnected")
            self._stop_ambient_typing()
            self._cancel_typing_clear()
            self._set_typing_flag(self.config.remote_user.user_id, False)
            self._set_connection(ConnectionStatus.DISCONNECTED)

        logger.info(f"Chat {self.manager_id} disconnected")
        return self._connection_status

    # ===== Log management =====

    def load_sample_messages(self) -> list[Message]:
        """Replace the log with the canned sample conversation.

        The join notice is displayed last although its timestamp is the
        earliest; the log keeps insertion order, not timestamp order.
        """
        current = self.config.current_user
        remote = self.config.remote_user
        system = self.config.system_user

        with self.scheduler.lock:
            self._ensure_open()
            now = self.scheduler.now()
            script = [
                (remote, "Hey! How's it going?", MessageType.TEXT, 3600),
                (current, "I'm doing great! Just working on some SwiftUI projects.", MessageType.TEXT, 3500),
                (remote, "That sounds awesome! SwiftUI is such a powerful framework.", MessageType.TEXT, 3400),
                (system, "Alex joined the chat", MessageType.SYSTEM, 3700),
            ]
            self._log = [
                Message(
                    content=content,
                    sender_id=sender.user_id,
                    sender_name=sender.name,
                    timestamp=now - timedelta(seconds=seconds_ago),
                    message_type=message_type,
                    status=DeliveryStatus.READ,
                )
                for sender, content, message_type, seconds_ago in script
            ]
            self._positions = {m.message_id: i for i, m in enumerate(self._log)}
            self._notify("log_replaced", now, count=len(self._log))
            return list(self._log)

    def query(self, query_params: dict[str, Any]) -> dict[str, Any]:
        """Filter the log.

        Supported query parameters:
            - sender_id: str - Only messages from this sender
            - status: str - Only messages in this delivery state
            - message_type: str - Only messages of this type
            - search: str - Case-insensitive substring of the content
            - since / until: datetime - Timestamp bounds (inclusive)
            - limit: int - Maximum number of results
            - offset: int - Number of results to skip

        Returns:
            Dictionary with ``messages``, ``count`` (after pagination) and
            ``total_count`` (before pagination).
        """
        sender_id = query_params.get("sender_id")
        status = query_params.get("status")
        message_type = query_params.get("message_type")
        search = query_params.get("search")
        since = query_params.get("since")
        until = query_params.get("until")

        filtered = list(self.messages)

        if sender_id:
            filtered = [m for m in filtered if m.sender_id == sender_id]

        if status:
            wanted = DeliveryStatus(status)
            filtered = [m for m in filtered if m.status == wanted]

        if message_type:
            wanted_type = MessageType(message_type)
            filtered = [m for m in filtered if m.message_type == wanted_type]

        if search:
            needle = search.lower()
            filtered = [m for m in filtered if needle in m.content.lower()]

        if since:
            since_dt = _as_utc(since)
            filtered = [m for m in filtered if m.timestamp >= since_dt]

        if until:
            until_dt = _as_utc(until)
            filtered = [m for m in filtered if m.timestamp <= until_dt]

        total_count = len(filtered)

        offset = query_params.get("offset") or 0
        limit = query_params.get("limit")
        if offset:
            filtered = filtered[offset:]
        if limit:
            filtered = filtered[:limit]

        return {
            "messages": [m.to_dict() for m in filtered],
            "count": len(filtered),
            "total_count": total_count,
        }

    def get_snapshot(self) -> dict[str, Any]:
        with self.scheduler.lock:
            return {
                "manager_id": self.manager_id,
                "current_time": self.scheduler.now().isoformat(),
                "messages": [m.to_dict() for m in self._log],
                "message_count": len(self._log),
                "typing": dict(self._typing),
                "typing_users": self.typing_users,
                "connection_status": self._connection_status.value,
                "current_user": self.config.current_user.model_dump(),
                "remote_user": self.config.remote_user.model_dump(),
                "capabilities": self.capabilities.statuses(),
                "last_fault": self.last_fault.model_dump(mode="json") if self.last_fault else None,
                "pending_callbacks": len(self.scheduler.pending(self.owner)),
                "is_closed": self._closed,
            }

    def validate_state(self) -> list[str]:
        errors = []
        seen: set[str] = set()
        for position, message in enumerate(self._log):
            if message.message_id in seen:
                errors.append(f"Duplicate message ID: {message.message_id}")
            seen.add(message.message_id)
            if self._positions.get(message.message_id) != position:
                errors.append(f"Position index out of date for {message.message_id}")
        if len(self._positions) != len(self._log):
            errors.append("Position index size does not match log size")
        return errors

    def clear_fault(self) -> None:
        with self.scheduler.lock:
            self.last_fault = None

    def close(self) -> int:
        """Cancel everything this manager has scheduled and refuse further mutation.

        Returns:
            Number of callbacks cancelled.
        """
        with self.scheduler.lock:
            if self._closed:
                return 0
            self._connect_gate.cancel("manager closed")
            cancelled = self.scheduler.cancel_owner(self.owner, "manager closed")
            self._typing_clear_id = None
            self._ambient_id = None
            self._closed = True
            self._notify("closed", self.scheduler.now(), cancelled=cancelled)

        logger.info(f"Chat {self.manager_id} closed, cancelled {cancelled} callbacks")
        return cancelled

    # ===== Internals =====

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Chat manager {self.manager_id} is closed")

    def _outgoing(
        self,
        content: str,
        message_type: MessageType,
        reply_to_id: Optional[str] = None,
        attachment_ref: Optional[str] = None,
    ) -> Message:
        sender = self.config.current_user
        return Message(
            content=content,
            sender_id=sender.user_id,
            sender_name=sender.name,
            timestamp=self.scheduler.now(),
            message_type=message_type,
            status=DeliveryStatus.SENDING,
            reply_to_id=reply_to_id,
            attachment_ref=attachment_ref,
        )

    def _append(self, message: Message) -> None:
        if message.message_id in self._positions:
            raise ValueError(f"Message {message.message_id} is already in the log")
        self._positions[message.message_id] = len(self._log)
        self._log.append(message)
        self._notify(
            "message_appended",
            self.scheduler.now(),
            message_id=message.message_id,
            sender_id=message.sender_id,
        )

    def _schedule_delivery(self, message_id: str) -> None:
        self.scheduler.schedule(
            self.config.delivery_delay,
            lambda: self._advance_status(message_id, DeliveryStatus.DELIVERED),
            label="chat.deliver",
            owner=self.owner,
            metadata={"message_id": message_id},
        )
        if self.config.read_delay is not None:
            self.scheduler.schedule(
                self.config.delivery_delay + self.config.read_delay,
                lambda: self._advance_status(message_id, DeliveryStatus.READ),
                label="chat.read",
                owner=self.owner,
                metadata={"message_id": message_id},
            )

    def _advance_status(self, message_id: str, status: DeliveryStatus) -> None:
        with self.scheduler.lock:
            position = self._positions.get(message_id)
            if position is None:
                logger.debug(f"Message {message_id} left the log before {status.value}")
                return
            current = self._log[position]
            if not current.status.precedes(status):
                return
            self._log[position] = current.with_status(status)
            self._notify(
                "message_status_changed",
                self.scheduler.now(),
                message_id=message_id,
                status=status.value,
            )

    def _schedule_reply(self) -> None:
        self.scheduler.schedule(
            self.config.reply_delay,
            self._append_reply,
            label="chat.reply",
            owner=self.owner,
        )

    def _append_reply(self) -> None:
        remote = self._remote_participant()
        with self.scheduler.lock:
            reply = Message(
                content=self.rng.choice(self.config.reply_pool),
                sender_id=remote.user_id,
                sender_name=remote.name,
                timestamp=self.scheduler.now(),
                status=DeliveryStatus.SENT,
            )
            self._append(reply)
        logger.debug(f"Auto-reply {reply.get_summary()}")

    def _remote_participant(self) -> Participant:
        return self.config.remote_user

    def _set_typing_flag(self, user_id: str, value: bool) -> None:
        if self._typing.get(user_id) == value:
            return
        self._typing[user_id] = value
        self._notify("typing_changed", self.scheduler.now(), user_id=user_id, is_typing=value)

    def _cancel_typing_clear(self) -> None:
        if self._typing_clear_id is not None:
            self.scheduler.cancel(self._typing_clear_id, "typing state replaced")
            self._typing_clear_id = None

    def _raise_typing(self, reply_on_timeout: bool) -> None:
        remote_id = self.config.remote_user.user_id
        self._cancel_typing_clear()
        self._set_typing_flag(remote_id, True)
        clear = self.scheduler.schedule(
            self.config.typing_timeout,
            lambda: self._typing_timed_out(reply_on_timeout),
            label="chat.typing_timeout",
            owner=self.owner,
            metadata={"user_id": remote_id, "reply": reply_on_timeout},
        )
        self._typing_clear_id = clear.callback_id

    def _typing_timed_out(self, reply: bool) -> None:
        with self.scheduler.lock:
            self._typing_clear_id = None
            self._set_typing_flag(self.config.remote_user.user_id, False)
            if reply:
                self._append_reply()

    def _set_connection(self, status: ConnectionStatus) -> None:
        if self._connection_status == status:
            return
        previous = self._connection_status
        self._connection_status = status
        self._notify(
            "connection_changed",
            self.scheduler.now(),
            previous=previous.value,
            status=status.value,
        )

    def _start_ambient_typing(self) -> None:
        if not self.config.ambient_typing:
            return
        self._stop_ambient_typing()
        burst = self.scheduler.schedule(
            self.config.ambient_typing_interval,
            self._ambient_burst,
            label="chat.ambient_typing",
            owner=self.owner,
        )
        self._ambient_id = burst.callback_id

    def _stop_ambient_typing(self) -> None:
        if self._ambient_id is not None:
            self.scheduler.cancel(self._ambient_id, "ambient typing stopped")
            self._ambient_id = None

    def _ambient_burst(self) -> None:
        with self.scheduler.lock:
            self._ambient_id = None
            if self._connection_status != ConnectionStatus.CONNECTED or self._closed:
                return
            # A countdown already running (from set_typing) is left alone.
            if self._typing_clear_id is None:
                self._raise_typing(reply_on_timeout=False)
            self._start_ambient_typing()

    def _record_fault(self, error: ScreenError) -> None:
        self.last_fault = error.to_fault(self.scheduler.now())
        logger.warning(f"Chat fault ({error.kind.value}): {error.message}")
        self._notify("fault_recorded", self.scheduler.now(), kind=error.kind.value)
