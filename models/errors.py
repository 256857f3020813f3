"""Failure taxonomy shared by screen managers.

Screen managers never let a failure crash the screen. Anything that goes
wrong against an external collaborator (permission prompt, device, request)
is raised as one of a small closed set of ScreenError subclasses, and can be
turned into a ScreenFault: a user-visible, non-fatal message.

Hierarchy:
    ScreenError (base)
    ├── PermissionDeniedError   - user declined a capability
    ├── DeviceUnavailableError  - hardware/service not present
    ├── RequestFailedError      - collaborator returned an error
    ├── RequestTimeoutError     - no answer within the deadline
    └── NotFoundError           - addressed entity does not exist
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Closed set of failure kinds a screen can surface."""

    PERMISSION_DENIED = "permission_denied"
    DEVICE_UNAVAILABLE = "device_unavailable"
    REQUEST_FAILED = "request_failed"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"


class ScreenFault(BaseModel):
    """User-visible description of a non-fatal failure.

    Args:
        kind: Which failure kind occurred.
        message: Text suitable for showing to the user.
        recoverable: Whether retrying (e.g. re-prompting) can succeed.
        occurred_at: Virtual time the fault was recorded, if known.
        details: Extra context for logs and API responses.
    """

    kind: ErrorKind
    message: str
    recoverable: bool = True
    occurred_at: Optional[datetime] = None
    details: dict[str, Any] = Field(default_factory=dict)


class ScreenError(Exception):
    """Base class for every failure a screen manager surfaces.

    Attributes:
        kind: The failure kind (fixed per subclass).
        message: Human-readable description.
        recoverable: Whether the screen can recover locally.
        details: Extra context.
    """

    kind: ErrorKind = ErrorKind.REQUEST_FAILED
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        recoverable: Optional[bool] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.recoverable = self.default_recoverable if recoverable is None else recoverable
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def to_fault(self, occurred_at: Optional[datetime] = None) -> ScreenFault:
        """Convert into a user-visible fault."""
        return ScreenFault(
            kind=self.kind,
            message=self.message,
            recoverable=self.recoverable,
            occurred_at=occurred_at,
            details=self.details,
        )


class PermissionDeniedError(ScreenError):
    """The user declined (or has not granted) a capability.

    Recoverable: the screen can prompt again.
    """

    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, capability: str, message: Optional[str] = None) -> None:
        self.capability = capability
        super().__init__(
            message or f"Access to {capability} was denied",
            details={"capability": capability},
        )


class DeviceUnavailableError(ScreenError):
    kind = ErrorKind.DEVICE_UNAVAILABLE
    default_recoverable = False


class RequestFailedError(ScreenError):
    kind = ErrorKind.REQUEST_FAILED


class RequestTimeoutError(ScreenError):
    """A request got no answer before its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, label: str, timeout: float) -> None:
        self.label = label
        self.timeout = timeout
        super().__init__(
            f"{label} timed out after {timeout:g}s",
            details={"request": label, "timeout": timeout},
        )


class NotFoundError(ScreenError):
    """An addressed entity (message, callback, capability) does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_recoverable = False

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity.capitalize()} '{entity_id}' not found",
            details={"entity": entity, "id": entity_id},
        )
