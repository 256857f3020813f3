"""Shared request and response models for API endpoints.

This module contains models used by more than one router: fired-callback
details (time control and scheduler lifecycle), pagination and the error
body every exception handler produces.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from models.callback import ScheduledCallback


class CallbackDetail(BaseModel):
    """Details about a single scheduled callback.

    Attributes:
        callback_id: Unique identifier of the callback.
        label: What the callback does (e.g. "chat.deliver").
        owner: Screen manager that scheduled it.
        due_time: When it is (or was) due.
        status: pending, fired, failed or cancelled.
        error: Error message if the callback failed, None otherwise.
    """

    callback_id: str
    label: str
    owner: str
    due_time: datetime
    status: str
    error: Optional[str] = None

    @classmethod
    def from_callback(cls, callback: ScheduledCallback) -> "CallbackDetail":
        return cls(
            callback_id=callback.callback_id,
            label=callback.label,
            owner=callback.owner,
            due_time=callback.due_time,
            status=callback.status.value,
            error=callback.error_message,
        )


class PaginationParams(BaseModel):
    """Common pagination parameters for query endpoints.

    Attributes:
        limit: Maximum number of results to return.
        offset: Number of results to skip (for pagination).
    """

    limit: int | None = Field(None, ge=1, le=1000, description="Maximum results to return")
    offset: int = Field(0, ge=0, description="Number of results to skip")


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Short error title.
        detail: Human-readable error message.
        type: Exception class name.
        kind: Screen failure kind, for screen errors.
        details: Structured context (capability, entity id).
    """

    error: str
    detail: str
    type: str
    kind: str | None = None
    details: dict[str, Any] | None = None
