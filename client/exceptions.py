"""Exception hierarchy for the ChatSim API client.

Exception Hierarchy:
    ChatSimClientError (base)
    ├── ConnectionError - Network/connection failures
    ├── TimeoutError - Request timeout
    └── APIError - Server returned an error response
        ├── ValidationError (HTTP 400/422)
        ├── PermissionError (HTTP 403)
        ├── NotFoundError (HTTP 404)
        ├── ConflictError (HTTP 409)
        └── ServerError (HTTP 5xx)

Example:
    Reacting to a denied capability::

        try:
            client.chat.send_image(attachment_ref="photos/1.jpg")
        except PermissionError:
            client.chat.request_photo_access()

    Catching all client errors::

        try:
            client.time.advance(seconds=2)
        except ChatSimClientError as e:
            print(f"Client error: {e}")
"""

from typing import Any


class ChatSimClientError(Exception):
    """Base exception for all ChatSim client errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectionError(ChatSimClientError):
    """Failed to connect to the ChatSim server.

    Attributes:
        url: The URL that failed to connect.
        cause: The underlying transport exception.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class TimeoutError(ChatSimClientError):
    """Request took longer than the configured timeout.

    Attributes:
        timeout: The timeout value in seconds.
        url: The URL that timed out.
    """

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        url: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        extras = []
        if self.timeout is not None:
            extras.append(f"timeout: {self.timeout}s")
        if self.url:
            extras.append(f"url: {self.url}")
        return f"{self.message} ({', '.join(extras)})" if extras else self.message


class APIError(ChatSimClientError):
    """Server returned an error response.

    Attributes:
        status_code: HTTP status code from the server.
        error_type: Exception class name reported by the server (if available).
        kind: Screen failure kind (permission_denied, timeout, ...) if the
            server reported one.
        details: Additional error details from the response (if available).
        response_body: Raw response body for debugging.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        self.response_body = response_body
        self.kind = response_body.get("kind") if isinstance(response_body, dict) else None
        super().__init__(message)

    def __str__(self) -> str:
        if self.error_type:
            return f"[HTTP {self.status_code}] [{self.error_type}] {self.message}"
        return f"[HTTP {self.status_code}] {self.message}"


class ValidationError(APIError):
    """Request rejected as invalid (HTTP 400 or 422)."""


class PermissionError(APIError):
    """A capability the operation needs was not granted (HTTP 403)."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=403,
            error_type="PermissionDeniedError",
            details=details,
            response_body=response_body,
        )
        self.capability = (details or {}).get("capability")


class NotFoundError(APIError):
    """Resource not found (HTTP 404).

    Attributes:
        resource_type: The type of resource that wasn't found (if known).
        resource_id: The identifier that wasn't found (if known).
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=404,
            error_type="NotFoundError",
            details=details,
            response_body=response_body,
        )
        self.resource_type = (details or {}).get("entity")
        self.resource_id = (details or {}).get("id")


class ConflictError(APIError):
    """Operation conflicts with scheduler state (HTTP 409).

    Raised when starting a running scheduler, or driving time before the
    scheduler has been started.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_type="conflict",
            details=details,
            response_body=response_body,
        )


class ServerError(APIError):
    """Server-side failure (HTTP 5xx).

    Also covers the simulated collaborator failures the server maps to
    502/503/504 (request failed, device unavailable, timeout); ``kind``
    tells them apart.
    """
