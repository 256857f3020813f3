"""Exception handlers for the ChatSim FastAPI application.

This module defines custom exception handlers that convert Python exceptions
into consistent JSON responses of the form ``{error, detail, type}``.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models.errors import ErrorKind, ScreenError

logger = logging.getLogger(__name__)


class SchedulerNotRunningError(RuntimeError):
    """Raised when an operation requires the scheduler to be running but it's not.

    Args:
        message: Description of the operation that failed.
    """

    def __init__(self, message: str = "Scheduler is not running"):
        self.message = message
        super().__init__(message)


SCREEN_ERROR_STATUS = {
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.DEVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.REQUEST_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

_SCREEN_ERROR_TITLES = {
    ErrorKind.PERMISSION_DENIED: "Permission Denied",
    ErrorKind.DEVICE_UNAVAILABLE: "Device Unavailable",
    ErrorKind.REQUEST_FAILED: "Request Failed",
    ErrorKind.TIMEOUT: "Request Timed Out",
    ErrorKind.NOT_FOUND: "Not Found",
}


async def screen_error_handler(request: Request, exc: ScreenError):
    """Handle ScreenError exceptions.

    The failure kind picks the status code; the body also carries the
    user-visible fault so clients can show it.
    """
    fault = exc.to_fault()
    return JSONResponse(
        status_code=SCREEN_ERROR_STATUS[exc.kind],
        content={
            "error": _SCREEN_ERROR_TITLES[exc.kind],
            "detail": exc.message,
            "type": type(exc).__name__,
            "kind": exc.kind.value,
            "recoverable": fault.recoverable,
            "details": fault.details,
        },
    )


async def scheduler_not_running_handler(request: Request, exc: SchedulerNotRunningError):
    """Handle SchedulerNotRunningError exceptions.

    Returns a 409 (Conflict) indicating the scheduler needs to be started first.
    """
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "Scheduler Not Running",
            "detail": exc.message,
            "type": "SchedulerNotRunningError",
            "suggestion": "Start the scheduler with POST /scheduler/start",
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised inside handlers."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "type": "ValidationError",
            "validation_errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions.

    ValueErrors indicate input that passed request validation but was
    rejected by the models (negative delay, backward delivery state).
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": "ValueError",
        },
    )


async def runtime_error_handler(request: Request, exc: RuntimeError):
    """Handle RuntimeError exceptions."""
    logger.error(f"Runtime error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Runtime Error",
            "detail": str(exc),
            "type": "RuntimeError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions.

    The traceback is logged; clients only see a generic message.
    """
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )
