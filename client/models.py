"""Client response models for the ChatSim API client.

This module re-exports the shared models from the API layer and defines
client-specific response models that don't exist in the API layer.
"""

from pydantic import BaseModel, Field

from api.models import CallbackDetail, ErrorResponse, PaginationParams

__all__ = [
    # Re-exported from api.models
    "CallbackDetail",
    "ErrorResponse",
    "PaginationParams",
    # Client-specific models
    "HealthResponse",
    "RootResponse",
]


class HealthResponse(BaseModel):
    """Response model for the health check.

    Attributes:
        status: Health status ("healthy").
    """

    status: str = Field(..., description="Health status")


class RootResponse(BaseModel):
    """Response model for the root endpoint.

    Attributes:
        message: Welcome message.
        version: API version string.
        docs_url: Where the interactive docs live.
    """

    message: str
    version: str
    docs_url: str
