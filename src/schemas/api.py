"""API response schemas.

This module defines the common response envelopes used across the application.
"""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    Attributes:
        success: Whether the request was successful.
        data: The actual response data (when success is True).
        message: A human-readable message about the response.
        error: Error details (when success is False).
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    """Error API response.

    ``message`` is safe to show to end users; ``error`` carries the correlation
    ID, a stable error type and, outside production, diagnostics.
    """

    success: bool = False
    message: str = "An error occurred"
    error: dict[str, Any] | None = None


class ProviderStatus(BaseModel):
    configured: bool
    connected: bool


class HealthResponse(BaseModel):
    """Upstream reachability; ``ok`` when at least one provider answers."""

    status: Literal["ok", "error"]
    apis: dict[str, ProviderStatus]
    models: list[str]
