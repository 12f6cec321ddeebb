"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent without forcing every
    error to carry every field.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    remaining_wait_minutes: int
    provider: str
    model: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class CooldownAppError(AppError):
    """Raised when an unpaid generation is requested during the cooldown."""


class VideoProviderAppError(AppError):
    """Raised when the video generation provider call fails."""
