"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    hint: str
    field: str
    resource: str
    resource_id: int | str
    retry_after: int
    needs_verification: bool
    upstream_status: int
    author: dict[str, Any]
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
    """Raised when request input fails domain validation."""


class AuthenticationAppError(AppError):
    """Raised when credentials or access tokens are missing or invalid."""


class PermissionAppError(AppError):
    """Raised when an authenticated caller may not perform an action."""


class NotFoundAppError(AppError):
    """Raised when a referenced resource does not exist."""


class ConflictAppError(AppError):
    """Raised when a write would duplicate an existing resource."""


class RateLimitAppError(AppError):
    """Raised when a caller or an outbound integration exhausted its budget."""


class ExternalServiceAppError(AppError):
    """Raised when a third-party service (OpenLibrary, SMTP) fails."""
