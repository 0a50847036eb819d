"""Custom exception classes for the ingestion core.

Each exception maps to a specific error code defined in errors.py and
carries the HTTP status the API layer should answer with.
"""

from typing import Any


class DashboardError(Exception):
    """Base exception for all dashboard errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "DB_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    default_code = "DB_001"
    default_status = 500

    def __init__(
        self,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.http_status = http_status or self.default_status
        super().__init__(self.error_code)


class ValidationError(DashboardError):
    """Raised when a required field is missing or malformed.

    Raised before any persistence call, so nothing is written.
    """

    default_code = "VAL_001"
    default_status = 400


class AuthenticationError(DashboardError):
    """Raised when the caller's API key or user id is not accepted."""

    default_code = "AUTH_001"
    default_status = 401


class StorageError(DashboardError):
    """Raised when the persistence layer is unreachable, times out or
    rejects a write. Never retried internally."""

    default_code = "DB_001"
    default_status = 500


class UpstreamUnavailableError(DashboardError):
    """Raised when a third-party provider API call fails."""

    default_code = "SYNC_002"
    default_status = 502
