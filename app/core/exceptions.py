"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- A single mapping from error kind to HTTP status

Exception Hierarchy:
    BaseApplicationError (base)
    └── UnauthenticatedError - Missing/invalid/expired credential (401)

Usage:
    from core.exceptions import TOKEN_EXPIRED, UnauthenticatedError

    raise UnauthenticatedError("Token has expired", error_code=TOKEN_EXPIRED)

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    Services report every other kind through ServiceResult error codes
    (see core.services). The exceptions are raised where a view needs to
    abort, and are rendered by core.exception_handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


# Stable machine-readable error kinds
UNAUTHENTICATED = "UNAUTHENTICATED"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
VALIDATION_FAILED = "VALIDATION_FAILED"
UNAVAILABLE = "UNAVAILABLE"

ERROR_STATUS_CODES: dict[str, int] = {
    UNAUTHENTICATED: 401,
    TOKEN_EXPIRED: 401,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    CONFLICT: 409,
    VALIDATION_FAILED: 400,
    UNAVAILABLE: 503,
}


def status_for_error_code(error_code: str | None, default: int = 400) -> int:
    """Return the HTTP status conventionally used for an error code."""
    return ERROR_STATUS_CODES.get(error_code or "", default)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status used when rendered by the API

    Example:
        try:
            HasVerifiedIdentity().has_permission(request, view)
        except UnauthenticatedError as e:
            logger.warning(f"Rejected request: {e.error_code}")
            return Response(e.to_dict(), status=e.status_code)
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Channel not found",
                "error_code": "NOT_FOUND",
                "details": {"channel_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class UnauthenticatedError(BaseApplicationError):
    """
    Raised when an operation requires a verified identity and none is present.

    Use error_code=TOKEN_EXPIRED when the credential was well-formed but
    expired, so clients can show "your session expired" instead of a
    generic error.
    """

    default_error_code: str = UNAUTHENTICATED
    status_code: int = 401
