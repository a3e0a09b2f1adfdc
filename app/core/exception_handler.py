"""
API rendering of application errors.

Every failure reaching a client carries a stable machine-readable
``error_code`` next to a human-readable ``error`` message:

    {"error": "Channel not found", "error_code": "NOT_FOUND"}

Two entry points:
    - api_exception_handler: DRF EXCEPTION_HANDLER for raised errors
    - failure_response: renders a failed ServiceResult from a view

Usage:
    result = ChannelDirectoryService.delete(channel_id, request.user)
    if not result.success:
        return failure_response(result)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    FORBIDDEN,
    NOT_FOUND,
    TOKEN_EXPIRED,
    UNAUTHENTICATED,
    UNAVAILABLE,
    VALIDATION_FAILED,
    BaseApplicationError,
    status_for_error_code,
)

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status mapped from its error code."""
    body = {"error": result.error, "error_code": result.error_code}
    if result.errors:
        body["errors"] = result.errors
    return Response(body, status=status_for_error_code(result.error_code))


def _error_code_for(exc: Exception) -> str | None:
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        if exc.get_codes() == "token_expired":
            return TOKEN_EXPIRED
        return UNAUTHENTICATED
    if isinstance(exc, drf_exceptions.PermissionDenied):
        return FORBIDDEN
    if isinstance(exc, (drf_exceptions.NotFound, Http404)):
        return NOT_FOUND
    if isinstance(exc, (drf_exceptions.ValidationError, drf_exceptions.ParseError)):
        return VALIDATION_FAILED
    return None


def api_exception_handler(exc, context):
    """
    DRF exception handler adding error codes to every error response.

    - BaseApplicationError: rendered with its own code and status
    - DatabaseError: logged, reported as 503 UNAVAILABLE
    - DRF errors: DRF's response, reshaped to {"error", "error_code"};
      validation errors keep their field messages under "errors"
    """
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.error(
            f"Store fault in {view.__class__.__name__ if view else 'view'}: {exc}",
            exc_info=True,
        )
        return Response(
            {
                "error": "The message store is temporarily unavailable",
                "error_code": UNAVAILABLE,
            },
            status=503,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    error_code = _error_code_for(exc)
    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            "error": "Validation failed",
            "error_code": error_code,
            "errors": response.data,
        }
    elif isinstance(response.data, dict) and "detail" in response.data:
        response.data = {
            "error": str(response.data["detail"]),
            "error_code": error_code or getattr(exc, "default_code", "error").upper(),
        }
    return response
