"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and consumers.
    Views and consumers handle transport concerns, models handle data,
    services handle logic. The same service call backs both the HTTP
    endpoint and the WebSocket event for an operation.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, access policy,
      missing records, store faults)
    - Exceptions: Use for unexpected failures (bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class ChannelDirectoryService(BaseService):
        @classmethod
        def get(cls, channel_id) -> ServiceResult[Channel]:
            channel = Channel.objects.filter(pk=channel_id).first()
            if channel is None:
                return ServiceResult.failure("Channel not found", error_code=NOT_FOUND)
            return ServiceResult.success(channel)

    # In view
    result = ChannelDirectoryService.get(channel_id)
    if result.success:
        return Response(ChannelSerializer(result.data).data)
    return failure_response(result)

Related:
    - core.exceptions: Error kinds and their HTTP status codes
    - core.exception_handler: Rendering of failures for the API
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

from core.exceptions import UNAVAILABLE

if TYPE_CHECKING:
    from collections.abc import Generator

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error kind (see core.exceptions)
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(message)

        # Failure case
        return ServiceResult.failure("Channel not found", NOT_FOUND)

        # Validation errors with field details
        return ServiceResult.failure(
            "Validation failed",
            error_code=VALIDATION_FAILED,
            errors={"content": ["Ensure this field has at most 5000 characters."]}
        )

    Always test ``result.success``: a result object is truthy whether it
    succeeded or not.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error kind
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def map(self, func) -> ServiceResult:
        """
        Transform the data if successful.

        Example:
            result = ChannelDirectoryService.get(channel_id)
            serialized = result.map(lambda c: ChannelSerializer(c).data)
        """
        if self.success and self.data is not None:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Store fault handling

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
        error_code: str = UNAVAILABLE,
    ) -> ServiceResult:
        """
        Convert a store fault to ServiceResult with logging.

        The original error is logged with its traceback; the client only
        sees a generic message and the error kind.

        Example:
            try:
                ChannelMessage.objects.create(...)
            except DatabaseError as e:
                return cls.handle_exception(e, "appending channel message")
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, message, exc_info=True)
        return ServiceResult.failure(
            "The message store is temporarily unavailable",
            error_code=error_code,
        )
