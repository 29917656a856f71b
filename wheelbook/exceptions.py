"""Custom exceptions for wheelbook engine operations.

Services raise these internally; ``action_boundary`` converts them into
failed ``ActionResult`` values so they never cross an operation boundary.
"""

from typing import Any, Optional

from wheelbook.models.common import ErrorType


class WheelbookError(Exception):
    """Base exception for engine operations."""

    error_type: ErrorType = ErrorType.INTERNAL

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(WheelbookError):
    """Malformed input caught before any store access."""

    error_type = ErrorType.VALIDATION


class UnauthorizedError(WheelbookError):
    """No caller identity was supplied."""

    error_type = ErrorType.UNAUTHORIZED


class ForbiddenError(WheelbookError):
    """Caller does not own the target record."""

    error_type = ErrorType.FORBIDDEN


class NotFoundError(WheelbookError):
    """Referenced record does not exist."""

    error_type = ErrorType.NOT_FOUND


class InvalidTransitionError(WheelbookError):
    """Current status forbids the requested change."""

    error_type = ErrorType.INVALID_STATE

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(message or f"Cannot transition from {current} to {requested}")
        self.current = current
        self.requested = requested


class BusinessRuleError(WheelbookError):
    """Operation violates a business rule (limits, linkage, position state)."""

    error_type = ErrorType.BUSINESS_RULE
