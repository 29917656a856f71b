"""Common Pydantic models for API requests and responses.

This module contains shared response models used across the API,
including the discriminated ``ActionResult`` returned by every engine
operation.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorType(str, Enum):
    """Category of a failed operation, used to pick an HTTP status."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    BUSINESS_RULE = "business_rule"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class ActionResult(BaseModel, Generic[T]):
    """Discriminated result of an engine operation.

    Either ``success`` is True and ``data`` holds the payload, or
    ``success`` is False and ``error`` holds a human-readable message with
    optional ``details``.

    Attributes:
        success: Whether the operation succeeded
        data: Payload on success
        error: Error message on failure
        error_type: Error category on failure
        details: Additional error details (validation errors, batch errors)

    Example:
        >>> ActionResult.ok({"id": "abc"})
        >>> ActionResult.fail("Trade not found", ErrorType.NOT_FOUND)
    """

    success: bool = Field(..., description="Whether the operation succeeded")
    data: Optional[T] = Field(default=None, description="Payload on success")
    error: Optional[str] = Field(default=None, description="Error message on failure")
    error_type: Optional[ErrorType] = Field(
        default=None, description="Error category on failure"
    )
    details: Optional[Any] = Field(default=None, description="Additional error details")

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        """Build a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        error_type: ErrorType = ErrorType.INTERNAL,
        details: Any = None,
    ) -> "ActionResult":
        """Build a failed result."""
        return cls(success=False, error=error, error_type=error_type, details=details)


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Service health status
        timestamp: Current server timestamp
    """

    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Current server timestamp"
    )


class InfoResponse(BaseModel):
    """System information response model.

    Attributes:
        app_name: Application name
        version: Application version
        status: Service status
        database_connected: Whether database connection is working
        free_trade_limit: Lifetime trade cap for FREE users
        timestamp: Current server timestamp
    """

    app_name: str = Field(..., description="Application name")
    version: str = Field(..., description="Application version")
    status: str = Field(default="running", description="Service status")
    database_connected: bool = Field(..., description="Database connection status")
    free_trade_limit: int = Field(..., description="Lifetime trade cap for FREE users")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Current server timestamp"
    )


class ErrorResponse(BaseModel):
    """Standard error response model for unhandled errors.

    Attributes:
        error: Error type or code
        message: Human-readable error message
        detail: Additional error details
        timestamp: When the error occurred
    """

    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[Any] = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Error timestamp"
    )
