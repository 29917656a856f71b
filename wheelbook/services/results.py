"""Boundary helpers turning engine errors into ``ActionResult`` values.

Every public service operation is wrapped with ``action_boundary`` so that
callers only ever see the discriminated result shape.
"""

import functools
import logging
import uuid
from typing import Callable

from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from wheelbook.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailed,
    WheelbookError,
)
from wheelbook.models.common import ActionResult, ErrorType

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Database conflict, please retry"


def action_boundary(fallback_message: str) -> Callable:
    """Decorate a service method so it always returns an ``ActionResult``.

    Args:
        fallback_message: Generic message used for unexpected errors

    Returns:
        Decorator for the service method
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> ActionResult:
            try:
                return func(*args, **kwargs)
            except WheelbookError as e:
                logger.warning(f"{func.__name__} rejected: {e.message}")
                return ActionResult.fail(e.message, e.error_type, e.details)
            except ValidationError as e:
                logger.warning(f"{func.__name__} received invalid input: {e}")
                return ActionResult.fail(
                    "Invalid input",
                    ErrorType.VALIDATION,
                    e.errors(include_url=False, include_context=False),
                )
            except OperationalError as e:
                # Serialization failures and lock timeouts; the caller may retry
                logger.error(f"{func.__name__} hit a database conflict: {e}", exc_info=True)
                return ActionResult.fail(CONFLICT_MESSAGE, ErrorType.CONFLICT)
            except Exception as e:
                logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                return ActionResult.fail(fallback_message, ErrorType.INTERNAL)

        return wrapper

    return decorator


def require_user(user_id, message: str = "Unauthorized") -> str:
    """Return the caller identity or raise ``UnauthorizedError``."""
    if user_id is None:
        raise UnauthorizedError(message)
    return user_id


def parse_id(value, label: str = "trade") -> str:
    """Check that an identifier is a UUID string.

    Raises:
        ValidationFailed: If the identifier is malformed
    """
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError) as e:
        raise ValidationFailed(f"Invalid {label} ID") from e


def owned_or_raise(record, user_id: str, not_found: str):
    """Return ``record`` when it exists and belongs to ``user_id``.

    Raises:
        NotFoundError: If the record is missing
        ForbiddenError: If another user owns it
    """
    if record is None:
        raise NotFoundError(not_found)
    if record.user_id != user_id:
        raise ForbiddenError("Unauthorized")
    return record
