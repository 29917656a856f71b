"""Shared FastAPI dependencies and result mapping.

Identity is taken from the ``X-User-Id`` header, standing in for whatever
session layer sits in front of the API. A missing header yields ``None``
and the service answers Unauthorized.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from wheelbook.models.common import ActionResult, ErrorType

logger = logging.getLogger(__name__)

# HTTP status code per failure category
ERROR_STATUS_CODES: dict[ErrorType, int] = {
    ErrorType.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorType.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorType.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorType.BUSINESS_RULE: status.HTTP_400_BAD_REQUEST,
    ErrorType.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorType.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, description="Caller identity"),
) -> Optional[str]:
    """Dependency returning the caller identity, or None when absent."""
    return x_user_id or None


def unwrap(result: ActionResult) -> ActionResult:
    """Return a successful result or raise the matching HTTP error.

    Args:
        result: Result of a service operation

    Returns:
        The same result when it succeeded

    Raises:
        HTTPException: With the failed result as ``detail``
    """
    if result.success:
        return result
    code = ERROR_STATUS_CODES.get(
        result.error_type or ErrorType.INTERNAL, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.debug(f"Request failed with {code}: {result.error}")
    raise HTTPException(status_code=code, detail=result.model_dump(mode="json"))
