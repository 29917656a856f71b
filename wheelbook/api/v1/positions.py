"""Position API endpoints.

This module provides REST endpoints for reading stock positions, updating
their notes or market value, and closing them manually.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wheelbook.api.deps import get_current_user_id, unwrap
from wheelbook.database.session import get_db
from wheelbook.models.common import ActionResult
from wheelbook.models.position import ClosePositionRequest, PositionUpdate
from wheelbook.services.position_service import PositionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["positions"])


def get_position_service(db: Session = Depends(get_db)) -> PositionService:
    """Dependency for position service.

    Args:
        db: Database session

    Returns:
        PositionService instance
    """
    return PositionService(db)


@router.get(
    "/positions",
    response_model=ActionResult,
    summary="List positions",
    description="Retrieves the caller's stock positions with optional status filter",
)
def list_positions(
    status_filter: Optional[str] = Query(None, alias="status", description="OPEN or CLOSED"),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: PositionService = Depends(get_position_service),
) -> ActionResult:
    """List positions, newest first."""
    return unwrap(service.get_positions(user_id, status=status_filter))


@router.get(
    "/positions/{position_id}",
    response_model=ActionResult,
    summary="Get position",
    description="Retrieves a position with its assignment trade and covered calls",
)
def get_position(
    position_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: PositionService = Depends(get_position_service),
) -> ActionResult:
    """Get position details."""
    return unwrap(service.get_position(user_id, position_id))


@router.patch(
    "/positions/{position_id}",
    response_model=ActionResult,
    summary="Update position",
    description="Updates position notes or current market value",
)
def update_position(
    position_id: str,
    update: PositionUpdate,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: PositionService = Depends(get_position_service),
) -> ActionResult:
    """Update a position.

    Example:
        >>> PATCH /api/v1/positions/{id}
        >>> {"current_value": "15250.00"}
    """
    return unwrap(
        service.update_position(
            user_id, position_id, notes=update.notes, current_value=update.current_value
        )
    )


@router.post(
    "/positions/{position_id}/close",
    response_model=ActionResult,
    summary="Close position",
    description="Sells the position's shares at the given price and records realized P&L",
)
def close_position(
    position_id: str,
    request: ClosePositionRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: PositionService = Depends(get_position_service),
) -> ActionResult:
    """Close a position manually.

    Example:
        >>> POST /api/v1/positions/{id}/close
        >>> {"closing_price": "155.00"}
    """
    return unwrap(service.close_position(user_id, position_id, request.closing_price))
