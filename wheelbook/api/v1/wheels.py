"""Wheel API endpoints.

This module provides REST endpoints for starting, listing, pausing, and
completing wheels.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wheelbook.api.deps import get_current_user_id, unwrap
from wheelbook.database.session import get_db
from wheelbook.models.common import ActionResult
from wheelbook.models.wheel import WheelCreate
from wheelbook.services.wheel_service import WheelService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["wheels"])


def get_wheel_service(db: Session = Depends(get_db)) -> WheelService:
    """Dependency for wheel service.

    Args:
        db: Database session

    Returns:
        WheelService instance
    """
    return WheelService(db)


@router.post(
    "/wheels",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Start a wheel",
    description="Starts a new ACTIVE wheel on a ticker",
)
def create_wheel(
    wheel: WheelCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: WheelService = Depends(get_wheel_service),
) -> ActionResult:
    """Start a new wheel.

    Example:
        >>> POST /api/v1/wheels
        >>> {"ticker": "AAPL", "notes": "Conservative strikes only"}
    """
    return unwrap(service.create_wheel(user_id, wheel.ticker, notes=wheel.notes))


@router.get(
    "/wheels",
    response_model=ActionResult,
    summary="List wheels",
    description="Retrieves the caller's wheels with optional status and ticker filters",
)
def list_wheels(
    status_filter: Optional[str] = Query(
        None, alias="status", description="ACTIVE, PAUSED or COMPLETED"
    ),
    ticker: Optional[str] = Query(None, description="Filter by ticker"),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: WheelService = Depends(get_wheel_service),
) -> ActionResult:
    """List wheels, by status and then most recent activity."""
    return unwrap(service.get_wheels(user_id, status=status_filter, ticker=ticker))


@router.get(
    "/wheels/{wheel_id}",
    response_model=ActionResult,
    summary="Get wheel",
    description="Retrieves a wheel with its trades and positions",
)
def get_wheel(
    wheel_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: WheelService = Depends(get_wheel_service),
) -> ActionResult:
    """Get wheel details."""
    return unwrap(service.get_wheel(user_id, wheel_id))


@router.post(
    "/wheels/{wheel_id}/pause",
    response_model=ActionResult,
    summary="Pause wheel",
    description="Pauses an ACTIVE wheel",
)
def pause_wheel(
    wheel_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: WheelService = Depends(get_wheel_service),
) -> ActionResult:
    """Pause a wheel."""
    return unwrap(service.pause_wheel(user_id, wheel_id))


@router.post(
    "/wheels/{wheel_id}/complete",
    response_model=ActionResult,
    summary="Complete wheel",
    description="Marks a wheel as COMPLETED",
)
def complete_wheel(
    wheel_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: WheelService = Depends(get_wheel_service),
) -> ActionResult:
    """Complete a wheel."""
    return unwrap(service.complete_wheel(user_id, wheel_id))
