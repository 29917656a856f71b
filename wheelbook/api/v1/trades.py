"""Trade API endpoints.

This module provides REST API endpoints for trade operations, including
recording trades, early close, expiration, rolling, and assignment.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wheelbook.api.deps import get_current_user_id, unwrap
from wheelbook.database.session import get_db
from wheelbook.models.common import ActionResult
from wheelbook.models.trade import CloseOptionRequest, RollOptionRequest, TradeCreate
from wheelbook.services.position_service import PositionService
from wheelbook.services.roll_service import RollService
from wheelbook.services.trade_service import TradeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trades"])


def get_trade_service(db: Session = Depends(get_db)) -> TradeService:
    """Dependency for trade service."""
    return TradeService(db)


@router.post(
    "/trades",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record a new trade",
    description="Records a new option trade, subject to the free-tier trade limit",
)
def create_trade(
    trade: TradeCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """Record a new option trade.

    Args:
        trade: Trade creation data
        user_id: Caller identity
        service: Trade service

    Returns:
        ActionResult with the new trade ID

    Raises:
        HTTPException: 400 with ``FREE_TIER_LIMIT_REACHED`` when the cap is hit

    Example:
        >>> POST /api/v1/trades
        >>> {
        >>>     "ticker": "AAPL",
        >>>     "option_type": "PUT",
        >>>     "action": "SELL_TO_OPEN",
        >>>     "strike_price": "150.00",
        >>>     "premium": "250.00",
        >>>     "contracts": 1,
        >>>     "expiration_date": "2026-03-20"
        >>> }
    """
    return unwrap(service.create_trade(user_id, **trade.model_dump()))


@router.get(
    "/trades",
    response_model=ActionResult,
    summary="List trades",
    description="Retrieves the caller's trades with optional filtering",
)
def list_trades(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    ticker: Optional[str] = Query(None, description="Filter by ticker"),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """List the caller's trades, newest first.

    Example:
        >>> GET /api/v1/trades?status=OPEN&ticker=AAPL
    """
    return unwrap(service.list_trades(user_id, status=status_filter, ticker=ticker))


@router.get("/trades/{trade_id}", response_model=ActionResult, summary="Get trade")
def get_trade(
    trade_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """Get a single trade."""
    return unwrap(service.get_trade(user_id, trade_id))


@router.delete("/trades/{trade_id}", response_model=ActionResult, summary="Delete trade")
def delete_trade(
    trade_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """Delete an OPEN trade."""
    return unwrap(service.delete_trade(user_id, trade_id))


@router.post(
    "/trades/{trade_id}/close",
    response_model=ActionResult,
    summary="Close option early",
    description="Buys back an OPEN option and records the net P&L",
)
def close_option(
    trade_id: str,
    request: CloseOptionRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """Close an option before expiration.

    Example:
        >>> POST /api/v1/trades/{id}/close
        >>> {"close_premium": "100.00"}
    """
    return unwrap(service.close_option(user_id, trade_id, request.close_premium))


@router.post("/trades/{trade_id}/expire", response_model=ActionResult, summary="Expire trade")
def expire_trade(
    trade_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: TradeService = Depends(get_trade_service),
) -> ActionResult:
    """Mark an OPEN option as expired worthless."""
    return unwrap(service.expire_trade(user_id, trade_id))


@router.post(
    "/trades/{trade_id}/roll",
    response_model=ActionResult,
    summary="Roll option",
    description="Closes an OPEN option and opens a new one in a single transaction",
)
def roll_option(
    trade_id: str,
    request: RollOptionRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Roll an option to a new strike or expiration.

    Example:
        >>> POST /api/v1/trades/{id}/roll
        >>> {
        >>>     "new_expiration_date": "2026-04-17",
        >>>     "new_strike_price": "145.00",
        >>>     "new_premium": "300.00",
        >>>     "close_premium": "100.00"
        >>> }
    """
    return unwrap(RollService(db).roll_option(user_id, trade_id, **request.model_dump()))


@router.post(
    "/trades/{trade_id}/assign-put",
    response_model=ActionResult,
    summary="Assign PUT",
    description="Marks a PUT assigned and creates the stock position",
)
def assign_put(
    trade_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Assign a PUT option."""
    return unwrap(PositionService(db).assign_put(user_id, trade_id))


@router.post(
    "/trades/{trade_id}/assign-call",
    response_model=ActionResult,
    summary="Assign CALL",
    description="Marks a covered CALL assigned and closes its position",
)
def assign_call(
    trade_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Assign a covered CALL option."""
    return unwrap(PositionService(db).assign_call(user_id, trade_id))
