"""Batch trade API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wheelbook.api.deps import get_current_user_id, unwrap
from wheelbook.database.session import get_db
from wheelbook.models.batch import BatchTradeRequest
from wheelbook.models.common import ActionResult
from wheelbook.services.batch_service import BatchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["batch"])


@router.post(
    "/trades/batch/expire",
    response_model=ActionResult,
    summary="Batch expire trades",
    description="Expires up to 100 OPEN trades in one transaction",
)
def batch_expire(
    request: BatchTradeRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Expire several trades at once.

    Size and ID format are checked by the service so that an oversized
    request comes back as a structured validation error.

    Example:
        >>> POST /api/v1/trades/batch/expire
        >>> {"trade_ids": ["0b6e...", "5f1c..."]}
    """
    return unwrap(BatchService(db).batch_expire(user_id, request.trade_ids))


@router.post(
    "/trades/batch/assign",
    response_model=ActionResult,
    summary="Batch assign trades",
    description="Assigns up to 50 OPEN PUTs and covered CALLs in one transaction",
)
def batch_assign(
    request: BatchTradeRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Assign several trades at once."""
    return unwrap(BatchService(db).batch_assign(user_id, request.trade_ids))
