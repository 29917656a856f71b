"""Trade usage API endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wheelbook.api.deps import get_current_user_id, unwrap
from wheelbook.database.session import get_db
from wheelbook.models.common import ActionResult
from wheelbook.services.trade_service import TradeService

router = APIRouter(tags=["usage"])


@router.get(
    "/usage",
    response_model=ActionResult,
    summary="Get trade usage",
    description="Lifetime trade count against the caller's tier limit",
)
def get_trade_usage(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult:
    """Get trade usage.

    Example:
        >>> GET /api/v1/usage
        >>> {
        >>>     "success": true,
        >>>     "data": {
        >>>         "trades_used": 12,
        >>>         "trade_limit": 20,
        >>>         "tier": "FREE",
        >>>         "remaining": 8,
        >>>         "limit_reached": false
        >>>     }
        >>> }
    """
    return unwrap(TradeService(db).get_trade_usage(user_id))
