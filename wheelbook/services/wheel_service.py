"""Service layer for wheel operations.

This module provides the business logic for starting, listing, pausing,
and completing wheels. Trades and positions are linked to a wheel by the
trade and position services; this service owns the wheel's own status.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.models.wheel import Wheel
from wheelbook.database.session import run_in_transaction
from wheelbook.events import DASHBOARD_PATH, WHEELS_PATH, EventPublisher, events
from wheelbook.exceptions import BusinessRuleError, InvalidTransitionError, ValidationFailed
from wheelbook.models.common import ActionResult
from wheelbook.models.enums import OptionType, PositionStatus, TradeStatus, WheelStatus
from wheelbook.models.position import PositionResponse
from wheelbook.models.trade import TradeResponse
from wheelbook.models.wheel import WheelCreate, WheelDetailResponse, WheelIdData, WheelResponse
from wheelbook.repositories.wheel import WheelRepository
from wheelbook.services.results import action_boundary, owned_or_raise, parse_id, require_user

logger = logging.getLogger(__name__)


def deployed_capital(wheel: Wheel) -> Decimal:
    """Capital a wheel has tied up.

    Open PUTs count at strike times shares, the cash needed if assigned.
    Open positions count at their total cost.
    """
    put_capital = sum(
        (
            Decimal(t.strike_price) * t.shares
            for t in wheel.trades
            if t.option_type == OptionType.PUT.value and t.status == TradeStatus.OPEN.value
        ),
        Decimal("0"),
    )
    share_capital = sum(
        (
            Decimal(p.total_cost)
            for p in wheel.positions
            if p.status == PositionStatus.OPEN.value
        ),
        Decimal("0"),
    )
    return put_capital + share_capital


def _to_response(wheel: Wheel) -> WheelResponse:
    response = WheelResponse.model_validate(wheel)
    response.trade_count = len(wheel.trades) if wheel.trades else 0
    response.position_count = len(wheel.positions) if wheel.positions else 0
    response.deployed_capital = deployed_capital(wheel)
    return response


class WheelService:
    """Service for wheel business logic.

    Attributes:
        db: Database session
        wheel_repo: Wheel repository
        events: Publisher for cache invalidation signals
    """

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.wheel_repo = WheelRepository(db)
        self.events = publisher or events

    def _invalidate(self, wheel_id: Optional[str] = None) -> None:
        paths = [WHEELS_PATH]
        if wheel_id is not None:
            paths.append(f"{WHEELS_PATH}/{wheel_id}")
        self.events.invalidate(*paths, DASHBOARD_PATH)

    @action_boundary("Failed to create wheel")
    def create_wheel(
        self, user_id: Optional[str], ticker: str, notes: Optional[str] = None
    ) -> ActionResult:
        """Start a new ACTIVE wheel on a ticker.

        Only one ACTIVE wheel per ticker is allowed; PAUSED and COMPLETED
        wheels on the same ticker do not block a new one.

        Args:
            user_id: Caller identity
            ticker: Stock ticker symbol
            notes: Optional notes

        Returns:
            ActionResult with ``WheelIdData``

        Example:
            >>> service.create_wheel(user.id, "aapl")
            >>> ActionResult(success=True, data=WheelIdData(id="..."))
        """
        user_id = require_user(user_id)
        request = WheelCreate(ticker=ticker, notes=notes)

        def work(db: Session) -> str:
            if self.wheel_repo.get_active_for_ticker(user_id, request.ticker) is not None:
                raise BusinessRuleError(
                    f"An active wheel already exists for {request.ticker}. "
                    "Please pause or complete it before starting a new one."
                )
            wheel = self.wheel_repo.create_wheel(
                user_id,
                request.ticker,
                status=WheelStatus.ACTIVE.value,
                notes=request.notes,
            )
            return wheel.id

        wheel_id = run_in_transaction(self.db, work)
        logger.info(f"Started wheel {wheel_id} on {request.ticker} for user {user_id}")
        self._invalidate()
        return ActionResult.ok(WheelIdData(id=wheel_id))

    @action_boundary("Failed to fetch wheels")
    def get_wheels(
        self,
        user_id: Optional[str],
        status: Optional[str] = None,
        ticker: Optional[str] = None,
    ) -> ActionResult:
        """List the caller's wheels with counts and deployed capital."""
        user_id = require_user(user_id)
        if status is not None:
            try:
                status = WheelStatus(status.upper()).value
            except ValueError as e:
                raise ValidationFailed(f"Invalid wheel status: {status}") from e
        wheels = self.wheel_repo.list_wheels(user_id, status=status, ticker=ticker)
        return ActionResult.ok([_to_response(w) for w in wheels])

    @action_boundary("Failed to fetch wheel detail")
    def get_wheel(self, user_id: Optional[str], wheel_id: str) -> ActionResult:
        """Get one wheel with its trades and positions."""
        user_id = require_user(user_id)
        wheel_id = parse_id(wheel_id, "wheel")
        wheel = owned_or_raise(
            self.wheel_repo.get_wheel_with_records(wheel_id), user_id, "Wheel not found"
        )
        summary = _to_response(wheel)
        detail = WheelDetailResponse(
            **summary.model_dump(),
            trades=[
                TradeResponse.model_validate(t)
                for t in sorted(wheel.trades, key=lambda t: t.open_date, reverse=True)
            ],
            positions=[
                PositionResponse.model_validate(p)
                for p in sorted(wheel.positions, key=lambda p: p.acquired_date, reverse=True)
            ],
        )
        return ActionResult.ok(detail)

    @action_boundary("Failed to pause wheel")
    def pause_wheel(self, user_id: Optional[str], wheel_id: str) -> ActionResult:
        """Pause an ACTIVE wheel."""
        user_id = require_user(user_id)
        wheel_id = parse_id(wheel_id, "wheel")

        def work(db: Session) -> str:
            wheel = owned_or_raise(self.wheel_repo.get_wheel(wheel_id), user_id, "Wheel not found")
            if wheel.status != WheelStatus.ACTIVE.value:
                raise InvalidTransitionError(
                    wheel.status,
                    WheelStatus.PAUSED.value,
                    f"Cannot pause {wheel.status.lower()} wheel. "
                    "Only ACTIVE wheels can be paused.",
                )
            wheel.status = WheelStatus.PAUSED.value
            wheel.last_activity_at = datetime.utcnow()
            db.flush()
            return wheel.ticker

        ticker = run_in_transaction(self.db, work)
        logger.info(f"Paused wheel {wheel_id} on {ticker}")
        self._invalidate(wheel_id)
        return ActionResult.ok(WheelIdData(id=wheel_id))

    @action_boundary("Failed to complete wheel")
    def complete_wheel(self, user_id: Optional[str], wheel_id: str) -> ActionResult:
        """Mark an ACTIVE or PAUSED wheel as COMPLETED."""
        user_id = require_user(user_id)
        wheel_id = parse_id(wheel_id, "wheel")

        def work(db: Session) -> str:
            wheel = owned_or_raise(self.wheel_repo.get_wheel(wheel_id), user_id, "Wheel not found")
            if wheel.status == WheelStatus.COMPLETED.value:
                raise InvalidTransitionError(
                    wheel.status, WheelStatus.COMPLETED.value, "Wheel is already completed."
                )
            now = datetime.utcnow()
            wheel.status = WheelStatus.COMPLETED.value
            wheel.completed_at = now
            wheel.last_activity_at = now
            db.flush()
            return wheel.ticker

        ticker = run_in_transaction(self.db, work)
        logger.info(f"Completed wheel {wheel_id} on {ticker}")
        self._invalidate(wheel_id)
        return ActionResult.ok(WheelIdData(id=wheel_id))
