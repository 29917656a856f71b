"""Service layer for option trade operations.

This module provides business logic for recording trades under the
free-tier limit, closing options early, expiring and deleting them, and
reading trade history and usage.
"""

import logging
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.models.trade import Trade
from wheelbook.database.session import run_in_transaction
from wheelbook.events import POSITIONS_PATH, EventPublisher, events, trade_paths
from wheelbook.exceptions import BusinessRuleError, NotFoundError, ValidationFailed
from wheelbook.models.common import ActionResult, ErrorType
from wheelbook.models.enums import OptionType, PositionStatus, TradeStatus
from wheelbook.models.trade import (
    CloseOptionData,
    CloseOptionRequest,
    TradeCreate,
    TradeIdData,
    TradeResponse,
)
from wheelbook.repositories.position import PositionRepository
from wheelbook.repositories.trade import TradeRepository
from wheelbook.repositories.user import UserRepository
from wheelbook.repositories.wheel import WheelRepository
from wheelbook.services import assignment_calculator as calc
from wheelbook.services.results import action_boundary, owned_or_raise, parse_id, require_user
from wheelbook.services.trade_limit import LIMIT_REACHED_ERROR, LimitReached, TradeLimitGuard
from wheelbook.services.trade_state import apply_transition

logger = logging.getLogger(__name__)


class TradeService:
    """Service for trade business logic.

    Attributes:
        db: SQLAlchemy database session
        trade_repo: Trade repository
        position_repo: Position repository
        user_repo: User repository
        wheel_repo: Wheel repository
        limit_guard: Free-tier limit guard used on creation
        events: Publisher for cache and analytics signals
    """

    def __init__(
        self,
        db: Session,
        limit_guard: Optional[TradeLimitGuard] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        """Initialize trade service.

        Args:
            db: SQLAlchemy database session
            limit_guard: Limit guard, defaults to one using configured settings
            publisher: Event publisher, defaults to the global one
        """
        self.db = db
        self.trade_repo = TradeRepository(db)
        self.position_repo = PositionRepository(db)
        self.user_repo = UserRepository(db)
        self.wheel_repo = WheelRepository(db)
        self.limit_guard = limit_guard or TradeLimitGuard(db)
        self.events = publisher or events

    @action_boundary("Failed to create trade. Please try again.")
    def create_trade(
        self,
        user_id: Optional[str],
        ticker: str,
        option_type: str,
        action: str,
        strike_price,
        premium,
        contracts: int,
        expiration_date,
        open_date=None,
        notes: Optional[str] = None,
        position_id: Optional[str] = None,
        wheel_id: Optional[str] = None,
    ) -> ActionResult:
        """Record a new OPEN trade, subject to the free-tier trade limit.

        Covered-call linkage is checked inside the same serializable
        transaction as the limit count, so a position can never end up
        with two OPEN calls.

        Args:
            user_id: Caller identity
            ticker: Stock ticker symbol
            option_type: "PUT" or "CALL"
            action: "SELL_TO_OPEN" or "BUY_TO_CLOSE"
            strike_price: Strike price per share
            premium: Total premium
            contracts: Number of contracts
            expiration_date: Expiration date
            open_date: Entry date, defaults to today
            notes: Optional notes
            position_id: Position a covered CALL is written against
            wheel_id: Wheel to link the trade to

        Returns:
            ActionResult with ``TradeIdData``, or the limit error with
            ``details={"trades_used", "trade_limit"}``

        Example:
            >>> service = TradeService(db)
            >>> result = service.create_trade(
            >>>     user_id, "AAPL", "PUT", "SELL_TO_OPEN",
            >>>     Decimal("150"), Decimal("250"), 1, date(2026, 3, 20),
            >>> )
        """
        user_id = require_user(user_id, "Unauthorized. Please sign in to create trades.")
        payload = TradeCreate(
            ticker=ticker,
            option_type=option_type,
            action=action,
            strike_price=strike_price,
            premium=premium,
            contracts=contracts,
            expiration_date=expiration_date,
            open_date=open_date,
            notes=notes,
            position_id=parse_id(position_id, "position") if position_id else None,
            wheel_id=parse_id(wheel_id, "wheel") if wheel_id else None,
        )
        user = self.user_repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")

        def build(db: Session) -> Trade:
            if payload.wheel_id is not None:
                owned_or_raise(
                    self.wheel_repo.get_wheel(payload.wheel_id), user_id, "Wheel not found"
                )
            if payload.position_id is not None:
                self._check_covered_call(user_id, payload)
            opened = (
                datetime.combine(payload.open_date, time())
                if payload.open_date
                else datetime.utcnow()
            )
            trade = self.trade_repo.create_trade(
                user_id=user_id,
                ticker=payload.ticker,
                option_type=payload.option_type.value,
                action=payload.action.value,
                status=TradeStatus.OPEN.value,
                strike_price=calc.quantize_money(payload.strike_price),
                premium=calc.quantize_money(payload.premium),
                contracts=payload.contracts,
                shares=calc.shares_for(payload.contracts),
                expiration_date=payload.expiration_date,
                open_date=opened,
                notes=payload.notes,
                position_id=payload.position_id,
                wheel_id=payload.wheel_id,
            )
            self.wheel_repo.touch_activity(payload.wheel_id, opened)
            return trade

        outcome = self.limit_guard.create_within_limit(user, build)
        if isinstance(outcome, LimitReached):
            limit = self.limit_guard.limit
            self.events.trade_limit_reached(user_id, outcome.trades_used, limit)
            return ActionResult.fail(
                LIMIT_REACHED_ERROR,
                ErrorType.BUSINESS_RULE,
                {"trades_used": outcome.trades_used, "trade_limit": limit},
            )

        trade_id = outcome.trade.id
        logger.info(
            f"Created trade {trade_id}: {payload.ticker} {payload.option_type.value} "
            f"{payload.action.value} ${payload.strike_price} x {payload.contracts}"
        )
        paths = trade_paths()
        if payload.position_id is not None:
            paths.append(POSITIONS_PATH)
        self.events.invalidate(*paths)
        return ActionResult.ok(TradeIdData(id=trade_id))

    def _check_covered_call(self, user_id: str, payload: TradeCreate) -> None:
        """Raise unless the new trade may be written against its position."""
        position = owned_or_raise(
            self.position_repo.get_position(payload.position_id), user_id, "Position not found"
        )
        if position.status != PositionStatus.OPEN.value:
            raise BusinessRuleError(f"Position is already {position.status.lower()}")
        if payload.option_type != OptionType.CALL:
            raise BusinessRuleError("Only CALL trades can be linked to a position")
        if position.ticker != payload.ticker:
            raise BusinessRuleError(
                f"Position ticker {position.ticker} does not match trade ticker {payload.ticker}"
            )
        if calc.shares_for(payload.contracts) > position.shares:
            raise BusinessRuleError(
                f"Position holds {position.shares} shares, not enough to cover "
                f"{payload.contracts} contracts"
            )
        if self.trade_repo.has_open_call(position.id):
            raise BusinessRuleError("Position already has an open covered call")

    @action_boundary("Failed to fetch trade")
    def get_trade(self, user_id: Optional[str], trade_id: str) -> ActionResult:
        """Get one of the caller's trades."""
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)
        trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
        return ActionResult.ok(TradeResponse.model_validate(trade))

    @action_boundary("Failed to fetch trades")
    def list_trades(
        self,
        user_id: Optional[str],
        status: Optional[str] = None,
        ticker: Optional[str] = None,
    ) -> ActionResult:
        """List the caller's trades, newest first.

        Args:
            user_id: Caller identity
            status: Filter by status if provided
            ticker: Filter by ticker if provided

        Returns:
            ActionResult with a list of ``TradeResponse``
        """
        user_id = require_user(user_id)
        if status is not None:
            try:
                status = TradeStatus(status.upper()).value
            except ValueError as e:
                raise ValidationFailed(f"Invalid trade status: {status}") from e
        trades = self.trade_repo.list_trades(user_id, status=status, ticker=ticker)
        return ActionResult.ok([TradeResponse.model_validate(t) for t in trades])

    @action_boundary("Failed to close option")
    def close_option(
        self, user_id: Optional[str], trade_id: str, close_premium
    ) -> ActionResult:
        """Buy back an OPEN option before expiration.

        A closed CALL frees its position for a new covered call.

        Args:
            user_id: Caller identity
            trade_id: Trade identifier
            close_premium: Total premium paid to close, zero or more

        Returns:
            ActionResult with ``CloseOptionData``
        """
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)
        request = CloseOptionRequest(close_premium=close_premium)

        def work(db: Session) -> Decimal:
            trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
            net_pl = calc.quantize_money(
                calc.early_close_net_pl(Decimal(trade.premium), request.close_premium)
            )
            apply_transition(trade, TradeStatus.CLOSED)
            trade.close_premium = calc.quantize_money(request.close_premium)
            trade.realized_gain_loss = net_pl
            db.flush()
            self.wheel_repo.touch_activity(trade.wheel_id, trade.close_date)
            return net_pl

        net_pl = run_in_transaction(self.db, work)
        logger.info(f"Closed trade {trade_id} early, net P&L ${net_pl}")
        self.events.invalidate(*trade_paths(trade_id), POSITIONS_PATH)
        return ActionResult.ok(CloseOptionData(id=trade_id, net_pl=net_pl))

    @action_boundary("Failed to expire trade")
    def expire_trade(self, user_id: Optional[str], trade_id: str) -> ActionResult:
        """Mark an OPEN option as expired worthless."""
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)

        def work(db: Session) -> None:
            trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
            apply_transition(trade, TradeStatus.EXPIRED)
            db.flush()
            self.wheel_repo.touch_activity(trade.wheel_id, trade.close_date)

        run_in_transaction(self.db, work)
        logger.info(f"Expired trade {trade_id}")
        self.events.invalidate(*trade_paths(trade_id), POSITIONS_PATH)
        return ActionResult.ok(TradeIdData(id=trade_id))

    @action_boundary("Failed to delete trade")
    def delete_trade(self, user_id: Optional[str], trade_id: str) -> ActionResult:
        """Delete an OPEN trade. Trades with an outcome are kept as history."""
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)

        def work(db: Session) -> None:
            trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
            if trade.status != TradeStatus.OPEN.value:
                raise BusinessRuleError("Only OPEN trades can be deleted")
            self.trade_repo.delete_trade(trade)

        run_in_transaction(self.db, work)
        logger.info(f"Deleted trade {trade_id}")
        self.events.invalidate(*trade_paths(trade_id))
        return ActionResult.ok(TradeIdData(id=trade_id))

    @action_boundary("Failed to get trade usage")
    def get_trade_usage(self, user_id: Optional[str]) -> ActionResult:
        """Lifetime trade usage against the caller's tier limit."""
        user_id = require_user(user_id, "Unauthorized. Please log in.")
        user = self.user_repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return ActionResult.ok(self.limit_guard.usage(user))
