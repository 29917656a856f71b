"""Service layer for stock position operations.

This module provides the business logic that creates positions from PUT
assignment, closes them through CALL assignment or a manual sale, and
serves position reads and updates. The assignment steps are exposed as
module-level functions so batch assignment can apply exactly the same
rules inside its own transaction.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.models.position import Position
from wheelbook.database.models.trade import Trade
from wheelbook.database.session import run_in_transaction
from wheelbook.events import POSITIONS_PATH, EventPublisher, events, trade_paths
from wheelbook.exceptions import BusinessRuleError, InvalidTransitionError, ValidationFailed
from wheelbook.models.common import ActionResult
from wheelbook.models.enums import OptionType, PositionStatus, TradeStatus
from wheelbook.models.position import (
    AssignCallData,
    AssignPutData,
    ClosePositionData,
    ClosePositionRequest,
    PositionDetailResponse,
    PositionIdData,
    PositionResponse,
    PositionUpdate,
)
from wheelbook.repositories.position import PositionRepository
from wheelbook.repositories.trade import TradeRepository
from wheelbook.repositories.wheel import WheelRepository
from wheelbook.services import assignment_calculator as calc
from wheelbook.services.results import action_boundary, owned_or_raise, parse_id, require_user
from wheelbook.services.trade_state import apply_transition

logger = logging.getLogger(__name__)

PUT_REQUIRED = "Trade must be a PUT to create a position"
CALL_REQUIRED = "Trade must be a CALL to close a position"
CALL_NOT_LINKED = "Trade is not linked to a position. CALL must be a covered call."
POSITION_EXISTS = "Trade already has a position"


def _check_open_for_assignment(trade: Trade) -> None:
    if trade.status != TradeStatus.OPEN.value:
        raise InvalidTransitionError(
            trade.status,
            TradeStatus.ASSIGNED.value,
            f"Cannot assign {trade.status.lower()} trade. "
            "Only OPEN trades can be assigned.",
        )


def check_put_assignable(trade: Trade) -> None:
    """Raise unless ``trade`` is an OPEN PUT.

    Raises:
        BusinessRuleError: If the trade is not a PUT
        InvalidTransitionError: If the trade is not OPEN
    """
    if trade.option_type != OptionType.PUT.value:
        raise BusinessRuleError(PUT_REQUIRED)
    _check_open_for_assignment(trade)


def check_call_assignable(trade: Trade) -> Position:
    """Raise unless ``trade`` is an OPEN covered CALL on an OPEN position.

    Returns:
        The position the CALL is written against

    Raises:
        BusinessRuleError: If the trade is not a linked CALL or the position is closed
        InvalidTransitionError: If the trade is not OPEN
    """
    if trade.option_type != OptionType.CALL.value:
        raise BusinessRuleError(CALL_REQUIRED)
    _check_open_for_assignment(trade)
    position = trade.position
    if trade.position_id is None or position is None:
        raise BusinessRuleError(CALL_NOT_LINKED)
    if position.status != PositionStatus.OPEN.value:
        raise BusinessRuleError(f"Position is already {position.status.lower()}")
    return position


def apply_put_assignment(
    db: Session, trade: Trade, at: Optional[datetime] = None
) -> Position:
    """Mark a PUT assigned and create the stock position it produces.

    The caller must have run ``check_put_assignable`` and owns the
    transaction.

    Args:
        db: SQLAlchemy session inside an open transaction
        trade: OPEN PUT trade
        at: Assignment time, defaults to now

    Returns:
        Newly created OPEN position

    Raises:
        BusinessRuleError: If a position already points at the trade
    """
    positions = PositionRepository(db)
    if positions.get_by_assignment_trade(trade.id) is not None:
        raise BusinessRuleError(POSITION_EXISTS)
    at = at or datetime.utcnow()
    # Both values are rounded from the exact result, not from each other
    cost_basis, total_cost = calc.put_cost_basis(
        Decimal(trade.strike_price), Decimal(trade.premium), trade.shares
    )
    apply_transition(trade, TradeStatus.ASSIGNED, at)
    position = positions.create_position(
        user_id=trade.user_id,
        ticker=trade.ticker,
        shares=trade.shares,
        cost_basis=calc.quantize_basis(cost_basis),
        total_cost=calc.quantize_money(total_cost),
        status=PositionStatus.OPEN.value,
        acquired_date=at,
        assignment_trade_id=trade.id,
        wheel_id=trade.wheel_id,
    )
    WheelRepository(db).touch_activity(trade.wheel_id, at)
    return position


def apply_call_assignment(
    db: Session, trade: Trade, position: Position, at: Optional[datetime] = None
) -> Decimal:
    """Mark a covered CALL assigned and close its position.

    Args:
        db: SQLAlchemy session inside an open transaction
        trade: OPEN CALL trade linked to ``position``
        position: OPEN position the shares are called away from
        at: Assignment time, defaults to now

    Returns:
        Realized gain/loss written to the position, rounded to cents
    """
    at = at or datetime.utcnow()
    realized = calc.quantize_money(
        calc.call_realized_gain_loss(
            Decimal(trade.strike_price),
            position.shares,
            Decimal(position.assignment_trade.premium),
            Decimal(trade.premium),
            Decimal(position.total_cost),
        )
    )
    apply_transition(trade, TradeStatus.ASSIGNED, at)
    position.status = PositionStatus.CLOSED.value
    position.closed_date = at
    position.realized_gain_loss = realized
    db.flush()
    WheelRepository(db).touch_activity(trade.wheel_id, at)
    return realized


class PositionService:
    """Service for stock position business logic.

    Attributes:
        db: SQLAlchemy database session
        trade_repo: Trade repository
        position_repo: Position repository
        events: Publisher for cache invalidation signals
    """

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None):
        """Initialize position service.

        Args:
            db: SQLAlchemy database session
            publisher: Event publisher, defaults to the global one
        """
        self.db = db
        self.trade_repo = TradeRepository(db)
        self.position_repo = PositionRepository(db)
        self.events = publisher or events

    @action_boundary("Failed to assign PUT")
    def assign_put(self, user_id: Optional[str], trade_id: str) -> ActionResult:
        """Assign a PUT and create the resulting stock position.

        Args:
            user_id: Caller identity
            trade_id: PUT trade identifier

        Returns:
            ActionResult with ``AssignPutData``

        Example:
            >>> service = PositionService(db)
            >>> result = service.assign_put(user_id, put.id)
            >>> result.data.position_id
        """
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)

        def work(db: Session) -> Position:
            trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
            check_put_assignable(trade)
            return apply_put_assignment(db, trade)

        position = run_in_transaction(self.db, work)
        logger.info(
            f"Assigned PUT {trade_id}: position {position.id} "
            f"{position.shares} {position.ticker} @ ${position.cost_basis}"
        )
        self.events.invalidate(*trade_paths(trade_id), POSITIONS_PATH)
        return ActionResult.ok(AssignPutData(position_id=position.id, trade_id=trade_id))

    @action_boundary("Failed to assign CALL")
    def assign_call(self, user_id: Optional[str], trade_id: str) -> ActionResult:
        """Assign a covered CALL, calling the shares away and closing the position.

        Args:
            user_id: Caller identity
            trade_id: CALL trade identifier

        Returns:
            ActionResult with ``AssignCallData``
        """
        user_id = require_user(user_id)
        trade_id = parse_id(trade_id)

        def work(db: Session) -> tuple[str, Decimal]:
            trade = owned_or_raise(self.trade_repo.get_trade(trade_id), user_id, "Trade not found")
            position = check_call_assignable(trade)
            realized = apply_call_assignment(db, trade, position)
            return position.id, realized

        position_id, realized = run_in_transaction(self.db, work)
        logger.info(f"Assigned CALL {trade_id}: position {position_id} closed, P&L ${realized}")
        self.events.invalidate(
            *trade_paths(trade_id), POSITIONS_PATH, f"{POSITIONS_PATH}/{position_id}"
        )
        return ActionResult.ok(
            AssignCallData(
                position_id=position_id, trade_id=trade_id, realized_gain_loss=realized
            )
        )

    @action_boundary("Failed to close position")
    def close_position(
        self, user_id: Optional[str], position_id: str, closing_price
    ) -> ActionResult:
        """Sell a position's shares outright at ``closing_price`` per share.

        Realized P&L folds in the PUT premium and the net covered-call
        premiums collected while the shares were held.

        Args:
            user_id: Caller identity
            position_id: Position identifier
            closing_price: Sale price per share, must be positive

        Returns:
            ActionResult with ``ClosePositionData``
        """
        user_id = require_user(user_id)
        position_id = parse_id(position_id, "position")
        request = ClosePositionRequest(closing_price=closing_price)

        def work(db: Session) -> Decimal:
            position = owned_or_raise(
                self.position_repo.get_position(position_id), user_id, "Position not found"
            )
            if position.status != PositionStatus.OPEN.value:
                raise BusinessRuleError(f"Position is already {position.status.lower()}")
            if self.trade_repo.has_open_call(position.id):
                raise BusinessRuleError(
                    "Position has an open covered call. Close or assign it first."
                )

            calls = self.trade_repo.list_calls_for_position(position.id)
            realized = calc.quantize_money(
                calc.manual_close_realized(
                    request.closing_price,
                    position.shares,
                    Decimal(position.assignment_trade.premium),
                    calls,
                    Decimal(position.total_cost),
                )
            )
            now = datetime.utcnow()
            position.status = PositionStatus.CLOSED.value
            position.closed_date = now
            position.realized_gain_loss = realized
            position.current_value = calc.quantize_money(
                request.closing_price * position.shares
            )
            db.flush()
            WheelRepository(db).touch_activity(position.wheel_id, now)
            return realized

        realized = run_in_transaction(self.db, work)
        logger.info(f"Closed position {position_id} manually, P&L ${realized}")
        self.events.invalidate(POSITIONS_PATH, f"{POSITIONS_PATH}/{position_id}")
        return ActionResult.ok(
            ClosePositionData(position_id=position_id, realized_gain_loss=realized)
        )

    @action_boundary("Failed to fetch positions")
    def get_positions(
        self, user_id: Optional[str], status: Optional[str] = None
    ) -> ActionResult:
        """List the caller's positions, optionally filtered by status."""
        user_id = require_user(user_id)
        if status is not None:
            try:
                status = PositionStatus(status.upper()).value
            except ValueError as e:
                raise ValidationFailed(f"Invalid position status: {status}") from e
        positions = self.position_repo.list_positions(user_id, status)
        return ActionResult.ok([PositionResponse.model_validate(p) for p in positions])

    @action_boundary("Failed to fetch position")
    def get_position(self, user_id: Optional[str], position_id: str) -> ActionResult:
        """Get one position with its assignment trade and covered calls."""
        user_id = require_user(user_id)
        position_id = parse_id(position_id, "position")
        position = owned_or_raise(
            self.position_repo.get_position(position_id, with_calls=True),
            user_id,
            "Position not found",
        )
        return ActionResult.ok(PositionDetailResponse.model_validate(position))

    @action_boundary("Failed to update position")
    def update_position(
        self,
        user_id: Optional[str],
        position_id: str,
        notes: Optional[str] = None,
        current_value=None,
    ) -> ActionResult:
        """Update a position's notes or market value.

        Cost basis, total cost, and share count are never touched.
        """
        user_id = require_user(user_id)
        position_id = parse_id(position_id, "position")
        update = PositionUpdate(notes=notes, current_value=current_value)

        def work(db: Session) -> None:
            position = owned_or_raise(
                self.position_repo.get_position(position_id), user_id, "Position not found"
            )
            for field, value in update.model_dump(exclude_none=True).items():
                setattr(position, field, value)
            db.flush()

        run_in_transaction(self.db, work)
        logger.info(f"Updated position {position_id}")
        self.events.invalidate(POSITIONS_PATH, f"{POSITIONS_PATH}/{position_id}")
        return ActionResult.ok(PositionIdData(id=position_id))
