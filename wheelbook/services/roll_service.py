"""Service layer for rolling options.

A roll buys back an OPEN short option and sells a new one on the same
underlying, usually at a later expiration. Both legs and the closing of
the original are written in one transaction.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.session import run_in_transaction
from wheelbook.events import POSITIONS_PATH, EventPublisher, events, trade_paths
from wheelbook.exceptions import BusinessRuleError, InvalidTransitionError
from wheelbook.models.common import ActionResult
from wheelbook.models.enums import TradeAction, TradeStatus
from wheelbook.models.trade import RollOptionData, RollOptionRequest
from wheelbook.repositories.trade import TradeRepository
from wheelbook.repositories.wheel import WheelRepository
from wheelbook.services import assignment_calculator as calc
from wheelbook.services.results import action_boundary, owned_or_raise, parse_id, require_user
from wheelbook.services.trade_state import apply_transition

logger = logging.getLogger(__name__)


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


class RollService:
    """Service for rolling an OPEN option to a new strike or expiration.

    Attributes:
        db: SQLAlchemy database session
        trade_repo: Trade repository
        wheel_repo: Wheel repository
        events: Publisher for cache invalidation signals
    """

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.trade_repo = TradeRepository(db)
        self.wheel_repo = WheelRepository(db)
        self.events = publisher or events

    @action_boundary("Failed to roll option")
    def roll_option(
        self,
        user_id: Optional[str],
        original_trade_id: str,
        new_expiration_date,
        new_strike_price,
        new_premium,
        close_premium,
        notes: Optional[str] = None,
    ) -> ActionResult:
        """Roll an OPEN SELL_TO_OPEN option.

        The original is marked CLOSED with a roll annotation, a CLOSED
        BUY_TO_CLOSE leg records the buyback, and a new OPEN SELL_TO_OPEN
        leg carries the new terms. Both legs point back at the original and
        inherit its position and wheel links. Rolls do not count against
        the free-tier trade limit.

        Args:
            user_id: Caller identity
            original_trade_id: Trade being rolled
            new_expiration_date: Expiration of the new option, in the future
            new_strike_price: Strike of the new option
            new_premium: Premium collected for the new option
            close_premium: Premium paid to buy back the original
            notes: Optional notes recorded on both legs

        Returns:
            ActionResult with ``RollOptionData``

        Example:
            >>> service = RollService(db)
            >>> result = service.roll_option(
            >>>     user_id, trade.id, date(2026, 4, 17),
            >>>     Decimal("145"), Decimal("300"), Decimal("100"),
            >>> )
            >>> result.data.net_credit
            Decimal('200')
        """
        user_id = require_user(user_id)
        original_trade_id = parse_id(original_trade_id)
        request = RollOptionRequest(
            new_expiration_date=new_expiration_date,
            new_strike_price=new_strike_price,
            new_premium=new_premium,
            close_premium=close_premium,
            notes=notes,
        )
        net_credit = calc.roll_net_credit(request.new_premium, request.close_premium)

        def work(db: Session) -> tuple[str, str]:
            original = owned_or_raise(
                self.trade_repo.get_trade(original_trade_id),
                user_id,
                "Original trade not found",
            )
            if original.status != TradeStatus.OPEN.value:
                raise InvalidTransitionError(
                    original.status,
                    TradeStatus.CLOSED.value,
                    f"Cannot roll {original.status.lower()} trade. "
                    "Only OPEN trades can be rolled.",
                )
            if original.action != TradeAction.SELL_TO_OPEN.value:
                raise BusinessRuleError("Can only roll SELL_TO_OPEN trades")

            now = datetime.utcnow()
            apply_transition(original, TradeStatus.CLOSED, now)
            original.notes = _append_note(
                original.notes,
                calc.format_roll_note(
                    request.new_expiration_date, request.new_strike_price, net_credit
                ),
            )

            close_leg = self.trade_repo.create_trade(
                user_id=user_id,
                ticker=original.ticker,
                option_type=original.option_type,
                action=TradeAction.BUY_TO_CLOSE.value,
                status=TradeStatus.CLOSED.value,
                strike_price=original.strike_price,
                premium=calc.quantize_money(request.close_premium),
                contracts=original.contracts,
                shares=original.shares,
                expiration_date=original.expiration_date,
                open_date=now,
                close_date=now,
                notes=f"Roll close: {request.notes}" if request.notes else "Closed as part of roll",
                position_id=original.position_id,
                wheel_id=original.wheel_id,
                roll_from_trade_id=original.id,
            )
            open_leg = self.trade_repo.create_trade(
                user_id=user_id,
                ticker=original.ticker,
                option_type=original.option_type,
                action=TradeAction.SELL_TO_OPEN.value,
                status=TradeStatus.OPEN.value,
                strike_price=calc.quantize_money(request.new_strike_price),
                premium=calc.quantize_money(request.new_premium),
                contracts=original.contracts,
                shares=original.shares,
                expiration_date=request.new_expiration_date,
                open_date=now,
                notes=f"Roll open: {request.notes}" if request.notes else "Opened as part of roll",
                position_id=original.position_id,
                wheel_id=original.wheel_id,
                roll_from_trade_id=original.id,
            )
            self.wheel_repo.touch_activity(original.wheel_id, now)
            return close_leg.id, open_leg.id

        close_id, open_id = run_in_transaction(self.db, work)
        logger.info(
            f"Rolled trade {original_trade_id}: closed via {close_id}, "
            f"reopened as {open_id}, net credit ${calc.quantize_money(net_credit)}"
        )
        self.events.invalidate(
            *trade_paths(original_trade_id, close_id, open_id), POSITIONS_PATH
        )
        return ActionResult.ok(
            RollOptionData(close_trade_id=close_id, open_trade_id=open_id, net_credit=net_credit)
        )
