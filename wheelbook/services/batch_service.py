"""Service layer for batch expire and batch assign.

Both operations run in two phases. Phase one reads every requested trade
once and sorts the IDs into valid items and per-item errors without
writing anything. Phase two re-selects the valid IDs that are still OPEN
inside a single transaction and applies the change. Any trade whose status
moved between the phases becomes an error instead of being written, so
``success_count + failure_count`` always equals the number of IDs sent.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from wheelbook.database.models.trade import Trade
from wheelbook.database.session import run_in_transaction
from wheelbook.events import EXPIRATIONS_PATH, POSITIONS_PATH, EventPublisher, events, trade_paths
from wheelbook.exceptions import BusinessRuleError
from wheelbook.models.batch import (
    AssignedCallSummary,
    AssignedPutSummary,
    BatchAssignData,
    BatchAssignRequest,
    BatchExpireData,
    BatchExpireRequest,
    BatchItemError,
    ExpiredTradeSummary,
)
from wheelbook.models.common import ActionResult
from wheelbook.models.enums import OptionType, PositionStatus, TradeStatus
from wheelbook.repositories.trade import TradeRepository
from wheelbook.services.position_service import apply_call_assignment, apply_put_assignment
from wheelbook.services.results import action_boundary, require_user
from wheelbook.services.trade_state import apply_transition

logger = logging.getLogger(__name__)

DUPLICATE_ID = "Duplicate trade ID"
STATUS_CHANGED = "Trade is no longer OPEN"


class BatchService:
    """Service for applying one outcome to many trades at once.

    Attributes:
        db: SQLAlchemy database session
        trade_repo: Trade repository
        events: Publisher for cache invalidation signals
    """

    def __init__(self, db: Session, publisher: Optional[EventPublisher] = None):
        self.db = db
        self.trade_repo = TradeRepository(db)
        self.events = publisher or events

    def _screen(
        self, user_id: str, trade_ids: list[str], verb: str
    ) -> tuple[list[Trade], list[BatchItemError]]:
        """Phase one: split requested IDs into OPEN owned trades and errors."""
        found = self.trade_repo.get_trades_by_ids(trade_ids)
        valid: list[Trade] = []
        errors: list[BatchItemError] = []
        seen: set[str] = set()

        for trade_id in trade_ids:
            if trade_id in seen:
                errors.append(BatchItemError(trade_id=trade_id, error=DUPLICATE_ID))
                continue
            seen.add(trade_id)

            trade = found.get(trade_id)
            if trade is None:
                errors.append(BatchItemError(trade_id=trade_id, error="Trade not found"))
                continue
            if trade.user_id != user_id:
                errors.append(BatchItemError(trade_id=trade_id, error="Unauthorized"))
                continue
            if trade.status != TradeStatus.OPEN.value:
                errors.append(
                    BatchItemError(
                        trade_id=trade_id,
                        error=f"Cannot {verb} {trade.status.lower()} trade",
                    )
                )
                continue
            valid.append(trade)

        return valid, errors

    @action_boundary("Failed to batch expire trades")
    def batch_expire(self, user_id: Optional[str], trade_ids: list[str]) -> ActionResult:
        """Expire several OPEN trades in one transaction.

        Args:
            user_id: Caller identity
            trade_ids: 1 to ``settings.batch_expire_max`` trade IDs

        Returns:
            ActionResult with ``BatchExpireData``; fails with
            ``details={"errors": [...]}`` when no ID is valid

        Example:
            >>> service = BatchService(db)
            >>> result = service.batch_expire(user_id, [t1.id, t2.id])
            >>> result.data.success_count
            2
        """
        user_id = require_user(user_id)
        request = BatchExpireRequest(trade_ids=trade_ids)

        valid, errors = self._screen(user_id, request.trade_ids, "expire")
        if not valid:
            raise BusinessRuleError(
                "No valid trades to expire",
                details={"errors": [e.model_dump() for e in errors]},
            )
        valid_ids = [t.id for t in valid]

        def work(db: Session) -> list[ExpiredTradeSummary]:
            still_open = self.trade_repo.get_trades_by_ids(
                valid_ids, status=TradeStatus.OPEN.value
            )
            now = datetime.utcnow()
            expired = []
            for trade_id in valid_ids:
                trade = still_open.get(trade_id)
                if trade is None:
                    errors.append(BatchItemError(trade_id=trade_id, error=STATUS_CHANGED))
                    continue
                apply_transition(trade, TradeStatus.EXPIRED, now)
                expired.append(
                    ExpiredTradeSummary(
                        id=trade.id,
                        ticker=trade.ticker,
                        option_type=trade.option_type,
                        strike_price=trade.strike_price,
                    )
                )
            db.flush()
            return expired

        expired = run_in_transaction(self.db, work)
        logger.info(
            f"Batch expired {len(expired)} of {len(request.trade_ids)} trades "
            f"({len(errors)} errors)"
        )
        self.events.invalidate(*trade_paths(), POSITIONS_PATH, EXPIRATIONS_PATH)
        return ActionResult.ok(
            BatchExpireData(
                success_count=len(expired),
                failure_count=len(errors),
                expired_trades=expired,
                errors=errors,
            )
        )

    @action_boundary("Failed to batch assign trades")
    def batch_assign(self, user_id: Optional[str], trade_ids: list[str]) -> ActionResult:
        """Assign several OPEN trades in one transaction.

        PUTs create positions exactly as a single PUT assignment does;
        covered CALLs close their positions exactly as a single CALL
        assignment does.

        Args:
            user_id: Caller identity
            trade_ids: 1 to ``settings.batch_assign_max`` trade IDs

        Returns:
            ActionResult with ``BatchAssignData``; fails with
            ``details={"errors": [...]}`` when no ID is valid
        """
        user_id = require_user(user_id)
        request = BatchAssignRequest(trade_ids=trade_ids)

        candidates, errors = self._screen(user_id, request.trade_ids, "assign")
        valid: list[Trade] = []
        for trade in candidates:
            if trade.option_type == OptionType.CALL.value:
                position = trade.position
                if trade.position_id is None or position is None:
                    errors.append(
                        BatchItemError(
                            trade_id=trade.id, error="CALL must be linked to a position"
                        )
                    )
                    continue
                if position.status != PositionStatus.OPEN.value:
                    errors.append(
                        BatchItemError(
                            trade_id=trade.id,
                            error=f"Position is already {position.status.lower()}",
                        )
                    )
                    continue
            valid.append(trade)

        if not valid:
            raise BusinessRuleError(
                "No valid trades to assign",
                details={"errors": [e.model_dump() for e in errors]},
            )
        valid_ids = [t.id for t in valid]

        def work(db: Session) -> tuple[list[AssignedPutSummary], list[AssignedCallSummary]]:
            still_open = self.trade_repo.get_trades_by_ids(
                valid_ids, status=TradeStatus.OPEN.value
            )
            now = datetime.utcnow()
            puts, calls = [], []
            for trade_id in valid_ids:
                trade = still_open.get(trade_id)
                if trade is None:
                    errors.append(BatchItemError(trade_id=trade_id, error=STATUS_CHANGED))
                    continue

                if trade.option_type == OptionType.PUT.value:
                    try:
                        position = apply_put_assignment(db, trade, now)
                    except BusinessRuleError as e:
                        errors.append(BatchItemError(trade_id=trade_id, error=e.message))
                        continue
                    puts.append(
                        AssignedPutSummary(
                            trade_id=trade.id,
                            position_id=position.id,
                            ticker=trade.ticker,
                            shares=position.shares,
                            cost_basis=position.cost_basis,
                        )
                    )
                    continue

                position = trade.position
                if position is None or position.status != PositionStatus.OPEN.value:
                    # Another CALL in this batch already closed the position
                    status = position.status.lower() if position else "missing"
                    errors.append(
                        BatchItemError(trade_id=trade_id, error=f"Position is already {status}")
                    )
                    continue
                realized = apply_call_assignment(db, trade, position, now)
                calls.append(
                    AssignedCallSummary(
                        trade_id=trade.id,
                        position_id=position.id,
                        ticker=trade.ticker,
                        realized_gain_loss=realized,
                    )
                )
            return puts, calls

        puts, calls = run_in_transaction(self.db, work)
        success_count = len(puts) + len(calls)
        logger.info(
            f"Batch assigned {success_count} of {len(request.trade_ids)} trades: "
            f"{len(puts)} PUTs, {len(calls)} CALLs ({len(errors)} errors)"
        )
        self.events.invalidate(*trade_paths(), POSITIONS_PATH, EXPIRATIONS_PATH)
        return ActionResult.ok(
            BatchAssignData(
                success_count=success_count,
                failure_count=len(errors),
                assigned_puts=puts,
                assigned_calls=calls,
                errors=errors,
            )
        )
