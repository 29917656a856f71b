"""Repository for trade data access operations.

This module provides data access methods for trades. Methods add and
flush but never commit; the calling service owns the transaction.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from wheelbook.database.models.trade import Trade
from wheelbook.models.enums import OptionType, TradeStatus

logger = logging.getLogger(__name__)


class TradeRepository:
    """Repository for trade data access.

    Attributes:
        db: SQLAlchemy database session
    """

    def __init__(self, db: Session):
        """Initialize trade repository.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        """Get trade by ID.

        Args:
            trade_id: Trade identifier

        Returns:
            Trade instance if found, None otherwise

        Example:
            >>> repo = TradeRepository(db)
            >>> trade = repo.get_trade("0b6e...")
        """
        return self.db.query(Trade).filter(Trade.id == trade_id).first()

    def get_trades_by_ids(
        self, trade_ids: Iterable[str], status: Optional[str] = None
    ) -> dict[str, Trade]:
        """Load several trades in one query.

        Args:
            trade_ids: Trade identifiers
            status: Only return trades currently in this status

        Returns:
            Trades keyed by ID; missing IDs are absent
        """
        ids = list(trade_ids)
        if not ids:
            return {}
        query = self.db.query(Trade).filter(Trade.id.in_(ids))
        if status is not None:
            query = query.filter(Trade.status == status)
        return {trade.id: trade for trade in query.all()}

    def list_trades(
        self,
        user_id: str,
        status: Optional[str] = None,
        ticker: Optional[str] = None,
    ) -> list[Trade]:
        """List a user's trades with optional filtering.

        Args:
            user_id: Owning user
            status: Filter by status if provided
            ticker: Filter by ticker if provided

        Returns:
            List of trades ordered by open date descending
        """
        query = self.db.query(Trade).filter(Trade.user_id == user_id)

        if status is not None:
            query = query.filter(Trade.status == status)
        if ticker is not None:
            query = query.filter(Trade.ticker == ticker.upper())

        return query.order_by(Trade.open_date.desc()).all()

    def count_trades_for_user(self, user_id: str) -> int:
        """Count every trade row owned by a user, regardless of status."""
        return (
            self.db.query(func.count(Trade.id)).filter(Trade.user_id == user_id).scalar()
            or 0
        )

    def has_open_call(self, position_id: str) -> bool:
        """Whether an OPEN CALL is written against the position."""
        return (
            self.db.query(Trade.id)
            .filter(
                Trade.position_id == position_id,
                Trade.option_type == OptionType.CALL.value,
                Trade.status == TradeStatus.OPEN.value,
            )
            .first()
            is not None
        )

    def list_calls_for_position(self, position_id: str) -> list[Trade]:
        """All CALL trades linked to a position, oldest first."""
        return (
            self.db.query(Trade)
            .filter(
                Trade.position_id == position_id,
                Trade.option_type == OptionType.CALL.value,
            )
            .order_by(Trade.open_date.asc())
            .all()
        )

    def create_trade(self, **fields) -> Trade:
        """Add a new trade to the session and flush it.

        Args:
            **fields: Trade column values

        Returns:
            Created trade instance with its ID assigned
        """
        trade = Trade(**fields)
        self.db.add(trade)
        self.db.flush()
        logger.debug(
            f"Added trade: {trade.id} - {trade.ticker} {trade.option_type} "
            f"{trade.action} ${trade.strike_price} x {trade.contracts}"
        )
        return trade

    def delete_trade(self, trade: Trade) -> None:
        """Delete a trade and flush."""
        self.db.delete(trade)
        self.db.flush()
