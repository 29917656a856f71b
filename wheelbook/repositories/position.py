"""Repository for stock position data access operations."""

import logging
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from wheelbook.database.models.position import Position

logger = logging.getLogger(__name__)


class PositionRepository:
    """Repository for position data access.

    Attributes:
        db: SQLAlchemy database session
    """

    def __init__(self, db: Session):
        self.db = db

    def get_position(self, position_id: str, with_calls: bool = False) -> Optional[Position]:
        """Get position by ID.

        Args:
            position_id: Position identifier
            with_calls: Eager-load the covered calls

        Returns:
            Position instance if found, None otherwise
        """
        query = self.db.query(Position)
        if with_calls:
            query = query.options(selectinload(Position.covered_calls))
        return query.filter(Position.id == position_id).first()

    def get_by_assignment_trade(self, trade_id: str) -> Optional[Position]:
        """Get the position created by assigning a PUT."""
        return (
            self.db.query(Position)
            .filter(Position.assignment_trade_id == trade_id)
            .first()
        )

    def list_positions(self, user_id: str, status: Optional[str] = None) -> list[Position]:
        """List a user's positions, newest first.

        Args:
            user_id: Owning user
            status: Filter by status if provided

        Returns:
            List of positions with covered calls loaded
        """
        query = (
            self.db.query(Position)
            .options(selectinload(Position.covered_calls))
            .filter(Position.user_id == user_id)
        )
        if status is not None:
            query = query.filter(Position.status == status)
        return query.order_by(Position.acquired_date.desc()).all()

    def create_position(self, **fields) -> Position:
        """Add a new position to the session and flush it."""
        position = Position(**fields)
        self.db.add(position)
        self.db.flush()
        logger.debug(
            f"Added position: {position.id} - {position.ticker} "
            f"{position.shares} shares @ ${position.cost_basis}"
        )
        return position
