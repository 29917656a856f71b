"""Repository for wheel data access operations."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from wheelbook.database.models.wheel import Wheel
from wheelbook.models.enums import WheelStatus

logger = logging.getLogger(__name__)


class WheelRepository:
    """Repository for wheel data access.

    Attributes:
        db: SQLAlchemy database session
    """

    def __init__(self, db: Session):
        self.db = db

    def get_wheel(self, wheel_id: str) -> Optional[Wheel]:
        """Get wheel by ID."""
        return self.db.query(Wheel).filter(Wheel.id == wheel_id).first()

    def get_wheel_with_records(self, wheel_id: str) -> Optional[Wheel]:
        """Get wheel by ID with its trades and positions loaded."""
        return (
            self.db.query(Wheel)
            .options(selectinload(Wheel.trades), selectinload(Wheel.positions))
            .filter(Wheel.id == wheel_id)
            .first()
        )

    def list_wheels(
        self,
        user_id: str,
        status: Optional[str] = None,
        ticker: Optional[str] = None,
    ) -> list[Wheel]:
        """List a user's wheels.

        Ordered by status, then most recent activity first.

        Args:
            user_id: Owning user
            status: Filter by status if provided
            ticker: Filter by ticker if provided

        Returns:
            List of wheels with trades and positions loaded
        """
        query = (
            self.db.query(Wheel)
            .options(selectinload(Wheel.trades), selectinload(Wheel.positions))
            .filter(Wheel.user_id == user_id)
        )
        if status is not None:
            query = query.filter(Wheel.status == status)
        if ticker is not None:
            query = query.filter(Wheel.ticker == ticker.upper())
        return query.order_by(Wheel.status.asc(), Wheel.last_activity_at.desc()).all()

    def get_active_for_ticker(self, user_id: str, ticker: str) -> Optional[Wheel]:
        """Get the user's ACTIVE wheel on a ticker, if any."""
        return (
            self.db.query(Wheel)
            .filter(
                Wheel.user_id == user_id,
                Wheel.ticker == ticker.upper(),
                Wheel.status == WheelStatus.ACTIVE.value,
            )
            .first()
        )

    def create_wheel(self, user_id: str, ticker: str, **fields) -> Wheel:
        """Add a new wheel to the session and flush it."""
        wheel = Wheel(user_id=user_id, ticker=ticker.upper(), **fields)
        self.db.add(wheel)
        self.db.flush()
        return wheel

    def touch_activity(self, wheel_id: Optional[str], at: Optional[datetime] = None) -> None:
        """Refresh a wheel's last activity timestamp.

        Does nothing when ``wheel_id`` is None or the wheel no longer exists.

        Args:
            wheel_id: Wheel identifier
            at: Activity time, defaults to now
        """
        if wheel_id is None:
            return
        wheel = self.get_wheel(wheel_id)
        if wheel is None:
            logger.warning(f"Wheel {wheel_id} not found when recording activity")
            return
        wheel.last_activity_at = at or datetime.utcnow()
        self.db.flush()
