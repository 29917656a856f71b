"""Wheel database model.

A wheel groups the trades and positions of one strategy cycle on a ticker.
Trades and positions link to it, and every lifecycle change on a linked
record refreshes its activity timestamp.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from wheelbook.database.session import Base
from wheelbook.models.enums import WheelStatus

if TYPE_CHECKING:
    from .position import Position
    from .trade import Trade
    from .user import User


class Wheel(Base):
    """Wheel strategy cycle on a single ticker.

    Attributes:
        id: Unique identifier (UUID as string)
        user_id: Owning user
        ticker: Stock ticker symbol
        status: "ACTIVE", "PAUSED" or "COMPLETED"
        cycle_count: Number of completed put-to-call-away cycles
        total_premiums: Premiums collected across the wheel
        total_realized_pl: Realized P&L across the wheel
        started_at: When the wheel was started
        last_activity_at: Last trade activity on the wheel
        completed_at: When the wheel was completed (if applicable)
        notes: Free-form notes
    """

    __tablename__ = "wheels"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticker = Column(String(6), nullable=False, index=True)
    status = Column(String, nullable=False, default=WheelStatus.ACTIVE.value)
    cycle_count = Column(Integer, nullable=False, default=0)
    total_premiums = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_realized_pl = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="wheels", lazy="select")
    trades = relationship("Trade", back_populates="wheel", lazy="select")
    positions = relationship("Position", back_populates="wheel", lazy="select")

    def __repr__(self) -> str:
        return f"<Wheel(id={self.id}, ticker={self.ticker}, status={self.status})>"
