"""Stock position database model.

A position is created only by PUT assignment and holds the fixed cost
basis of the acquired shares. Covered CALLs link to it through
``Trade.position_id``.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from wheelbook.database.session import Base
from wheelbook.models.enums import OptionType, PositionStatus, TradeStatus

if TYPE_CHECKING:
    from .trade import Trade
    from .user import User


class Position(Base):
    """Stock position acquired through PUT assignment.

    Attributes:
        id: Unique identifier (UUID as string)
        user_id: Owning user
        ticker: Stock ticker symbol
        shares: Number of shares held
        cost_basis: Per-share cost basis net of the PUT premium
        total_cost: strike * shares - PUT premium, to the cent
        current_value: Market value, refreshed externally
        realized_gain_loss: P&L set when the position closes
        status: "OPEN" or "CLOSED"
        acquired_date: When the shares were acquired
        closed_date: When the shares were sold (if applicable)
        notes: Free-form notes
        assignment_trade_id: PUT trade whose assignment created the position
        wheel_id: Wheel copied from the assigned PUT
        assignment_trade: Relationship to the assigned PUT
        covered_calls: CALL trades written against this position
    """

    __tablename__ = "positions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticker = Column(String(6), nullable=False, index=True)
    shares = Column(Integer, nullable=False)
    cost_basis = Column(Numeric(14, 4), nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False)
    current_value = Column(Numeric(12, 2), nullable=True)
    realized_gain_loss = Column(Numeric(12, 2), nullable=True)
    status = Column(String, nullable=False, default=PositionStatus.OPEN.value, index=True)
    acquired_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    closed_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    assignment_trade_id = Column(
        String(36), ForeignKey("trades.id"), nullable=False, unique=True
    )
    wheel_id = Column(
        String(36),
        ForeignKey("wheels.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="positions", lazy="select")
    wheel = relationship("Wheel", back_populates="positions", lazy="select")
    assignment_trade = relationship(
        "Trade", foreign_keys=[assignment_trade_id], lazy="joined"
    )
    covered_calls = relationship(
        "Trade",
        back_populates="position",
        foreign_keys="Trade.position_id",
        lazy="select",
        order_by="desc(Trade.open_date)",
    )

    @property
    def has_open_covered_call(self) -> bool:
        """Whether a CALL written against this position is still OPEN."""
        return any(
            call.option_type == OptionType.CALL.value
            and call.status == TradeStatus.OPEN.value
            for call in self.covered_calls
        )

    def __repr__(self) -> str:
        return (
            f"<Position(id={self.id}, ticker={self.ticker}, shares={self.shares}, "
            f"cost_basis={self.cost_basis}, status={self.status})>"
        )
