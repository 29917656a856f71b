"""Trade record database model.

Records individual option trades (puts and calls). Tracks opening details,
terminal outcome, close premium, and realized P&L. Money columns are fixed
point and surface as ``Decimal``.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from wheelbook.database.session import Base
from wheelbook.models.enums import TradeAction, TradeStatus

if TYPE_CHECKING:
    from .position import Position
    from .user import User
    from .wheel import Wheel


class Trade(Base):
    """Trade record model for option trades.

    Attributes:
        id: Unique identifier (UUID as string)
        user_id: Owning user
        ticker: Stock ticker symbol (uppercase)
        option_type: "PUT" or "CALL"
        action: "SELL_TO_OPEN" or "BUY_TO_CLOSE"
        status: "OPEN", "CLOSED", "EXPIRED" or "ASSIGNED"
        strike_price: Strike price per share
        premium: Total premium for the trade in currency units
        contracts: Number of contracts
        shares: contracts * 100
        expiration_date: Option expiration date
        open_date: When the trade was opened
        close_date: Set on any terminal transition
        close_premium: Premium paid to buy back early
        realized_gain_loss: P&L set on terminal transitions that produce it
        notes: Free-form notes, roll annotations are appended here
        position_id: Stock position this covered call is written against
        wheel_id: Wheel cycle this trade belongs to
        roll_from_trade_id: Trade this one was rolled from
    """

    __tablename__ = "trades"

    # Columns
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticker = Column(String(6), nullable=False, index=True)
    option_type = Column(String, nullable=False)
    action = Column(String, nullable=False, default=TradeAction.SELL_TO_OPEN.value)
    status = Column(String, nullable=False, default=TradeStatus.OPEN.value, index=True)
    strike_price = Column(Numeric(12, 2), nullable=False)
    premium = Column(Numeric(12, 2), nullable=False)
    contracts = Column(Integer, nullable=False)
    shares = Column(Integer, nullable=False)
    expiration_date = Column(Date, nullable=False, index=True)
    open_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    close_date = Column(DateTime, nullable=True)
    close_premium = Column(Numeric(12, 2), nullable=True)
    realized_gain_loss = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)
    position_id = Column(
        String(36),
        ForeignKey("positions.id", use_alter=True, name="fk_trades_position_id"),
        nullable=True,
        index=True,
    )
    wheel_id = Column(
        String(36),
        ForeignKey("wheels.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    roll_from_trade_id = Column(String(36), ForeignKey("trades.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="trades", lazy="select")
    wheel = relationship("Wheel", back_populates="trades", lazy="select")
    position = relationship(
        "Position",
        back_populates="covered_calls",
        foreign_keys=[position_id],
        lazy="select",
    )

    def __repr__(self) -> str:
        return (
            f"<Trade(id={self.id}, ticker={self.ticker}, "
            f"type={self.option_type}, strike={self.strike_price}, "
            f"expiration={self.expiration_date}, status={self.status})>"
        )
