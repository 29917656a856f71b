"""User database model.

Users own trades, positions, and wheels. Only the subscription tuple
(tier, status, ends_at) is read by the engine; billing lives elsewhere.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from wheelbook.database.session import Base
from wheelbook.models.enums import SubscriptionTier

if TYPE_CHECKING:
    from .position import Position
    from .trade import Trade
    from .wheel import Wheel


class User(Base):
    """User account model.

    Attributes:
        id: Unique identifier (UUID as string)
        email: Unique email address
        name: Optional display name
        subscription_tier: Billing tier ("FREE" or "PRO")
        subscription_status: Provider status (e.g. "active", "canceled", "past_due")
        subscription_ends_at: End of the paid period, used for the grace period
        created_at: Timestamp when the user was created
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    subscription_tier = Column(
        String, nullable=False, default=SubscriptionTier.FREE.value
    )
    subscription_status = Column(String, nullable=True)
    subscription_ends_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    trades = relationship("Trade", back_populates="user", lazy="select")
    positions = relationship("Position", back_populates="user", lazy="select")
    wheels = relationship("Wheel", back_populates="user", lazy="select")

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, email={self.email}, "
            f"tier={self.subscription_tier})>"
        )
