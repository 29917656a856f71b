"""Enumerations shared by the ORM layer, services, and API schemas."""

from enum import Enum


class OptionType(str, Enum):
    """Option contract type."""

    PUT = "PUT"
    CALL = "CALL"


class TradeAction(str, Enum):
    """Order action that opened or closed the option."""

    SELL_TO_OPEN = "SELL_TO_OPEN"
    BUY_TO_CLOSE = "BUY_TO_CLOSE"


class TradeStatus(str, Enum):
    """Lifecycle status of a trade. Every status except OPEN is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"  # Bought back early or rolled
    EXPIRED = "EXPIRED"  # Expired worthless, premium kept
    ASSIGNED = "ASSIGNED"  # Exercised against the seller


class PositionStatus(str, Enum):
    """Status of a stock position acquired through PUT assignment."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class WheelStatus(str, Enum):
    """Status of a wheel strategy cycle."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class SubscriptionTier(str, Enum):
    """Billing tier read from the user record."""

    FREE = "FREE"
    PRO = "PRO"


# Subscription statuses that keep Pro access until subscription_ends_at
GRACE_PERIOD_STATUSES = frozenset({"canceled", "past_due"})
