"""Pydantic request and response models."""

from wheelbook.models.common import (
    ActionResult,
    ErrorResponse,
    ErrorType,
    HealthResponse,
    InfoResponse,
)
from wheelbook.models.enums import (
    OptionType,
    PositionStatus,
    SubscriptionTier,
    TradeAction,
    TradeStatus,
    WheelStatus,
)

__all__ = [
    # Common models
    "ActionResult",
    "ErrorType",
    "HealthResponse",
    "InfoResponse",
    "ErrorResponse",
    # Enums
    "OptionType",
    "TradeAction",
    "TradeStatus",
    "PositionStatus",
    "WheelStatus",
    "SubscriptionTier",
]
