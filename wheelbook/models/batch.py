"""Pydantic models for batch expire and batch assign.

Size bounds come from settings and are checked before any store access.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from wheelbook.config import settings


def _validate_trade_ids(ids: list[str], maximum: int, verb: str) -> list[str]:
    """Check bounds of a batch request and normalize its identifiers.

    IDs are returned in canonical lowercase hyphenated form, the same form
    single-trade operations use, so "{AB76...}" and "ab76..." match the
    same trade.

    Raises:
        ValueError: If the list is empty, too long, or holds a malformed ID
    """
    if not ids:
        raise ValueError("At least one trade ID is required")
    if len(ids) > maximum:
        raise ValueError(f"Cannot {verb} more than {maximum} trades at once")
    normalized = []
    for trade_id in ids:
        try:
            normalized.append(str(uuid.UUID(trade_id)))
        except (ValueError, AttributeError, TypeError) as e:
            raise ValueError(f"Invalid trade ID: {trade_id}") from e
    return normalized


class BatchTradeRequest(BaseModel):
    """Request schema for batch operations.

    Attributes:
        trade_ids: Trade identifiers to process

    Example:
        >>> BatchTradeRequest(trade_ids=["0b6e...", "5f1c..."])
    """

    trade_ids: list[str] = Field(..., description="Trade IDs to process")


class BatchExpireRequest(BatchTradeRequest):
    """Batch expire request, bounded by ``settings.batch_expire_max``."""

    @field_validator("trade_ids")
    @classmethod
    def validate_ids(cls, v: list[str]) -> list[str]:
        return _validate_trade_ids(v, settings.batch_expire_max, "expire")


class BatchAssignRequest(BatchTradeRequest):
    """Batch assign request, bounded by ``settings.batch_assign_max``."""

    @field_validator("trade_ids")
    @classmethod
    def validate_ids(cls, v: list[str]) -> list[str]:
        return _validate_trade_ids(v, settings.batch_assign_max, "assign")


class BatchItemError(BaseModel):
    """Per-item failure in a batch."""

    trade_id: str
    error: str


class ExpiredTradeSummary(BaseModel):
    """Trade expired by a batch."""

    id: str
    ticker: str
    option_type: str
    strike_price: Decimal


class AssignedPutSummary(BaseModel):
    """PUT assigned by a batch."""

    trade_id: str
    position_id: str
    ticker: str
    shares: int
    cost_basis: Decimal


class AssignedCallSummary(BaseModel):
    """CALL assigned by a batch."""

    trade_id: str
    position_id: str
    ticker: str
    realized_gain_loss: Decimal


class BatchExpireData(BaseModel):
    """Batch expire result summary."""

    success_count: int
    failure_count: int
    expired_trades: list[ExpiredTradeSummary] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)


class BatchAssignData(BaseModel):
    """Batch assign result summary."""

    success_count: int
    failure_count: int
    assigned_puts: list[AssignedPutSummary] = Field(default_factory=list)
    assigned_calls: list[AssignedCallSummary] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)
