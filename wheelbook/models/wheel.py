"""Pydantic models for Wheel requests and responses.

A wheel groups the trades and positions of one strategy cycle on a
ticker. These schemas cover starting a wheel and reading it back with
its derived counts and deployed capital.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wheelbook.models.enums import WheelStatus
from wheelbook.models.position import PositionResponse
from wheelbook.models.trade import TICKER_PATTERN, TradeResponse


class WheelCreate(BaseModel):
    """Request schema for starting a wheel on a ticker.

    Attributes:
        ticker: Stock ticker symbol, normalized to uppercase
        notes: Optional notes

    Example:
        >>> WheelCreate(ticker="aapl", notes="Conservative strikes only")
    """

    ticker: str = Field(..., description="Stock ticker symbol")
    notes: Optional[str] = Field(None, max_length=1000, description="Wheel notes")

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        """Uppercase the ticker and check it is 1-6 letters."""
        v = v.strip().upper()
        if not TICKER_PATTERN.match(v):
            raise ValueError("Ticker must be 1-6 letters")
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"ticker": "AAPL"},
                {"ticker": "NVDA", "notes": "Roll calls up on earnings"},
            ]
        }
    }


class WheelIdData(BaseModel):
    """Payload carrying the identifier of an affected wheel."""

    id: str


class WheelResponse(BaseModel):
    """Response schema for wheel data.

    Attributes:
        id: Unique wheel identifier
        ticker: Stock ticker symbol
        status: ACTIVE, PAUSED or COMPLETED
        cycle_count: Completed put-to-call-away cycles
        total_premiums: Premiums collected across the wheel
        total_realized_pl: Realized P&L across the wheel
        started_at: When the wheel was started
        last_activity_at: Last lifecycle change on a linked record
        completed_at: When the wheel was completed
        notes: Free-form notes
        trade_count: Number of linked trades
        position_count: Number of linked positions
        deployed_capital: Strike value of open PUTs plus total cost of
            open positions
    """

    id: str = Field(..., description="Unique wheel identifier")
    ticker: str = Field(..., description="Stock ticker symbol")
    status: WheelStatus = Field(..., description="Wheel status")
    cycle_count: int = Field(default=0, description="Completed cycles")
    total_premiums: Decimal = Field(default=Decimal("0"), description="Premiums collected")
    total_realized_pl: Decimal = Field(default=Decimal("0"), description="Realized P&L")
    started_at: datetime = Field(..., description="Start timestamp")
    last_activity_at: datetime = Field(..., description="Last activity timestamp")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    notes: Optional[str] = Field(None, description="Wheel notes")
    trade_count: int = Field(default=0, description="Number of linked trades")
    position_count: int = Field(default=0, description="Number of linked positions")
    deployed_capital: Decimal = Field(
        default=Decimal("0"), description="Capital tied up in open PUTs and shares"
    )

    model_config = {"from_attributes": True}


class WheelDetailResponse(WheelResponse):
    """Wheel with its trades and positions, newest first."""

    trades: list[TradeResponse] = Field(default_factory=list)
    positions: list[PositionResponse] = Field(default_factory=list)
