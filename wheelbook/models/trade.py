"""Pydantic models for Trade requests and responses.

This module contains request and response schemas for trade operations,
including validation rules for creation, early close, and rolling.
Money fields are ``Decimal`` end to end.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from wheelbook.models.enums import OptionType, TradeAction, TradeStatus

TICKER_PATTERN = re.compile(r"^[A-Z]{1,6}$")


class TradeCreate(BaseModel):
    """Request schema for recording a new trade.

    Attributes:
        ticker: Stock ticker symbol, normalized to uppercase
        option_type: "PUT" or "CALL"
        action: "SELL_TO_OPEN" or "BUY_TO_CLOSE"
        strike_price: Strike price per share
        premium: Total premium in currency units
        contracts: Number of contracts (100 shares each)
        expiration_date: Expiration date
        open_date: Entry date, defaults to today
        notes: Optional notes
        position_id: Stock position a covered CALL is written against
        wheel_id: Wheel cycle to link the trade to

    Example:
        >>> TradeCreate(
        >>>     ticker="AAPL",
        >>>     option_type="PUT",
        >>>     action="SELL_TO_OPEN",
        >>>     strike_price=Decimal("150"),
        >>>     premium=Decimal("250"),
        >>>     contracts=1,
        >>>     expiration_date=date(2026, 3, 20),
        >>> )
    """

    ticker: str = Field(..., description="Stock ticker symbol")
    option_type: OptionType = Field(..., description="Option type: PUT or CALL")
    action: TradeAction = Field(..., description="SELL_TO_OPEN or BUY_TO_CLOSE")
    strike_price: Decimal = Field(..., gt=0, description="Strike price")
    premium: Decimal = Field(..., gt=0, description="Total premium")
    contracts: int = Field(..., gt=0, description="Number of contracts")
    expiration_date: date = Field(..., description="Expiration date (YYYY-MM-DD)")
    open_date: Optional[date] = Field(None, description="Entry date, defaults to today")
    notes: Optional[str] = Field(None, max_length=1000, description="Trade notes")
    position_id: Optional[str] = Field(None, description="Covered position ID")
    wheel_id: Optional[str] = Field(None, description="Wheel ID")

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        """Uppercase the ticker and check it is 1-6 letters.

        Raises:
            ValueError: If the ticker is not 1-6 letters
        """
        v = v.strip().upper()
        if not TICKER_PATTERN.match(v):
            raise ValueError("Ticker must be 1-6 letters")
        return v

    @model_validator(mode="after")
    def check_dates(self) -> "TradeCreate":
        """Expiration must fall after the entry date."""
        opened = self.open_date or date.today()
        if self.expiration_date <= opened:
            raise ValueError("Expiration date must be after entry date")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "ticker": "AAPL",
                "option_type": "PUT",
                "action": "SELL_TO_OPEN",
                "strike_price": "150.00",
                "premium": "250.00",
                "contracts": 1,
                "expiration_date": "2026-03-20",
            }
        }
    }


class TradeResponse(BaseModel):
    """Response schema for trade data."""

    id: str
    ticker: str
    option_type: OptionType
    action: TradeAction
    status: TradeStatus
    strike_price: Decimal
    premium: Decimal
    contracts: int
    shares: int
    expiration_date: date
    open_date: datetime
    close_date: Optional[datetime] = None
    close_premium: Optional[Decimal] = None
    realized_gain_loss: Optional[Decimal] = None
    notes: Optional[str] = None
    position_id: Optional[str] = None
    wheel_id: Optional[str] = None
    roll_from_trade_id: Optional[str] = None

    model_config = {"from_attributes": True}


class TradeIdData(BaseModel):
    """Payload carrying the identifier of an affected trade."""

    id: str


class CloseOptionRequest(BaseModel):
    """Request schema for buying back an option early.

    Attributes:
        close_premium: Total premium paid to close the option

    Example:
        >>> CloseOptionRequest(close_premium=Decimal("100"))
    """

    close_premium: Decimal = Field(..., ge=0, description="Premium paid to close")


class CloseOptionData(BaseModel):
    """Result of an early close.

    Attributes:
        id: Closed trade identifier
        net_pl: original premium - close premium (positive is profit)
    """

    id: str
    net_pl: Decimal


class RollOptionRequest(BaseModel):
    """Request schema for rolling an option to a new strike/expiration.

    Attributes:
        new_expiration_date: Expiration of the new option
        new_strike_price: Strike of the new option
        new_premium: Premium collected for the new option
        close_premium: Premium paid to buy back the current option
        notes: Optional notes recorded on both legs

    Example:
        >>> RollOptionRequest(
        >>>     new_expiration_date=date(2026, 4, 17),
        >>>     new_strike_price=Decimal("145"),
        >>>     new_premium=Decimal("300"),
        >>>     close_premium=Decimal("100"),
        >>> )
    """

    new_expiration_date: date = Field(..., description="New expiration date")
    new_strike_price: Decimal = Field(..., gt=0, description="New strike price")
    new_premium: Decimal = Field(..., gt=0, description="Premium for the new option")
    close_premium: Decimal = Field(..., ge=0, description="Premium paid to close")
    notes: Optional[str] = Field(None, max_length=1000, description="Roll notes")

    @field_validator("new_expiration_date")
    @classmethod
    def validate_future(cls, v: date) -> date:
        """New expiration date must be in the future.

        Raises:
            ValueError: If the date is today or earlier
        """
        if v <= date.today():
            raise ValueError("New expiration date must be in the future")
        return v


class RollOptionData(BaseModel):
    """Result of a roll.

    Attributes:
        close_trade_id: BUY_TO_CLOSE leg created for the original option
        open_trade_id: SELL_TO_OPEN leg created for the new option
        net_credit: new premium - close premium (negative is a debit)
    """

    close_trade_id: str
    open_trade_id: str
    net_credit: Decimal


class TradeUsageData(BaseModel):
    """Lifetime trade usage for the caller.

    ``trade_limit`` and ``remaining`` are None for unlimited (PRO) access.
    """

    trades_used: int
    trade_limit: Optional[int] = None
    tier: str
    remaining: Optional[int] = None
    limit_reached: bool
