"""Pydantic models for Position requests and responses.

This module contains schemas for PUT/CALL assignment results, manual
position close, position updates, and position read models.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from wheelbook.models.enums import PositionStatus
from wheelbook.services import assignment_calculator as calc


class AssignPutData(BaseModel):
    """Result of a PUT assignment.

    Attributes:
        position_id: Position created for the assigned shares
        trade_id: PUT trade marked ASSIGNED
    """

    position_id: str
    trade_id: str


class AssignCallData(BaseModel):
    """Result of a CALL assignment.

    Attributes:
        position_id: Position closed by the assignment
        trade_id: CALL trade marked ASSIGNED
        realized_gain_loss: Realized P&L of the closed position
    """

    position_id: str
    trade_id: str
    realized_gain_loss: Decimal


class ClosePositionRequest(BaseModel):
    """Request schema for selling a position's shares manually.

    Attributes:
        closing_price: Sale price per share

    Example:
        >>> ClosePositionRequest(closing_price=Decimal("152.25"))
    """

    closing_price: Decimal = Field(..., gt=0, description="Sale price per share")


class ClosePositionData(BaseModel):
    """Result of a manual position close."""

    position_id: str
    realized_gain_loss: Decimal


class PositionUpdate(BaseModel):
    """Request schema for updating position notes or market value.

    All fields are optional. Only provided fields will be updated.
    """

    notes: Optional[str] = Field(None, max_length=1000, description="Position notes")
    current_value: Optional[Decimal] = Field(
        None, gt=0, description="Current market value of the shares"
    )


class PositionIdData(BaseModel):
    """Payload carrying the identifier of an affected position."""

    id: str


class AssignmentTradeSummary(BaseModel):
    """PUT trade whose assignment created a position."""

    id: str
    option_type: str
    strike_price: Decimal
    premium: Decimal
    expiration_date: date
    open_date: datetime

    model_config = {"from_attributes": True}


class CoveredCallSummary(BaseModel):
    """CALL trade written against a position."""

    id: str
    action: str
    strike_price: Decimal
    premium: Decimal
    status: str
    expiration_date: date
    open_date: datetime
    close_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PositionResponse(BaseModel):
    """Response schema for position data.

    ``unrealized_gain_loss`` is current_value - total_cost and
    ``unrealized_gain_loss_pct`` its share of total cost in percent, both
    rounded to cents. They are set only for OPEN positions with a known
    market value.
    """

    id: str
    ticker: str
    shares: int
    cost_basis: Decimal
    total_cost: Decimal
    current_value: Optional[Decimal] = None
    realized_gain_loss: Optional[Decimal] = None
    status: PositionStatus
    acquired_date: datetime
    closed_date: Optional[datetime] = None
    notes: Optional[str] = None
    wheel_id: Optional[str] = None
    has_open_covered_call: bool = False
    unrealized_gain_loss: Optional[Decimal] = None
    unrealized_gain_loss_pct: Optional[Decimal] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def derive_unrealized(self) -> "PositionResponse":
        if self.status != PositionStatus.OPEN:
            self.unrealized_gain_loss = None
            self.unrealized_gain_loss_pct = None
            return self
        pnl = calc.unrealized_pnl(self.current_value, self.total_cost)
        pct = calc.unrealized_pnl_pct(self.current_value, self.total_cost)
        self.unrealized_gain_loss = calc.quantize_money(pnl) if pnl is not None else None
        self.unrealized_gain_loss_pct = calc.quantize_money(pct) if pct is not None else None
        return self


class PositionDetailResponse(PositionResponse):
    """Position with its assignment trade and covered calls."""

    assignment_trade: AssignmentTradeSummary
    covered_calls: list[CoveredCallSummary] = Field(default_factory=list)
