"""Pydantic schemas for position endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tradebook.domain.models.enums import PositionSource, PositionStatus, Side


class PositionCreateRequest(BaseModel):
    """Request schema for opening a position."""

    symbol: str = Field(..., min_length=1, max_length=20)
    side: Side
    volume: Decimal = Field(..., gt=0)
    open_price: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    open_time: Optional[datetime] = Field(default=None, description="Defaults to now")
    current_price: Optional[Decimal] = Field(default=None, gt=0)
    portfolio_id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=100)
    commission: Decimal = Field(default=Decimal("0"), ge=0)
    swap: Decimal = Decimal("0")
    taxes: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("symbol", "currency")
    @classmethod
    def uppercase(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None


class PositionUpdateRequest(BaseModel):
    """Allow-listed position edits (partial update)."""

    name: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)
    swap: Optional[Decimal] = None


class MarketPriceRequest(BaseModel):
    price: Decimal = Field(..., gt=0)
    at: Optional[datetime] = None


class ClosePositionRequest(BaseModel):
    """Request schema for closing a position."""

    close_price: Decimal = Field(..., gt=0)
    close_time: Optional[datetime] = None
    extra_commission: Decimal = Field(default=Decimal("0"), ge=0)
    extra_taxes: Decimal = Field(default=Decimal("0"), ge=0)
    note: Optional[str] = Field(default=None, max_length=200)


class PositionResponse(BaseModel):
    """Response schema for a single position."""

    model_config = {"from_attributes": True}

    position_id: str
    user_id: str
    portfolio_id: Optional[str] = None
    symbol: str
    name: Optional[str] = None
    side: Side
    volume: Decimal
    open_time: datetime
    open_price: Decimal
    close_time: Optional[datetime] = None
    close_price: Optional[Decimal] = None
    current_price: Decimal
    purchase_value: Decimal
    sale_value: Optional[Decimal] = None
    commission: Decimal
    swap: Decimal
    taxes: Decimal
    currency: str
    status: PositionStatus
    gross_pl: Decimal
    net_pl: Decimal
    current_value: Decimal
    pl_percentage: Decimal
    notes: Optional[str] = None
    source: PositionSource
    last_price_update: Optional[datetime] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PositionListResponse(BaseModel):
    positions: list[PositionResponse]
    count: int


class PLSummaryResponse(BaseModel):
    """Totals across positions, plus open position value per currency."""

    total_gross_pl: Decimal
    total_net_pl: Decimal
    total_commission: Decimal
    total_taxes: Decimal
    total_swap: Decimal
    position_count: int
    open_value: dict[str, Decimal]
