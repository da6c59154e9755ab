"""Pydantic schemas for pending order endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tradebook.api.schemas.position import PositionResponse
from tradebook.domain.models.enums import (
    OrderKind,
    OrderStatus,
    Side,
    SideEffectStatus,
    TimeInForce,
)


class OrderCreateRequest(BaseModel):
    """Request schema for placing an order."""

    symbol: str = Field(..., min_length=1, max_length=20)
    kind: OrderKind
    side: Side
    volume: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    price: Optional[Decimal] = Field(default=None, gt=0)
    stop_price: Optional[Decimal] = Field(default=None, gt=0)
    trailing_amount: Optional[Decimal] = Field(default=None, gt=0)
    trailing_percent: Optional[Decimal] = Field(default=None, gt=0, le=100)
    time_in_force: TimeInForce = TimeInForce.GTC
    expiry_time: Optional[datetime] = None
    portfolio_id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("symbol", "currency")
    @classmethod
    def uppercase(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None


class OrderUpdateRequest(BaseModel):
    """Allow-listed order edits (partial update)."""

    symbol: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, max_length=100)
    price: Optional[Decimal] = Field(default=None, gt=0)
    stop_price: Optional[Decimal] = Field(default=None, gt=0)
    trailing_amount: Optional[Decimal] = Field(default=None, gt=0)
    trailing_percent: Optional[Decimal] = Field(default=None, gt=0, le=100)
    volume: Optional[Decimal] = Field(default=None, gt=0)
    expiry_time: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class ExecuteOrderRequest(BaseModel):
    """Request schema for recording a fill."""

    executed_price: Decimal = Field(..., gt=0)
    executed_volume: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Defaults to the whole remaining volume",
    )
    commission: Decimal = Field(default=Decimal("0"), ge=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    create_position: bool = True


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=200)


class OrderExecutionResponse(BaseModel):
    model_config = {"from_attributes": True}

    executed_price: Optional[Decimal] = None
    executed_volume: Decimal
    commission: Decimal
    fees: Decimal
    executed_time: Optional[datetime] = None
    resulting_position_id: Optional[str] = None


class OrderResponse(BaseModel):
    """Response schema for a single order."""

    model_config = {"from_attributes": True}

    order_id: str
    user_id: str
    portfolio_id: Optional[str] = None
    symbol: str
    name: Optional[str] = None
    kind: OrderKind
    side: Side
    volume: Decimal
    original_volume: Decimal
    filled_volume: Decimal
    fill_percentage: Decimal
    price: Optional[Decimal] = None
    stop_price: Optional[Decimal] = None
    trailing_amount: Optional[Decimal] = None
    trailing_percent: Optional[Decimal] = None
    time_in_force: TimeInForce
    purchase_value: Decimal
    order_value: Decimal
    currency: str
    open_time: datetime
    expiry_time: Optional[datetime] = None
    status: OrderStatus
    is_active: bool
    execution: OrderExecutionResponse
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    notes: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    count: int


class ExecutionResultResponse(BaseModel):
    """Order after the fill, plus the outcome of opening a position from it."""

    model_config = {"from_attributes": True}

    order: OrderResponse
    remaining_volume: Decimal
    is_full: bool
    position: Optional[PositionResponse] = None
    position_outcome: SideEffectStatus
    position_error: Optional[str] = None


class OrderSideStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    side: Side
    count: int
    total_volume: Decimal
    avg_price: Optional[Decimal] = None


class OrderStatusStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    status: OrderStatus
    total_count: int
    sides: list[OrderSideStatsResponse]


class OrderStatisticsResponse(BaseModel):
    """Per status and side order counts over a trailing period."""

    period_days: int
    statuses: list[OrderStatusStatsResponse]
