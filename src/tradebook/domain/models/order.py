"""Pending order domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tradebook.domain.models.enums import (
    ACTIVE_ORDER_STATUSES,
    OrderKind,
    OrderStatus,
    Side,
    TimeInForce,
)

ZERO = Decimal("0")


@dataclass
class OrderExecution:
    """
    Execution sub-record.

    Holds the latest fill only: each execution overwrites price, volume,
    commission, fees and time. resulting_position_id is set at most once.
    """

    executed_price: Optional[Decimal] = None
    executed_volume: Decimal = field(default_factory=lambda: ZERO)
    commission: Decimal = field(default_factory=lambda: ZERO)
    fees: Decimal = field(default_factory=lambda: ZERO)
    executed_time: Optional[datetime] = None
    resulting_position_id: Optional[str] = None


@dataclass
class PendingOrder:
    """
    An instruction to open a position once a price condition is met.

    ``volume`` is the remaining (unfilled) volume and never increases while
    the order is active; ``original_volume`` is what was first requested.
    """

    order_id: str
    user_id: str
    symbol: str
    kind: OrderKind
    side: Side
    volume: Decimal
    original_volume: Decimal
    currency: str
    open_time: datetime
    portfolio_id: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    stop_price: Optional[Decimal] = None
    trailing_amount: Optional[Decimal] = None
    trailing_percent: Optional[Decimal] = None
    time_in_force: TimeInForce = TimeInForce.GTC
    purchase_value: Decimal = field(default_factory=lambda: ZERO)
    expiry_time: Optional[datetime] = None
    status: OrderStatus = OrderStatus.PENDING
    execution: OrderExecution = field(default_factory=OrderExecution)
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    notes: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            self.kind = OrderKind(self.kind)
        if isinstance(self.side, str):
            self.side = Side(self.side)
        if isinstance(self.status, str):
            self.status = OrderStatus(self.status)
        if isinstance(self.time_in_force, str):
            self.time_in_force = TimeInForce(self.time_in_force)

    @property
    def is_active(self) -> bool:
        """True while the order can still be filled, updated or cancelled."""
        return self.status in ACTIVE_ORDER_STATUSES

    @property
    def filled_volume(self) -> Decimal:
        return self.original_volume - self.volume

    @property
    def fill_percentage(self) -> Decimal:
        if self.original_volume == ZERO:
            return ZERO
        return self.filled_volume / self.original_volume * 100

    @property
    def order_value(self) -> Decimal:
        """Value of the remaining volume at the order price (0 without one)."""
        return (self.price or ZERO) * self.volume

    def is_expired_at(self, now: datetime) -> bool:
        return self.expiry_time is not None and self.expiry_time < now

    def apply_fill(
        self,
        executed_price: Decimal,
        executed_volume: Decimal,
        commission: Decimal,
        fees: Decimal,
        executed_time: datetime,
    ) -> bool:
        """
        Record one fill and move the order to executed or partial.

        Returns True when the fill consumed the whole remaining volume.
        The caller guarantees executed_volume <= volume.
        """
        is_full = executed_volume >= self.volume
        self.execution.executed_price = executed_price
        self.execution.executed_volume = executed_volume
        self.execution.commission = commission
        self.execution.fees = fees
        self.execution.executed_time = executed_time
        if is_full:
            self.status = OrderStatus.EXECUTED
            self.volume = ZERO
        else:
            self.status = OrderStatus.PARTIAL
            self.volume -= executed_volume
        return is_full
