"""View models for position and order operation results."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from tradebook.domain.models import (
    OrderStatus,
    PendingOrder,
    Position,
    Side,
    SideEffectStatus,
)


@dataclass
class ExecutionResult:
    """
    Outcome of executing an order.

    The order transition is the primary result. Opening a position from the
    fill is a best-effort side effect reported through position_outcome.
    """

    order: PendingOrder
    remaining_volume: Decimal
    is_full: bool
    position: Optional[Position] = None
    position_outcome: SideEffectStatus = SideEffectStatus.SKIPPED
    position_error: Optional[str] = None


@dataclass
class PLSummary:
    """Totals across a user's positions."""

    total_gross_pl: Decimal = field(default_factory=lambda: Decimal("0"))
    total_net_pl: Decimal = field(default_factory=lambda: Decimal("0"))
    total_commission: Decimal = field(default_factory=lambda: Decimal("0"))
    total_taxes: Decimal = field(default_factory=lambda: Decimal("0"))
    total_swap: Decimal = field(default_factory=lambda: Decimal("0"))
    position_count: int = 0


@dataclass
class OrderSideStats:
    """Order counts for one side within a status group."""

    side: Side
    count: int = 0
    total_volume: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_price: Optional[Decimal] = None


@dataclass
class OrderStatusStats:
    """Orders of one status opened within a statistics period."""

    status: OrderStatus
    total_count: int = 0
    sides: list[OrderSideStats] = field(default_factory=list)
