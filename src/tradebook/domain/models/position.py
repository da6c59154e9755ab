"""Position domain model and P&L formulas."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tradebook.domain.models.enums import PositionSource, PositionStatus, Side

ZERO = Decimal("0")
DELETED_MARKER = "[DELETED]"


def side_multiplier(side: Side) -> Decimal:
    """+1 for BUY, -1 for SELL."""
    return Decimal("1") if side == Side.BUY else Decimal("-1")


def compute_gross_pl(side: Side, open_price: Decimal, price: Decimal, volume: Decimal) -> Decimal:
    """Price-driven P&L: (price - open_price) * volume, sign-flipped for SELL."""
    return (price - open_price) * volume * side_multiplier(side)


def compute_net_pl(
    gross_pl: Decimal,
    commission: Decimal,
    taxes: Decimal,
    swap: Decimal,
) -> Decimal:
    """Realized P&L after costs; swap always counts as a cost."""
    return gross_pl - commission - taxes - abs(swap)


@dataclass
class Position:
    """
    A held trade lot.

    gross_pl tracks the mark price while open; net_pl is only finalized at
    close. Both are always derived, never supplied by a caller.
    """

    position_id: str
    user_id: str
    symbol: str
    side: Side
    volume: Decimal
    open_time: datetime
    open_price: Decimal
    current_price: Decimal
    currency: str
    portfolio_id: Optional[str] = None
    name: Optional[str] = None
    close_time: Optional[datetime] = None
    close_price: Optional[Decimal] = None
    purchase_value: Decimal = field(default_factory=lambda: ZERO)
    sale_value: Optional[Decimal] = None
    commission: Decimal = field(default_factory=lambda: ZERO)
    swap: Decimal = field(default_factory=lambda: ZERO)
    taxes: Decimal = field(default_factory=lambda: ZERO)
    status: PositionStatus = PositionStatus.OPEN
    gross_pl: Decimal = field(default_factory=lambda: ZERO)
    net_pl: Decimal = field(default_factory=lambda: ZERO)
    notes: Optional[str] = None
    source: PositionSource = PositionSource.MANUAL
    last_price_update: Optional[datetime] = None
    version: int = 1
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.side, str):
            self.side = Side(self.side)
        if isinstance(self.status, str):
            self.status = PositionStatus(self.status)
        if isinstance(self.source, str):
            self.source = PositionSource(self.source)

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN

    def mark(self, price: Decimal, at: datetime) -> None:
        """Apply a new mark price; net_pl is left untouched."""
        self.current_price = price
        self.gross_pl = compute_gross_pl(self.side, self.open_price, price, self.volume)
        self.last_price_update = at

    def close(
        self,
        close_price: Decimal,
        close_time: datetime,
        extra_commission: Decimal = ZERO,
        extra_taxes: Decimal = ZERO,
    ) -> None:
        """Finalize the position at close_price."""
        self.commission += extra_commission
        self.taxes += extra_taxes
        self.close_price = close_price
        self.close_time = close_time
        self.sale_value = close_price * self.volume
        self.gross_pl = compute_gross_pl(self.side, self.open_price, close_price, self.volume)
        self.net_pl = compute_net_pl(self.gross_pl, self.commission, self.taxes, self.swap)
        self.last_price_update = close_time
        self.status = PositionStatus.CLOSED

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}. {note}" if self.notes else note

    @property
    def current_value(self) -> Decimal:
        """Sale value once closed, otherwise the marked value."""
        if self.status == PositionStatus.CLOSED and self.sale_value is not None:
            return self.sale_value
        return self.current_price * self.volume

    @property
    def pl_percentage(self) -> Decimal:
        if self.purchase_value == ZERO:
            return ZERO
        return self.gross_pl / self.purchase_value * 100

    def duration_days(self, now: datetime) -> int:
        """Whole days the position has been (or was) held."""
        end = self.close_time or now
        return (end - self.open_time).days
