"""Domain layer - pure business models with no external dependencies."""

from tradebook.domain.models import (
    CashLedgerEntry,
    TaxInfo,
    Position,
    PendingOrder,
    OrderExecution,
    LedgerEntryType,
    LedgerEntryStatus,
    Side,
    PositionStatus,
    OrderKind,
    OrderStatus,
)

__all__ = [
    "CashLedgerEntry",
    "TaxInfo",
    "Position",
    "PendingOrder",
    "OrderExecution",
    "LedgerEntryType",
    "LedgerEntryStatus",
    "Side",
    "PositionStatus",
    "OrderKind",
    "OrderStatus",
]
