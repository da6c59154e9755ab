"""Domain models package."""

from tradebook.domain.models.enums import (
    LedgerEntryType,
    LedgerEntryStatus,
    EntrySource,
    Side,
    PositionStatus,
    PositionSource,
    OrderKind,
    OrderStatus,
    TimeInForce,
    SideEffectStatus,
)
from tradebook.domain.models.ledger_entry import CashLedgerEntry, TaxInfo
from tradebook.domain.models.position import Position
from tradebook.domain.models.order import PendingOrder, OrderExecution

__all__ = [
    "LedgerEntryType",
    "LedgerEntryStatus",
    "EntrySource",
    "Side",
    "PositionStatus",
    "PositionSource",
    "OrderKind",
    "OrderStatus",
    "TimeInForce",
    "SideEffectStatus",
    "CashLedgerEntry",
    "TaxInfo",
    "Position",
    "PendingOrder",
    "OrderExecution",
]
