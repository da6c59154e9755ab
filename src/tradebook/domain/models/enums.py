"""Enumerations for domain models."""

from enum import Enum


class LedgerEntryType(str, Enum):
    """Types of cash ledger movements."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    FEE = "fee"
    BONUS = "bonus"
    TRANSFER = "transfer"  # caller-signed amount
    ADJUSTMENT = "adjustment"  # caller-signed amount


INFLOW_TYPES = frozenset(
    {
        LedgerEntryType.DEPOSIT,
        LedgerEntryType.DIVIDEND,
        LedgerEntryType.INTEREST,
        LedgerEntryType.BONUS,
    }
)
OUTFLOW_TYPES = frozenset({LedgerEntryType.WITHDRAWAL, LedgerEntryType.FEE})
CALLER_SIGNED_TYPES = frozenset({LedgerEntryType.TRANSFER, LedgerEntryType.ADJUSTMENT})


class LedgerEntryStatus(str, Enum):
    """Settlement status of a ledger entry."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EntrySource(str, Enum):
    """Where a ledger entry came from."""

    MANUAL = "manual"
    IMPORT = "import"
    API = "api"
    AUTOMATIC = "automatic"


class Side(str, Enum):
    """Trade direction, shared by positions and orders."""

    BUY = "BUY"
    SELL = "SELL"


class PositionStatus(str, Enum):
    """Position lifecycle states."""

    OPEN = "open"
    CLOSED = "closed"
    DELETED = "deleted"


class PositionSource(str, Enum):
    """How a position was opened."""

    MANUAL = "manual"
    ORDER = "order"


class OrderKind(str, Enum):
    """Pending order types."""

    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"
    TRAILING_STOP = "trailing_stop"


class OrderStatus(str, Enum):
    """Pending order lifecycle states."""

    PENDING = "pending"
    PARTIAL = "partial"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


ACTIVE_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PARTIAL})


class TimeInForce(str, Enum):
    """Order time-in-force conditions."""

    GTC = "GTC"  # Good Till Cancelled
    IOC = "IOC"  # Immediate or Cancel
    FOK = "FOK"  # Fill or Kill
    DAY = "DAY"
    GTD = "GTD"  # Good Till Date


class SideEffectStatus(str, Enum):
    """Outcome of a best-effort secondary effect."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
