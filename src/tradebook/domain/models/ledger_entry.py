"""Cash ledger entry domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tradebook.domain.models.enums import (
    EntrySource,
    LedgerEntryStatus,
    LedgerEntryType,
    INFLOW_TYPES,
    OUTFLOW_TYPES,
)


@dataclass
class TaxInfo:
    """Tax details stored with an entry; never derived."""

    taxable: bool = False
    tax_rate: Optional[Decimal] = None
    tax_amount: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class CashLedgerEntry:
    """
    One recorded cash movement.

    ``amount`` is an unsigned magnitude for every classified type; the sign is
    applied at aggregation time from ``entry_type``. TRANSFER and ADJUSTMENT
    carry a caller-signed amount.
    """

    entry_id: str
    user_id: str
    entry_type: LedgerEntryType
    amount: Decimal
    currency: str
    occurred_at: datetime
    comment: str
    status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED
    portfolio_id: Optional[str] = None
    symbol: Optional[str] = None
    tax: Optional[TaxInfo] = None
    notes: Optional[str] = None
    source: EntrySource = EntrySource.MANUAL
    import_batch_id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.entry_type, str):
            self.entry_type = LedgerEntryType(self.entry_type)
        if isinstance(self.status, str):
            self.status = LedgerEntryStatus(self.status)
        if isinstance(self.source, str):
            self.source = EntrySource(self.source)

    @property
    def signed_amount(self) -> Decimal:
        """
        Contribution of this entry to a balance.

        Positive = cash added, Negative = cash removed.
        """
        if self.entry_type in INFLOW_TYPES:
            return self.amount
        if self.entry_type in OUTFLOW_TYPES:
            return -self.amount
        return self.amount

    @property
    def direction(self) -> str:
        """Return "credit" or "debit" based on the signed amount."""
        return "credit" if self.signed_amount >= 0 else "debit"
