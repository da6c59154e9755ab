"""View models for cash ledger aggregation outputs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from tradebook.domain.models.enums import LedgerEntryType


@dataclass
class CurrencyBalance:
    """Aggregated balance for one currency."""

    currency: str
    balance: Decimal = field(default_factory=lambda: Decimal("0"))
    total_inflow: Decimal = field(default_factory=lambda: Decimal("0"))
    total_outflow: Decimal = field(default_factory=lambda: Decimal("0"))
    count: int = 0


@dataclass
class CashFlowItem:
    """Signed total of one entry type on one day."""

    day: date
    entry_type: LedgerEntryType
    currency: str
    total_amount: Decimal
    count: int


@dataclass
class TypeTotal:
    """Signed total and count for one entry type."""

    entry_type: LedgerEntryType
    total_amount: Decimal
    count: int


@dataclass
class MonthlyCurrencySummary:
    """Per-type breakdown of one currency for one month."""

    currency: str
    operations: list[TypeTotal] = field(default_factory=list)
    total_flow: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class ImportSummary:
    """Summary of a batch recording operation."""

    imported_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
    imported_ids: list[str] = field(default_factory=list)
    import_batch_id: Optional[str] = None
