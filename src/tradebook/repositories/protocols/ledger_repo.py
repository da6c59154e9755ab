"""Cash ledger repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from tradebook.domain.models import CashLedgerEntry, LedgerEntryStatus, LedgerEntryType


class LedgerRepository(Protocol):
    """Interface for cash ledger data access."""

    def create(self, entry: CashLedgerEntry) -> CashLedgerEntry:
        """Persist a new entry; raises DuplicateIdError if the id is taken."""
        ...

    def get_by_id(self, entry_id: str) -> Optional[CashLedgerEntry]:
        """Retrieve entry by ID."""
        ...

    def update(self, entry: CashLedgerEntry) -> CashLedgerEntry:
        """Update an existing entry."""
        ...

    def delete(self, entry_id: str) -> bool:
        """Remove an entry (hard delete). Returns False if nothing was removed."""
        ...

    def query(
        self,
        user_id: str,
        entry_types: Optional[list[LedgerEntryType]] = None,
        statuses: Optional[list[LedgerEntryStatus]] = None,
        currency: Optional[str] = None,
        symbol: Optional[str] = None,
        portfolio_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[CashLedgerEntry]:
        """Query a user's entries with filters, ordered by occurred_at."""
        ...

    def count(
        self,
        user_id: str,
        entry_types: Optional[list[LedgerEntryType]] = None,
        statuses: Optional[list[LedgerEntryStatus]] = None,
        currency: Optional[str] = None,
        symbol: Optional[str] = None,
        portfolio_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> int:
        """Count a user's entries matching the filters."""
        ...
