"""Ledger service for cash ledger entry management."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tradebook.config.settings import Settings, get_settings
from tradebook.core.exceptions import AppError, NotFoundError, ValidationError
from tradebook.core.ids import IdFactory, allocate_with_retry, generate_id, prefixed_id_factory
from tradebook.core.timezone import now_utc, to_utc
from tradebook.domain.models import (
    CashLedgerEntry,
    EntrySource,
    LedgerEntryStatus,
    LedgerEntryType,
    TaxInfo,
)
from tradebook.domain.models.enums import CALLER_SIGNED_TYPES
from tradebook.domain.views import ImportSummary
from tradebook.providers.portfolio_directory import PortfolioDirectory
from tradebook.repositories.protocols import LedgerRepository

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 200
NOTES_MAX_LENGTH = 500


@dataclass
class CashEntryCreate:
    """Input data for recording a ledger entry."""

    entry_type: LedgerEntryType
    amount: Decimal
    comment: str
    currency: Optional[str] = None
    occurred_at: Optional[datetime] = None
    status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED
    portfolio_id: Optional[str] = None
    symbol: Optional[str] = None
    tax: Optional[TaxInfo] = None
    notes: Optional[str] = None
    source: EntrySource = EntrySource.MANUAL
    import_batch_id: Optional[str] = None


@dataclass
class CashEntryUpdate:
    """Partial update data for editing a ledger entry; None leaves a field alone."""

    occurred_at: Optional[datetime] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    comment: Optional[str] = None
    symbol: Optional[str] = None
    status: Optional[LedgerEntryStatus] = None
    notes: Optional[str] = None
    tax: Optional[TaxInfo] = None


class LedgerService:
    """
    Service for recording and maintaining cash ledger entries.

    Amounts of classified entry types are stored as positive magnitudes; the
    balance aggregator applies the sign. Entries owned by another user are
    reported as not found.
    """

    def __init__(
        self,
        ledger_repo: LedgerRepository,
        portfolio_directory: Optional[PortfolioDirectory] = None,
        id_factory: Optional[IdFactory] = None,
        settings: Optional[Settings] = None,
    ):
        self._ledger_repo = ledger_repo
        self._portfolio_directory = portfolio_directory
        self._id_factory = id_factory or prefixed_id_factory("CASH")
        self._settings = settings or get_settings()

    def record_entry(self, user_id: str, data: CashEntryCreate) -> CashLedgerEntry:
        """Validate and persist a new ledger entry."""
        currency = self._normalize_currency(data.currency)
        symbol = data.symbol.strip().upper() if data.symbol else None
        comment = (data.comment or "").strip()
        self._validate_fields(
            data.entry_type, data.amount, currency, comment, symbol, data.notes, data.tax
        )
        if data.portfolio_id:
            self._check_portfolio(user_id, data.portfolio_id)

        occurred_at = to_utc(data.occurred_at) if data.occurred_at else now_utc()
        created_at = now_utc()

        def create(entry_id: str) -> CashLedgerEntry:
            return self._ledger_repo.create(
                CashLedgerEntry(
                    entry_id=entry_id,
                    user_id=user_id,
                    portfolio_id=data.portfolio_id,
                    entry_type=data.entry_type,
                    amount=data.amount,
                    currency=currency,
                    occurred_at=occurred_at,
                    comment=comment,
                    status=data.status,
                    symbol=symbol,
                    tax=data.tax,
                    notes=data.notes,
                    source=data.source,
                    import_batch_id=data.import_batch_id,
                    created_at=created_at,
                )
            )

        return allocate_with_retry(
            create,
            self._id_factory,
            self._settings.id_allocation_max_attempts,
            "CashLedgerEntry",
        )

    def record_entries_batch(
        self,
        user_id: str,
        items: list[CashEntryCreate],
    ) -> ImportSummary:
        """
        Record a pre-validated batch (e.g. parsed from a broker statement).

        Every item is attempted; failures are collected per row and do not
        stop the remaining items from being recorded.
        """
        summary = ImportSummary(import_batch_id=generate_id("IMPORT"))
        for row, item in enumerate(items, start=1):
            try:
                entry = self.record_entry(
                    user_id,
                    replace(
                        item,
                        source=EntrySource.IMPORT,
                        import_batch_id=summary.import_batch_id,
                    ),
                )
            except AppError as e:
                summary.error_count += 1
                summary.errors.append(f"Row {row}: {e.message}")
                continue
            summary.imported_count += 1
            summary.imported_ids.append(entry.entry_id)

        logger.info(
            "Batch %s for user %s: %d imported, %d failed",
            summary.import_batch_id,
            user_id,
            summary.imported_count,
            summary.error_count,
        )
        return summary

    def get_entry(self, user_id: str, entry_id: str) -> CashLedgerEntry:
        """Get an entry owned by user_id."""
        entry = self._ledger_repo.get_by_id(entry_id)
        if not entry or entry.user_id != user_id:
            raise NotFoundError("CashLedgerEntry", entry_id)
        return entry

    def list_entries(
        self,
        user_id: str,
        entry_types: Optional[list[LedgerEntryType]] = None,
        statuses: Optional[list[LedgerEntryStatus]] = None,
        currency: Optional[str] = None,
        symbol: Optional[str] = None,
        portfolio_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
    ) -> list[CashLedgerEntry]:
        """List a user's entries, newest first."""
        return self._ledger_repo.query(
            user_id=user_id,
            entry_types=entry_types,
            statuses=statuses,
            currency=currency.upper() if currency else None,
            symbol=symbol.upper() if symbol else None,
            portfolio_id=portfolio_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
            newest_first=True,
        )

    def count_entries(
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
        return self._ledger_repo.count(
            user_id=user_id,
            entry_types=entry_types,
            statuses=statuses,
            currency=currency.upper() if currency else None,
            symbol=symbol.upper() if symbol else None,
            portfolio_id=portfolio_id,
            start_date=start_date,
            end_date=end_date,
        )

    def update_entry(
        self,
        user_id: str,
        entry_id: str,
        patch: CashEntryUpdate,
    ) -> CashLedgerEntry:
        """
        Apply an allow-listed patch.

        The merged entry is validated as a whole before anything is written.
        """
        entry = self.get_entry(user_id, entry_id)

        amount = patch.amount if patch.amount is not None else entry.amount
        currency = (
            self._normalize_currency(patch.currency)
            if patch.currency is not None
            else entry.currency
        )
        comment = patch.comment.strip() if patch.comment is not None else entry.comment
        if patch.symbol is not None:
            symbol = patch.symbol.strip().upper() or None
        else:
            symbol = entry.symbol
        notes = patch.notes if patch.notes is not None else entry.notes
        tax = patch.tax if patch.tax is not None else entry.tax

        self._validate_fields(entry.entry_type, amount, currency, comment, symbol, notes, tax)

        if patch.occurred_at is not None:
            entry.occurred_at = to_utc(patch.occurred_at)
        if patch.status is not None:
            entry.status = patch.status
        entry.amount = amount
        entry.currency = currency
        entry.comment = comment
        entry.symbol = symbol
        entry.notes = notes
        entry.tax = tax
        entry.updated_at = now_utc()

        return self._ledger_repo.update(entry)

    def mark_completed(self, user_id: str, entry_id: str) -> CashLedgerEntry:
        """Mark an entry as completed so it counts towards balances."""
        entry = self.get_entry(user_id, entry_id)
        entry.status = LedgerEntryStatus.COMPLETED
        entry.updated_at = now_utc()
        return self._ledger_repo.update(entry)

    def mark_failed(
        self,
        user_id: str,
        entry_id: str,
        reason: Optional[str] = None,
    ) -> CashLedgerEntry:
        """Mark an entry as failed, recording the reason in its notes."""
        entry = self.get_entry(user_id, entry_id)
        entry.status = LedgerEntryStatus.FAILED
        if reason:
            entry.notes = f"{entry.notes}. Failed: {reason}" if entry.notes else f"Failed: {reason}"
        entry.updated_at = now_utc()
        return self._ledger_repo.update(entry)

    def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Remove an entry permanently."""
        self.get_entry(user_id, entry_id)
        self._ledger_repo.delete(entry_id)

    def _normalize_currency(self, currency: Optional[str]) -> str:
        if currency is None or not currency.strip():
            return self._settings.default_currency.upper()
        return currency.strip().upper()

    def _check_portfolio(self, user_id: str, portfolio_id: str) -> None:
        if self._portfolio_directory and not self._portfolio_directory.owns(user_id, portfolio_id):
            raise NotFoundError("Portfolio", portfolio_id)

    @staticmethod
    def _validate_fields(
        entry_type: LedgerEntryType,
        amount: Decimal,
        currency: str,
        comment: str,
        symbol: Optional[str],
        notes: Optional[str],
        tax: Optional[TaxInfo],
    ) -> None:
        """Validate entry fields."""
        if amount is None:
            raise ValidationError("amount is required")
        if entry_type in CALLER_SIGNED_TYPES:
            if amount == 0:
                raise ValidationError(f"{entry_type.value} amount cannot be zero")
        elif amount <= 0:
            raise ValidationError(f"{entry_type.value} requires amount > 0")

        if entry_type == LedgerEntryType.DIVIDEND and not symbol:
            raise ValidationError("Symbol is required for dividend entries")

        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Invalid currency code: {currency}")

        if not comment:
            raise ValidationError("Comment is required")
        if len(comment) > COMMENT_MAX_LENGTH:
            raise ValidationError(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")

        if notes and len(notes) > NOTES_MAX_LENGTH:
            raise ValidationError(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")

        if tax is not None:
            if tax.tax_rate is not None and not (0 <= tax.tax_rate <= 100):
                raise ValidationError("Tax rate must be between 0 and 100")
            if tax.tax_amount is not None and tax.tax_amount < 0:
                raise ValidationError("Tax amount cannot be negative")
