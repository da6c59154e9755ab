"""
Unit tests for LedgerService.

Tests cover:
- Recording entries of every type
- Validation errors
- Batch recording with per-row error collection
- Edits, status changes and deletion
- Ownership checks
"""

import pytest
from decimal import Decimal

from tradebook.services import LedgerService
from tradebook.services.ledger_service import CashEntryCreate, CashEntryUpdate
from tradebook.domain.models import (
    EntrySource,
    LedgerEntryStatus,
    LedgerEntryType,
    TaxInfo,
)
from tradebook.core.exceptions import ConflictError, NotFoundError, ValidationError

from tests.conftest import (
    OTHER_PORTFOLIO_ID,
    OTHER_USER_ID,
    PORTFOLIO_ID,
    SequenceIdFactory,
    USER_ID,
    utc_datetime,
)


# =============================================================================
# RECORD ENTRY TESTS
# =============================================================================


class TestRecordEntry:
    """Tests for recording single entries."""

    def test_record_deposit(self, ledger_service: LedgerService):
        """
        GIVEN an empty ledger
        WHEN a 1000 PLN deposit is recorded
        THEN it is persisted with a CASH id and completed status
        """
        entry = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.DEPOSIT,
                amount=Decimal("1000"),
                currency="pln",
                comment="  Initial funding  ",
                occurred_at=utc_datetime(2024, 6, 1),
            ),
        )

        assert entry.entry_id.startswith("CASH_")
        assert entry.user_id == USER_ID
        assert entry.currency == "PLN"
        assert entry.comment == "Initial funding"
        assert entry.amount == Decimal("1000")
        assert entry.status == LedgerEntryStatus.COMPLETED
        assert entry.source == EntrySource.MANUAL
        assert entry.occurred_at == utc_datetime(2024, 6, 1)

        stored = ledger_service.get_entry(USER_ID, entry.entry_id)
        assert stored.amount == Decimal("1000")

    def test_currency_defaults_from_settings(self, ledger_service: LedgerService):
        entry = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.INTEREST,
                amount=Decimal("1.5"),
                comment="interest",
            ),
        )

        assert entry.currency == "PLN"
        assert entry.occurred_at is not None

    def test_dividend_with_tax(self, ledger_service: LedgerService):
        """
        GIVEN a dividend with withheld tax
        WHEN it is recorded
        THEN symbol is upper-cased and tax info round-trips unchanged
        """
        entry = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.DIVIDEND,
                amount=Decimal("8.50"),
                currency="USD",
                symbol="msft",
                comment="Q2 dividend",
                tax=TaxInfo(taxable=True, tax_rate=Decimal("15"), tax_amount=Decimal("1.50")),
            ),
        )

        stored = ledger_service.get_entry(USER_ID, entry.entry_id)
        assert stored.symbol == "MSFT"
        assert stored.tax is not None
        assert stored.tax.taxable is True
        assert stored.tax.tax_rate == Decimal("15")
        assert stored.tax.tax_amount == Decimal("1.50")

    def test_negative_transfer_is_accepted(self, ledger_service: LedgerService):
        entry = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.TRANSFER,
                amount=Decimal("-250"),
                comment="to savings",
            ),
        )

        assert entry.amount == Decimal("-250")
        assert entry.signed_amount == Decimal("-250")

    def test_entry_with_owned_portfolio(self, ledger_service: LedgerService):
        entry = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.DEPOSIT,
                amount=Decimal("10"),
                comment="funding",
                portfolio_id=PORTFOLIO_ID,
            ),
        )

        assert entry.portfolio_id == PORTFOLIO_ID

    def test_entry_with_foreign_portfolio_is_not_found(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.DEPOSIT,
                    amount=Decimal("10"),
                    comment="funding",
                    portfolio_id=OTHER_PORTFOLIO_ID,
                ),
            )

    def test_id_collision_is_retried(self, ledger_repo, test_settings):
        """
        GIVEN an id factory that hands out an already used id first
        WHEN a second entry is recorded
        THEN the collision is retried with a fresh id
        """
        ids = SequenceIdFactory(["CASH_A", "CASH_A", "CASH_B"])
        service = LedgerService(ledger_repo=ledger_repo, id_factory=ids, settings=test_settings)
        data = CashEntryCreate(
            entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("1"), comment="x"
        )

        first = service.record_entry(USER_ID, data)
        second = service.record_entry(USER_ID, data)

        assert first.entry_id == "CASH_A"
        assert second.entry_id == "CASH_B"
        assert ids.calls == 3

    def test_id_collisions_past_cap_raise_conflict(self, ledger_repo, test_settings):
        ids = SequenceIdFactory(["CASH_A"] * 10)
        service = LedgerService(ledger_repo=ledger_repo, id_factory=ids, settings=test_settings)
        data = CashEntryCreate(
            entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("1"), comment="x"
        )
        service.record_entry(USER_ID, data)

        with pytest.raises(ConflictError):
            service.record_entry(USER_ID, data)
        assert ids.calls == 1 + test_settings.id_allocation_max_attempts


# =============================================================================
# VALIDATION TESTS
# =============================================================================


class TestValidation:
    """Tests for entry validation rules."""

    @pytest.mark.parametrize(
        "entry_type,amount",
        [
            (LedgerEntryType.DEPOSIT, "0"),
            (LedgerEntryType.DEPOSIT, "-5"),
            (LedgerEntryType.WITHDRAWAL, "-5"),
            (LedgerEntryType.FEE, "0"),
            (LedgerEntryType.TRANSFER, "0"),
            (LedgerEntryType.ADJUSTMENT, "0"),
        ],
    )
    def test_invalid_amounts(self, ledger_service: LedgerService, entry_type, amount):
        with pytest.raises(ValidationError):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(entry_type=entry_type, amount=Decimal(amount), comment="x"),
            )

    def test_dividend_requires_symbol(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError, match="Symbol"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.DIVIDEND, amount=Decimal("5"), comment="div"
                ),
            )

    @pytest.mark.parametrize("currency", ["US", "EURO", "U5D"])
    def test_invalid_currency(self, ledger_service: LedgerService, currency):
        with pytest.raises(ValidationError, match="currency"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.DEPOSIT,
                    amount=Decimal("5"),
                    comment="x",
                    currency=currency,
                ),
            )

    def test_comment_required(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError, match="Comment"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("5"), comment="   "),
            )

    def test_comment_too_long(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError, match="200"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("5"), comment="x" * 201
                ),
            )

    def test_notes_too_long(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError, match="500"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.DEPOSIT,
                    amount=Decimal("5"),
                    comment="x",
                    notes="n" * 501,
                ),
            )

    @pytest.mark.parametrize(
        "tax",
        [
            TaxInfo(taxable=True, tax_rate=Decimal("101")),
            TaxInfo(taxable=True, tax_rate=Decimal("-1")),
            TaxInfo(taxable=True, tax_amount=Decimal("-0.01")),
        ],
    )
    def test_invalid_tax(self, ledger_service: LedgerService, tax):
        with pytest.raises(ValidationError, match="Tax"):
            ledger_service.record_entry(
                USER_ID,
                CashEntryCreate(
                    entry_type=LedgerEntryType.INTEREST,
                    amount=Decimal("5"),
                    comment="x",
                    tax=tax,
                ),
            )


# =============================================================================
# BATCH TESTS
# =============================================================================


class TestBatch:
    """Tests for record_entries_batch."""

    def test_batch_collects_row_errors_and_continues(self, ledger_service: LedgerService):
        """
        GIVEN three rows where the second has a zero amount
        WHEN the batch is recorded
        THEN rows 1 and 3 are stored as imports and row 2 is reported
        """
        items = [
            CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("100"), comment="a"),
            CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("0"), comment="b"),
            CashEntryCreate(entry_type=LedgerEntryType.FEE, amount=Decimal("2"), comment="c"),
        ]

        summary = ledger_service.record_entries_batch(USER_ID, items)

        assert summary.imported_count == 2
        assert summary.error_count == 1
        assert summary.errors[0].startswith("Row 2:")
        assert summary.import_batch_id.startswith("IMPORT_")
        assert len(summary.imported_ids) == 2
        for entry_id in summary.imported_ids:
            assert ledger_service.get_entry(USER_ID, entry_id).source == EntrySource.IMPORT

    def test_batch_entries_carry_batch_id(self, ledger_service: LedgerService):
        """
        GIVEN two batches and one manual entry
        WHEN they are recorded
        THEN each imported entry stores its own batch's id and the manual one has none
        """
        first = ledger_service.record_entries_batch(
            USER_ID,
            [
                CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("10"), comment="a"),
                CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("20"), comment="b"),
            ],
        )
        second = ledger_service.record_entries_batch(
            USER_ID,
            [CashEntryCreate(entry_type=LedgerEntryType.FEE, amount=Decimal("1"), comment="c")],
        )
        manual = ledger_service.record_entry(
            USER_ID,
            CashEntryCreate(entry_type=LedgerEntryType.DEPOSIT, amount=Decimal("5"), comment="m"),
        )

        assert first.import_batch_id != second.import_batch_id
        for entry_id in first.imported_ids:
            assert ledger_service.get_entry(USER_ID, entry_id).import_batch_id == first.import_batch_id
        only = ledger_service.get_entry(USER_ID, second.imported_ids[0])
        assert only.import_batch_id == second.import_batch_id
        assert manual.import_batch_id is None

    def test_empty_batch(self, ledger_service: LedgerService):
        summary = ledger_service.record_entries_batch(USER_ID, [])

        assert summary.imported_count == 0
        assert summary.error_count == 0
        assert summary.errors == []


# =============================================================================
# READ, EDIT AND DELETE TESTS
# =============================================================================


class TestEntryMaintenance:
    """Tests for listing, editing, status changes and deletion."""

    def test_get_entry_of_other_user_is_not_found(self, ledger_service, entry_factory):
        entry = entry_factory()

        with pytest.raises(NotFoundError):
            ledger_service.get_entry(OTHER_USER_ID, entry.entry_id)

    def test_get_missing_entry(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.get_entry(USER_ID, "CASH_missing")

    def test_list_entries_newest_first_with_filters(self, ledger_service, entry_factory):
        entry_factory(LedgerEntryType.DEPOSIT, occurred_at=utc_datetime(2024, 6, 1))
        entry_factory(LedgerEntryType.FEE, Decimal("1"), occurred_at=utc_datetime(2024, 6, 3))
        entry_factory(LedgerEntryType.DEPOSIT, currency="USD", occurred_at=utc_datetime(2024, 6, 2))
        entry_factory(LedgerEntryType.DEPOSIT, user_id=OTHER_USER_ID)

        entries = ledger_service.list_entries(USER_ID)
        deposits = ledger_service.list_entries(USER_ID, entry_types=[LedgerEntryType.DEPOSIT])
        usd = ledger_service.list_entries(USER_ID, currency="usd")

        assert [e.occurred_at.day for e in entries] == [3, 2, 1]
        assert len(deposits) == 2
        assert len(usd) == 1
        assert ledger_service.count_entries(USER_ID) == 3
        assert ledger_service.count_entries(USER_ID, statuses=[LedgerEntryStatus.PENDING]) == 0

    def test_list_entries_date_range(self, ledger_service, entry_factory):
        entry_factory(occurred_at=utc_datetime(2024, 5, 31))
        entry_factory(occurred_at=utc_datetime(2024, 6, 15))
        entry_factory(occurred_at=utc_datetime(2024, 7, 1))

        entries = ledger_service.list_entries(
            USER_ID,
            start_date=utc_datetime(2024, 6, 1, 0),
            end_date=utc_datetime(2024, 6, 30, 23),
        )

        assert len(entries) == 1
        assert entries[0].occurred_at == utc_datetime(2024, 6, 15)

    def test_update_entry(self, ledger_service, entry_factory):
        entry = entry_factory(amount=Decimal("100"))

        updated = ledger_service.update_entry(
            USER_ID,
            entry.entry_id,
            CashEntryUpdate(amount=Decimal("120"), comment="corrected", currency="eur"),
        )

        assert updated.amount == Decimal("120")
        assert updated.comment == "corrected"
        assert updated.currency == "EUR"
        assert updated.entry_type == LedgerEntryType.DEPOSIT
        assert updated.updated_at is not None

    def test_update_entry_revalidates_merged_state(self, ledger_service, entry_factory):
        """
        GIVEN a deposit of 100
        WHEN its amount is patched to -100
        THEN validation fails and the stored entry is unchanged
        """
        entry = entry_factory(amount=Decimal("100"))

        with pytest.raises(ValidationError):
            ledger_service.update_entry(
                USER_ID, entry.entry_id, CashEntryUpdate(amount=Decimal("-100"))
            )

        assert ledger_service.get_entry(USER_ID, entry.entry_id).amount == Decimal("100")

    def test_update_entry_of_other_user(self, ledger_service, entry_factory):
        entry = entry_factory()

        with pytest.raises(NotFoundError):
            ledger_service.update_entry(
                OTHER_USER_ID, entry.entry_id, CashEntryUpdate(comment="mine now")
            )

    def test_mark_completed(self, ledger_service, entry_factory):
        entry = entry_factory(status=LedgerEntryStatus.PENDING)

        completed = ledger_service.mark_completed(USER_ID, entry.entry_id)

        assert completed.status == LedgerEntryStatus.COMPLETED

    def test_mark_failed_appends_reason(self, ledger_service, entry_factory):
        entry = entry_factory(status=LedgerEntryStatus.PENDING)

        failed = ledger_service.mark_failed(USER_ID, entry.entry_id, "bank rejected")
        again = ledger_service.mark_failed(USER_ID, entry.entry_id, "retry rejected")

        assert failed.status == LedgerEntryStatus.FAILED
        assert failed.notes == "Failed: bank rejected"
        assert again.notes == "Failed: bank rejected. Failed: retry rejected"

    def test_delete_entry(self, ledger_service, entry_factory):
        entry = entry_factory()

        ledger_service.delete_entry(USER_ID, entry.entry_id)

        with pytest.raises(NotFoundError):
            ledger_service.get_entry(USER_ID, entry.entry_id)

    def test_delete_entry_of_other_user_keeps_it(self, ledger_service, entry_factory):
        entry = entry_factory()

        with pytest.raises(NotFoundError):
            ledger_service.delete_entry(OTHER_USER_ID, entry.entry_id)

        assert ledger_service.get_entry(USER_ID, entry.entry_id) is not None
