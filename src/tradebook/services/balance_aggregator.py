"""Balance aggregation over cash ledger entries."""

import calendar
from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from tradebook.core.exceptions import ValidationError
from tradebook.core.timezone import UTC, to_utc
from tradebook.domain.models import CashLedgerEntry, LedgerEntryStatus, LedgerEntryType
from tradebook.domain.views import (
    CashFlowItem,
    CurrencyBalance,
    MonthlyCurrencySummary,
    TypeTotal,
)
from tradebook.repositories.protocols import LedgerRepository


class BalanceAggregator:
    """
    Read-only aggregation of ledger entries into balances and summaries.

    Sign convention: deposit, dividend, interest and bonus add their amount;
    withdrawal and fee subtract it; transfer and adjustment contribute their
    stored (caller-signed) amount. Currencies are never converted.
    """

    def __init__(self, ledger_repo: LedgerRepository):
        self._ledger_repo = ledger_repo

    def compute_balances(
        self,
        user_id: str,
        currency: Optional[str] = None,
        up_to_date: Optional[datetime] = None,
        status: Optional[LedgerEntryStatus] = LedgerEntryStatus.COMPLETED,
    ) -> dict[str, CurrencyBalance]:
        """
        Compute per-currency balances.

        Args:
            user_id: Owner of the entries
            currency: Restrict to one currency code
            up_to_date: Only entries with occurred_at <= this instant
            status: Only entries in this status; None includes every status

        Returns:
            Mapping currency -> CurrencyBalance, ordered by currency code.
            With a currency filter and no entries, that currency maps to a
            zero balance.
        """
        currency = currency.upper() if currency else None
        entries = self._ledger_repo.query(
            user_id=user_id,
            statuses=[status] if status else None,
            currency=currency,
            end_date=up_to_date,
        )

        balances: dict[str, CurrencyBalance] = {}
        for entry in entries:
            bucket = balances.setdefault(entry.currency, CurrencyBalance(currency=entry.currency))
            contribution = entry.signed_amount
            bucket.balance += contribution
            if contribution >= 0:
                bucket.total_inflow += contribution
            else:
                bucket.total_outflow += -contribution
            bucket.count += 1

        if currency and currency not in balances:
            balances[currency] = CurrencyBalance(currency=currency)

        return {code: balances[code] for code in sorted(balances)}

    def get_balance(
        self,
        user_id: str,
        currency: str,
        up_to_date: Optional[datetime] = None,
    ) -> Decimal:
        """Completed balance of a single currency."""
        return self.compute_balances(user_id, currency=currency, up_to_date=up_to_date)[
            currency.upper()
        ].balance

    def cash_flow_summary(
        self,
        user_id: str,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> list[CashFlowItem]:
        """Signed totals per day, entry type and currency for completed entries."""
        entries = self._ledger_repo.query(
            user_id=user_id,
            statuses=[LedgerEntryStatus.COMPLETED],
            start_date=since,
            end_date=until,
        )

        totals: dict[tuple[date, LedgerEntryType, str], list] = defaultdict(
            lambda: [Decimal("0"), 0]
        )
        for entry in entries:
            key = (to_utc(entry.occurred_at).date(), entry.entry_type, entry.currency)
            totals[key][0] += entry.signed_amount
            totals[key][1] += 1

        return [
            CashFlowItem(
                day=day,
                entry_type=entry_type,
                currency=code,
                total_amount=amount,
                count=count,
            )
            for (day, entry_type, code), (amount, count) in sorted(
                totals.items(), key=lambda item: (item[0][0], item[0][1].value, item[0][2])
            )
        ]

    def monthly_summary(
        self,
        user_id: str,
        year: int,
        month: int,
    ) -> list[MonthlyCurrencySummary]:
        """Per-currency, per-type breakdown of completed entries in one UTC month."""
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")

        last_day = calendar.monthrange(year, month)[1]
        start = UTC.localize(datetime(year, month, 1))
        end = UTC.localize(datetime.combine(date(year, month, last_day), time.max))

        entries = self._ledger_repo.query(
            user_id=user_id,
            statuses=[LedgerEntryStatus.COMPLETED],
            start_date=start,
            end_date=end,
        )
        return self._summarize_by_currency(entries)

    @staticmethod
    def _summarize_by_currency(entries: list[CashLedgerEntry]) -> list[MonthlyCurrencySummary]:
        grouped: dict[str, dict[LedgerEntryType, list]] = defaultdict(
            lambda: defaultdict(lambda: [Decimal("0"), 0])
        )
        for entry in entries:
            slot = grouped[entry.currency][entry.entry_type]
            slot[0] += entry.signed_amount
            slot[1] += 1

        summaries = []
        for code in sorted(grouped):
            operations = [
                TypeTotal(entry_type=entry_type, total_amount=amount, count=count)
                for entry_type, (amount, count) in sorted(
                    grouped[code].items(), key=lambda item: item[0].value
                )
            ]
            summaries.append(
                MonthlyCurrencySummary(
                    currency=code,
                    operations=operations,
                    total_flow=sum((op.total_amount for op in operations), Decimal("0")),
                )
            )
        return summaries
