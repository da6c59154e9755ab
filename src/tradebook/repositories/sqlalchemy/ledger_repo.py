"""SQLAlchemy implementation of LedgerRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tradebook.core.exceptions import DuplicateIdError, NotFoundError
from tradebook.core.timezone import from_storage, to_storage
from tradebook.domain.models import (
    CashLedgerEntry,
    LedgerEntryStatus,
    LedgerEntryType,
    TaxInfo,
)
from tradebook.repositories.sqlalchemy.convert import to_decimal
from tradebook.repositories.sqlalchemy.orm_models import CashLedgerEntryORM


class SqlAlchemyLedgerRepository:
    """SQLAlchemy-backed cash ledger repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, entry: CashLedgerEntry) -> CashLedgerEntry:
        """Persist a new entry."""
        orm_entry = self._to_orm(entry)
        self._db.add(orm_entry)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise DuplicateIdError("CashLedgerEntry", entry.entry_id)
        self._db.refresh(orm_entry)
        return self._to_domain(orm_entry)

    def get_by_id(self, entry_id: str) -> Optional[CashLedgerEntry]:
        """Retrieve entry by ID."""
        orm_entry = self._db.query(CashLedgerEntryORM).filter(
            CashLedgerEntryORM.entry_id == entry_id
        ).first()
        return self._to_domain(orm_entry) if orm_entry else None

    def update(self, entry: CashLedgerEntry) -> CashLedgerEntry:
        """Update an existing entry."""
        orm_entry = self._db.query(CashLedgerEntryORM).filter(
            CashLedgerEntryORM.entry_id == entry.entry_id
        ).first()
        if not orm_entry:
            raise NotFoundError("CashLedgerEntry", entry.entry_id)

        orm_entry.portfolio_id = entry.portfolio_id
        orm_entry.entry_type = entry.entry_type
        orm_entry.amount = entry.amount
        orm_entry.currency = entry.currency
        orm_entry.occurred_at = to_storage(entry.occurred_at)
        orm_entry.status = entry.status
        orm_entry.comment = entry.comment
        orm_entry.symbol = entry.symbol
        self._apply_tax(orm_entry, entry.tax)
        orm_entry.notes = entry.notes
        orm_entry.source = entry.source
        orm_entry.updated_at = to_storage(entry.updated_at) or datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_entry)
        return self._to_domain(orm_entry)

    def delete(self, entry_id: str) -> bool:
        """Remove an entry (hard delete)."""
        deleted = self._db.query(CashLedgerEntryORM).filter(
            CashLedgerEntryORM.entry_id == entry_id
        ).delete()
        self._db.commit()
        return deleted > 0

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
        query = self._db.query(CashLedgerEntryORM).filter(
            and_(*self._conditions(
                user_id, entry_types, statuses, currency, symbol,
                portfolio_id, start_date, end_date,
            ))
        )
        if newest_first:
            query = query.order_by(CashLedgerEntryORM.occurred_at.desc())
        else:
            query = query.order_by(CashLedgerEntryORM.occurred_at)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(e) for e in query.all()]

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
        return self._db.query(CashLedgerEntryORM).filter(
            and_(*self._conditions(
                user_id, entry_types, statuses, currency, symbol,
                portfolio_id, start_date, end_date,
            ))
        ).count()

    @staticmethod
    def _conditions(
        user_id: str,
        entry_types: Optional[list[LedgerEntryType]],
        statuses: Optional[list[LedgerEntryStatus]],
        currency: Optional[str],
        symbol: Optional[str],
        portfolio_id: Optional[str],
        start_date: Optional[datetime],
        end_date: Optional[datetime],
    ) -> list:
        conditions = [CashLedgerEntryORM.user_id == user_id]
        if entry_types:
            conditions.append(CashLedgerEntryORM.entry_type.in_(entry_types))
        if statuses:
            conditions.append(CashLedgerEntryORM.status.in_(statuses))
        if currency:
            conditions.append(CashLedgerEntryORM.currency == currency)
        if symbol:
            conditions.append(CashLedgerEntryORM.symbol == symbol)
        if portfolio_id:
            conditions.append(CashLedgerEntryORM.portfolio_id == portfolio_id)
        if start_date:
            conditions.append(CashLedgerEntryORM.occurred_at >= to_storage(start_date))
        if end_date:
            conditions.append(CashLedgerEntryORM.occurred_at <= to_storage(end_date))
        return conditions

    @staticmethod
    def _apply_tax(orm_entry: CashLedgerEntryORM, tax: Optional[TaxInfo]) -> None:
        if tax is None:
            orm_entry.tax_taxable = None
            orm_entry.tax_rate = None
            orm_entry.tax_amount = None
        else:
            orm_entry.tax_taxable = tax.taxable
            orm_entry.tax_rate = tax.tax_rate
            orm_entry.tax_amount = tax.tax_amount

    def _to_orm(self, entry: CashLedgerEntry) -> CashLedgerEntryORM:
        """Convert domain model to ORM model."""
        orm_entry = CashLedgerEntryORM(
            entry_id=entry.entry_id,
            user_id=entry.user_id,
            portfolio_id=entry.portfolio_id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            currency=entry.currency,
            occurred_at=to_storage(entry.occurred_at),
            status=entry.status,
            comment=entry.comment,
            symbol=entry.symbol,
            notes=entry.notes,
            source=entry.source,
            import_batch_id=entry.import_batch_id,
            created_at=to_storage(entry.created_at) or datetime.utcnow(),
            updated_at=to_storage(entry.updated_at),
        )
        self._apply_tax(orm_entry, entry.tax)
        return orm_entry

    @staticmethod
    def _to_domain(orm: CashLedgerEntryORM) -> CashLedgerEntry:
        """Convert ORM model to domain model."""
        tax = None
        if orm.tax_taxable is not None:
            tax = TaxInfo(
                taxable=orm.tax_taxable,
                tax_rate=to_decimal(orm.tax_rate),
                tax_amount=to_decimal(orm.tax_amount, Decimal("0")),
            )
        return CashLedgerEntry(
            entry_id=orm.entry_id,
            user_id=orm.user_id,
            portfolio_id=orm.portfolio_id,
            entry_type=orm.entry_type,
            amount=to_decimal(orm.amount),
            currency=orm.currency,
            occurred_at=from_storage(orm.occurred_at),
            status=orm.status,
            comment=orm.comment,
            symbol=orm.symbol,
            tax=tax,
            notes=orm.notes,
            source=orm.source,
            import_batch_id=orm.import_batch_id,
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
