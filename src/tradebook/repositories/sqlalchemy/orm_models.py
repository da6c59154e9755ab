"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Integer,
    Text,
    Index,
    Enum as SqlEnum,
)

from tradebook.repositories.sqlalchemy.convert import DecimalText
from tradebook.repositories.sqlalchemy.database import Base
from tradebook.domain.models.enums import (
    EntrySource,
    LedgerEntryStatus,
    LedgerEntryType,
    OrderKind,
    OrderStatus,
    PositionSource,
    PositionStatus,
    Side,
    TimeInForce,
)


class CashLedgerEntryORM(Base):
    """SQLAlchemy model for CashLedgerEntry."""

    __tablename__ = "cash_ledger_entries"
    __table_args__ = (
        Index("ix_cash_ledger_user_time", "user_id", "occurred_at"),
    )

    entry_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    portfolio_id = Column(String(64), nullable=True, index=True)
    entry_type = Column(SqlEnum(LedgerEntryType), nullable=False)
    amount = Column(DecimalText(8), nullable=False)
    currency = Column(String(3), nullable=False)
    occurred_at = Column(DateTime, nullable=False)
    status = Column(
        SqlEnum(LedgerEntryStatus),
        default=LedgerEntryStatus.COMPLETED,
        nullable=False,
    )
    comment = Column(String(200), nullable=False)
    symbol = Column(String(20), nullable=True)
    tax_taxable = Column(Boolean, nullable=True)
    tax_rate = Column(DecimalText(4), nullable=True)
    tax_amount = Column(DecimalText(8), nullable=True)
    notes = Column(Text, nullable=True)
    source = Column(SqlEnum(EntrySource), default=EntrySource.MANUAL, nullable=False)
    import_batch_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)


class PositionORM(Base):
    """SQLAlchemy model for Position."""

    __tablename__ = "positions"
    __table_args__ = (
        Index("ix_positions_user_status", "user_id", "status"),
    )

    position_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    portfolio_id = Column(String(64), nullable=True, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(100), nullable=True)
    side = Column(SqlEnum(Side), nullable=False)
    volume = Column(DecimalText(8), nullable=False)
    open_time = Column(DateTime, nullable=False)
    open_price = Column(DecimalText(8), nullable=False)
    close_time = Column(DateTime, nullable=True)
    close_price = Column(DecimalText(8), nullable=True)
    current_price = Column(DecimalText(8), nullable=False)
    purchase_value = Column(DecimalText(8), default=Decimal("0"))
    sale_value = Column(DecimalText(8), nullable=True)
    commission = Column(DecimalText(8), default=Decimal("0"))
    swap = Column(DecimalText(8), default=Decimal("0"))
    taxes = Column(DecimalText(8), default=Decimal("0"))
    currency = Column(String(3), nullable=False)
    status = Column(SqlEnum(PositionStatus), default=PositionStatus.OPEN, nullable=False)
    gross_pl = Column(DecimalText(8), default=Decimal("0"))
    net_pl = Column(DecimalText(8), default=Decimal("0"))
    notes = Column(Text, nullable=True)
    source = Column(SqlEnum(PositionSource), default=PositionSource.MANUAL, nullable=False)
    last_price_update = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)


class PendingOrderORM(Base):
    """SQLAlchemy model for PendingOrder (execution sub-record flattened)."""

    __tablename__ = "pending_orders"
    __table_args__ = (
        Index("ix_pending_orders_status_expiry", "status", "expiry_time"),
    )

    order_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    portfolio_id = Column(String(64), nullable=True, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(100), nullable=True)
    kind = Column(SqlEnum(OrderKind), nullable=False)
    side = Column(SqlEnum(Side), nullable=False)
    volume = Column(DecimalText(8), nullable=False)
    original_volume = Column(DecimalText(8), nullable=False)
    price = Column(DecimalText(8), nullable=True)
    stop_price = Column(DecimalText(8), nullable=True)
    trailing_amount = Column(DecimalText(8), nullable=True)
    trailing_percent = Column(DecimalText(4), nullable=True)
    time_in_force = Column(SqlEnum(TimeInForce), default=TimeInForce.GTC, nullable=False)
    purchase_value = Column(DecimalText(8), default=Decimal("0"))
    currency = Column(String(3), nullable=False)
    open_time = Column(DateTime, nullable=False)
    expiry_time = Column(DateTime, nullable=True)
    status = Column(SqlEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    executed_price = Column(DecimalText(8), nullable=True)
    executed_volume = Column(DecimalText(8), default=Decimal("0"))
    execution_commission = Column(DecimalText(8), default=Decimal("0"))
    execution_fees = Column(DecimalText(8), default=Decimal("0"))
    executed_time = Column(DateTime, nullable=True)
    resulting_position_id = Column(String(64), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
