"""
Pytest configuration and fixtures for tradebook tests.

This module provides:
- In-memory SQLite database fixtures
- Repository and service fixtures
- Factory helpers for ledger entries, positions and orders
- Deterministic id factories and a failing position service
- Time helpers for UTC
"""

import os
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

# Keep the app's lifespan hook away from the user's real data directory.
os.environ.setdefault("TRADEBOOK_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from tradebook.main import app
from tradebook.api.deps import get_portfolio_directory
from tradebook.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from tradebook.repositories.sqlalchemy import orm_models  # noqa: F401
from tradebook.repositories.sqlalchemy import (
    SqlAlchemyLedgerRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyOrderRepository,
)
from tradebook.providers.portfolio_directory import InMemoryPortfolioDirectory
from tradebook.services import (
    LedgerService,
    BalanceAggregator,
    PositionService,
    OrderService,
)
from tradebook.services.ledger_service import CashEntryCreate
from tradebook.services.position_service import PositionCreate
from tradebook.services.order_service import OrderCreate
from tradebook.domain.models import (
    CashLedgerEntry,
    LedgerEntryStatus,
    LedgerEntryType,
    OrderKind,
    PendingOrder,
    Position,
    Side,
    TimeInForce,
)
from tradebook.core.exceptions import AppError
from tradebook.core.timezone import UTC
from tradebook.config.settings import Settings, reset_settings


USER_ID = "user-1"
OTHER_USER_ID = "user-2"
PORTFOLIO_ID = "pf-1"
OTHER_PORTFOLIO_ID = "pf-2"


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create an aware UTC datetime."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return utc_datetime(2024, 6, 15, 14, 30, 0)


# =============================================================================
# ID HELPERS
# =============================================================================


class SequenceIdFactory:
    """Hands out ids from a fixed sequence, then falls back to a counter."""

    def __init__(self, ids: Iterable[str], prefix: str = "TEST"):
        self._ids = list(ids)
        self._prefix = prefix
        self._counter = 0
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self._ids:
            return self._ids.pop(0)
        self._counter += 1
        return f"{self._prefix}_{self._counter}"


class FailingPositionService:
    """Position service stand-in whose open_position always fails."""

    def __init__(self, error: Optional[Exception] = None):
        self._error = error or AppError("position store unavailable", code="STORE_ERROR")
        self.open_calls = 0

    def open_position(self, user_id: str, data: PositionCreate) -> Position:
        self.open_calls += 1
        raise self._error


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with explicit defaults, independent of the environment."""
    return Settings(
        database_url="sqlite://",
        default_currency="PLN",
        id_allocation_max_attempts=5,
    )


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def ledger_repo(test_session) -> SqlAlchemyLedgerRepository:
    """Provide test LedgerRepository."""
    return SqlAlchemyLedgerRepository(test_session)


@pytest.fixture
def position_repo(test_session) -> SqlAlchemyPositionRepository:
    """Provide test PositionRepository."""
    return SqlAlchemyPositionRepository(test_session)


@pytest.fixture
def order_repo(test_session) -> SqlAlchemyOrderRepository:
    """Provide test OrderRepository."""
    return SqlAlchemyOrderRepository(test_session)


@pytest.fixture
def portfolio_directory() -> InMemoryPortfolioDirectory:
    """Each user owns exactly one portfolio."""
    return InMemoryPortfolioDirectory(
        {
            USER_ID: {PORTFOLIO_ID},
            OTHER_USER_ID: {OTHER_PORTFOLIO_ID},
        }
    )


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def ledger_service(ledger_repo, portfolio_directory, test_settings) -> LedgerService:
    """Provide test LedgerService."""
    return LedgerService(
        ledger_repo=ledger_repo,
        portfolio_directory=portfolio_directory,
        settings=test_settings,
    )


@pytest.fixture
def balance_aggregator(ledger_repo) -> BalanceAggregator:
    """Provide test BalanceAggregator."""
    return BalanceAggregator(ledger_repo=ledger_repo)


@pytest.fixture
def position_service(position_repo, portfolio_directory, test_settings) -> PositionService:
    """Provide test PositionService."""
    return PositionService(
        position_repo=position_repo,
        portfolio_directory=portfolio_directory,
        settings=test_settings,
    )


@pytest.fixture
def order_service(
    order_repo,
    position_service,
    portfolio_directory,
    test_settings,
) -> OrderService:
    """Provide test OrderService wired to the real PositionService."""
    return OrderService(
        order_repo=order_repo,
        position_service=position_service,
        portfolio_directory=portfolio_directory,
        settings=test_settings,
    )


@pytest.fixture
def failing_position_service() -> FailingPositionService:
    return FailingPositionService()


@pytest.fixture
def order_service_failing_positions(
    order_repo,
    failing_position_service,
    portfolio_directory,
    test_settings,
) -> OrderService:
    """OrderService whose position side effect always fails."""
    return OrderService(
        order_repo=order_repo,
        position_service=failing_position_service,
        portfolio_directory=portfolio_directory,
        settings=test_settings,
    )


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def entry_factory(ledger_service) -> Callable[..., CashLedgerEntry]:
    """Factory for recording test ledger entries."""

    def _create_entry(
        entry_type: LedgerEntryType = LedgerEntryType.DEPOSIT,
        amount: Decimal = Decimal("100"),
        currency: Optional[str] = "PLN",
        occurred_at: Optional[datetime] = None,
        status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED,
        symbol: Optional[str] = None,
        comment: str = "test entry",
        user_id: str = USER_ID,
    ) -> CashLedgerEntry:
        if entry_type == LedgerEntryType.DIVIDEND and symbol is None:
            symbol = "AAPL"
        return ledger_service.record_entry(
            user_id,
            CashEntryCreate(
                entry_type=entry_type,
                amount=amount,
                comment=comment,
                currency=currency,
                occurred_at=occurred_at or utc_datetime(2024, 6, 1),
                status=status,
                symbol=symbol,
            ),
        )

    return _create_entry


@pytest.fixture
def position_factory(position_service) -> Callable[..., Position]:
    """Factory for opening test positions."""

    def _open_position(
        symbol: str = "AAPL",
        side: Side = Side.BUY,
        volume: Decimal = Decimal("10"),
        open_price: Decimal = Decimal("100"),
        commission: Decimal = Decimal("0"),
        swap: Decimal = Decimal("0"),
        taxes: Decimal = Decimal("0"),
        currency: Optional[str] = "USD",
        open_time: Optional[datetime] = None,
        portfolio_id: Optional[str] = None,
        user_id: str = USER_ID,
    ) -> Position:
        return position_service.open_position(
            user_id,
            PositionCreate(
                symbol=symbol,
                side=side,
                volume=volume,
                open_price=open_price,
                commission=commission,
                swap=swap,
                taxes=taxes,
                currency=currency,
                open_time=open_time or utc_datetime(2024, 6, 3),
                portfolio_id=portfolio_id,
            ),
        )

    return _open_position


@pytest.fixture
def order_factory(order_service) -> Callable[..., PendingOrder]:
    """Factory for placing test orders (limit BUY by default)."""

    def _create_order(
        symbol: str = "AAPL",
        kind: OrderKind = OrderKind.LIMIT,
        side: Side = Side.BUY,
        volume: Decimal = Decimal("100"),
        price: Optional[Decimal] = Decimal("10"),
        stop_price: Optional[Decimal] = None,
        time_in_force: TimeInForce = TimeInForce.GTC,
        expiry_time: Optional[datetime] = None,
        open_time: Optional[datetime] = None,
        currency: Optional[str] = "USD",
        user_id: str = USER_ID,
    ) -> PendingOrder:
        return order_service.create_order(
            user_id,
            OrderCreate(
                symbol=symbol,
                kind=kind,
                side=side,
                volume=volume,
                price=price,
                stop_price=stop_price,
                time_in_force=time_in_force,
                expiry_time=expiry_time,
                open_time=open_time or utc_datetime(2024, 6, 3),
                currency=currency,
            ),
        )

    return _create_order


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, portfolio_directory) -> TestClient:
    """Provide FastAPI test client with test database."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_portfolio_directory] = lambda: portfolio_directory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return {"X-User-Id": OTHER_USER_ID}


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(actual, expected: Decimal) -> None:
    """Assert a Decimal (or its JSON string form) equals expected exactly."""
    assert Decimal(str(actual)) == expected, f"Expected {expected}, got {actual}"
