"""Tests for the in-process application context and the expiry script."""

import importlib.util
from decimal import Decimal
from pathlib import Path

import pytest

from tradebook.app_context import AppContext
from tradebook.config.settings import reset_settings
from tradebook.domain.models import LedgerEntryType, OrderKind, OrderStatus, Side, TimeInForce
from tradebook.repositories.sqlalchemy.database import reset_database
from tradebook.services import CashEntryCreate, OrderCreate

from tests.conftest import USER_ID, utc_datetime

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "expire_orders.py"


@pytest.fixture(autouse=True)
def restore_globals():
    """AppContext reconfigures module-level settings and engine."""
    yield
    reset_database()
    reset_settings()


def load_expire_script():
    spec = importlib.util.spec_from_file_location("expire_orders", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestAppContext:
    """Test AppContext for scripts."""

    def test_app_context_initialization(self, tmp_path):
        """Test AppContext initializes correctly with custom data_dir."""
        data_dir = tmp_path / "test_data"
        ctx = AppContext(data_dir=data_dir)
        ctx.initialize()

        assert ctx.is_initialized
        assert ctx.data_dir == data_dir
        assert (data_dir / "tradebook.db").exists()

        assert ctx.ledger is not None
        assert ctx.balances is not None
        assert ctx.positions is not None
        assert ctx.orders is not None

        ctx.close()

    def test_app_context_records_and_aggregates(self, tmp_path):
        """Test recording entries and reading balances through AppContext."""
        ctx = AppContext(data_dir=tmp_path / "test_data2")
        ctx.initialize()

        ctx.ledger.record_entry(
            USER_ID,
            CashEntryCreate(
                entry_type=LedgerEntryType.DEPOSIT,
                amount=Decimal("250"),
                currency="EUR",
                comment="funding",
            ),
        )

        assert ctx.balances.get_balance(USER_ID, "EUR") == Decimal("250")

        ctx.refresh_session()
        assert len(ctx.ledger.list_entries(USER_ID)) == 1

        ctx.close()


class TestExpireOrdersScript:
    """Test the scheduler entry point for the expiry sweep."""

    def test_script_expires_overdue_orders(self, tmp_path, capsys):
        database_url = f"sqlite:///{tmp_path / 'sweep.db'}"
        ctx = AppContext(database_url=database_url)
        ctx.initialize()
        order = ctx.orders.create_order(
            USER_ID,
            OrderCreate(
                symbol="AAPL",
                kind=OrderKind.LIMIT,
                side=Side.BUY,
                volume=Decimal("5"),
                price=Decimal("10"),
                time_in_force=TimeInForce.DAY,
                open_time=utc_datetime(2024, 6, 3),
            ),
        )
        ctx.close()

        script = load_expire_script()
        exit_code = script.main(
            ["--database-url", database_url, "--now", "2024-06-04T00:00:00Z"]
        )

        assert exit_code == 0
        assert "1 order(s) expired" in capsys.readouterr().out

        check = AppContext(database_url=database_url)
        check.initialize()
        assert check.orders.get_order(USER_ID, order.order_id).status == OrderStatus.EXPIRED
        check.close()

    def test_script_rejects_bad_timestamp(self, tmp_path):
        script = load_expire_script()

        exit_code = script.main(
            ["--database-url", f"sqlite:///{tmp_path / 'bad.db'}", "--now", "not a date"]
        )

        assert exit_code == 1
