"""Application context for in-process service management.

Provides access to all services without HTTP, for scripts such as the
order expiry sweep run by an external scheduler.
"""

from pathlib import Path
from typing import Optional

from tradebook.config.settings import Settings, set_settings, get_settings
from tradebook.providers.portfolio_directory import OpenPortfolioDirectory, PortfolioDirectory
from tradebook.repositories.sqlalchemy.database import (
    init_db_with_url,
    reset_database,
    get_session,
)
from tradebook.repositories.sqlalchemy import (
    SqlAlchemyLedgerRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyOrderRepository,
)
from tradebook.services import (
    LedgerService,
    BalanceAggregator,
    PositionService,
    OrderService,
)


class AppContext:
    """
    Application context providing in-process access to all services.

    Services share one database session; call refresh_session() to pick up
    changes committed by other processes.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        database_url: Optional[str] = None,
        portfolio_directory: Optional[PortfolioDirectory] = None,
    ):
        self._data_dir = data_dir
        self._database_url = database_url
        self._portfolio_directory = portfolio_directory or OpenPortfolioDirectory()
        self._session = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._ledger_service: Optional[LedgerService] = None
        self._balance_aggregator: Optional[BalanceAggregator] = None
        self._position_service: Optional[PositionService] = None
        self._order_service: Optional[OrderService] = None

    def initialize(
        self,
        data_dir: Optional[Path] = None,
        database_url: Optional[str] = None,
    ) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses default if not provided.
            database_url: Explicit database URL; overrides data_dir.
        """
        if data_dir:
            self._data_dir = data_dir
        if database_url:
            self._database_url = database_url

        settings = Settings(data_dir=self._data_dir, database_url=self._database_url)
        set_settings(settings)

        reset_database()
        init_db_with_url(settings.get_database_url())

        self._session = None
        self._reset_services()
        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    def _get_session(self):
        """Get or create database session."""
        if self._session is None:
            self._session = get_session()
        return self._session

    def _reset_services(self) -> None:
        self._ledger_service = None
        self._balance_aggregator = None
        self._position_service = None
        self._order_service = None

    def refresh_session(self) -> None:
        """Refresh the database session (call after external changes)."""
        if self._session:
            self._session.close()
        self._session = get_session()
        self._reset_services()

    # Service accessors
    @property
    def ledger(self) -> LedgerService:
        """Get the LedgerService instance."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                ledger_repo=SqlAlchemyLedgerRepository(self._get_session()),
                portfolio_directory=self._portfolio_directory,
            )
        return self._ledger_service

    @property
    def balances(self) -> BalanceAggregator:
        """Get the BalanceAggregator instance."""
        if self._balance_aggregator is None:
            self._balance_aggregator = BalanceAggregator(
                ledger_repo=SqlAlchemyLedgerRepository(self._get_session()),
            )
        return self._balance_aggregator

    @property
    def positions(self) -> PositionService:
        """Get the PositionService instance."""
        if self._position_service is None:
            self._position_service = PositionService(
                position_repo=SqlAlchemyPositionRepository(self._get_session()),
                portfolio_directory=self._portfolio_directory,
            )
        return self._position_service

    @property
    def orders(self) -> OrderService:
        """Get the OrderService instance."""
        if self._order_service is None:
            self._order_service = OrderService(
                order_repo=SqlAlchemyOrderRepository(self._get_session()),
                position_service=self.positions,
                portfolio_directory=self._portfolio_directory,
            )
        return self._order_service

    def close(self) -> None:
        """Clean up resources."""
        if self._session:
            self._session.close()
            self._session = None


_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
