"""Dependency injection for FastAPI."""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from tradebook.core.exceptions import ValidationError
from tradebook.providers.portfolio_directory import OpenPortfolioDirectory, PortfolioDirectory
from tradebook.repositories.sqlalchemy.database import get_db
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

_portfolio_directory: PortfolioDirectory = OpenPortfolioDirectory()


def set_portfolio_directory(directory: PortfolioDirectory) -> None:
    """Replace the portfolio ownership lookup used by the HTTP layer."""
    global _portfolio_directory
    _portfolio_directory = directory


def get_portfolio_directory() -> PortfolioDirectory:
    """Provide the PortfolioDirectory instance."""
    return _portfolio_directory


def get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    """Authenticated user id, supplied by the fronting auth layer."""
    user_id = x_user_id.strip()
    if not user_id:
        raise ValidationError("X-User-Id header is empty")
    return user_id


def get_ledger_repo(db: Session = Depends(get_db)) -> SqlAlchemyLedgerRepository:
    """Provide LedgerRepository instance."""
    return SqlAlchemyLedgerRepository(db)


def get_position_repo(db: Session = Depends(get_db)) -> SqlAlchemyPositionRepository:
    """Provide PositionRepository instance."""
    return SqlAlchemyPositionRepository(db)


def get_order_repo(db: Session = Depends(get_db)) -> SqlAlchemyOrderRepository:
    """Provide OrderRepository instance."""
    return SqlAlchemyOrderRepository(db)


def get_ledger_service(
    ledger_repo: SqlAlchemyLedgerRepository = Depends(get_ledger_repo),
    portfolio_directory: PortfolioDirectory = Depends(get_portfolio_directory),
) -> LedgerService:
    """Provide LedgerService instance."""
    return LedgerService(
        ledger_repo=ledger_repo,
        portfolio_directory=portfolio_directory,
    )


def get_balance_aggregator(
    ledger_repo: SqlAlchemyLedgerRepository = Depends(get_ledger_repo),
) -> BalanceAggregator:
    """Provide BalanceAggregator instance."""
    return BalanceAggregator(ledger_repo=ledger_repo)


def get_position_service(
    position_repo: SqlAlchemyPositionRepository = Depends(get_position_repo),
    portfolio_directory: PortfolioDirectory = Depends(get_portfolio_directory),
) -> PositionService:
    """Provide PositionService instance."""
    return PositionService(
        position_repo=position_repo,
        portfolio_directory=portfolio_directory,
    )


def get_order_service(
    order_repo: SqlAlchemyOrderRepository = Depends(get_order_repo),
    position_service: PositionService = Depends(get_position_service),
    portfolio_directory: PortfolioDirectory = Depends(get_portfolio_directory),
) -> OrderService:
    """Provide OrderService instance."""
    return OrderService(
        order_repo=order_repo,
        position_service=position_service,
        portfolio_directory=portfolio_directory,
    )
