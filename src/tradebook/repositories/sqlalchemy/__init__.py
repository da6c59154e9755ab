"""SQLAlchemy repository implementations."""

from tradebook.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    init_db,
    init_db_with_url,
    reset_database,
    Base,
)
from tradebook.repositories.sqlalchemy.ledger_repo import SqlAlchemyLedgerRepository
from tradebook.repositories.sqlalchemy.position_repo import SqlAlchemyPositionRepository
from tradebook.repositories.sqlalchemy.order_repo import SqlAlchemyOrderRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "init_db",
    "init_db_with_url",
    "reset_database",
    "Base",
    "SqlAlchemyLedgerRepository",
    "SqlAlchemyPositionRepository",
    "SqlAlchemyOrderRepository",
]
