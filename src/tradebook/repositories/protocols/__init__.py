"""Repository protocol definitions (interfaces)."""

from tradebook.repositories.protocols.ledger_repo import LedgerRepository
from tradebook.repositories.protocols.position_repo import PositionRepository
from tradebook.repositories.protocols.order_repo import OrderRepository

__all__ = [
    "LedgerRepository",
    "PositionRepository",
    "OrderRepository",
]
