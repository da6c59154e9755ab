"""Service layer - business logic."""

from tradebook.services.ledger_service import LedgerService, CashEntryCreate, CashEntryUpdate
from tradebook.services.balance_aggregator import BalanceAggregator
from tradebook.services.position_service import PositionService, PositionCreate, PositionUpdate
from tradebook.services.order_service import OrderService, OrderCreate, OrderUpdate

__all__ = [
    "LedgerService",
    "CashEntryCreate",
    "CashEntryUpdate",
    "BalanceAggregator",
    "PositionService",
    "PositionCreate",
    "PositionUpdate",
    "OrderService",
    "OrderCreate",
    "OrderUpdate",
]
