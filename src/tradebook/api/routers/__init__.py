"""API routers package."""

from tradebook.api.routers.cash_ledger import router as cash_ledger_router
from tradebook.api.routers.positions import router as positions_router
from tradebook.api.routers.orders import router as orders_router

__all__ = [
    "cash_ledger_router",
    "positions_router",
    "orders_router",
]
