"""Repository layer - data access abstractions and implementations."""

from tradebook.repositories.protocols import (
    LedgerRepository,
    PositionRepository,
    OrderRepository,
)

__all__ = [
    "LedgerRepository",
    "PositionRepository",
    "OrderRepository",
]
