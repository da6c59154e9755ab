"""Pending order repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from tradebook.domain.models import OrderKind, OrderStatus, PendingOrder, Side


class OrderRepository(Protocol):
    """Interface for pending order data access."""

    def create(self, order: PendingOrder) -> PendingOrder:
        """Persist a new order; raises DuplicateIdError if the id is taken."""
        ...

    def get_by_id(self, order_id: str) -> Optional[PendingOrder]:
        """Retrieve order by ID."""
        ...

    def update(self, order: PendingOrder) -> PendingOrder:
        """
        Write back a modified order.

        Succeeds only if the stored version still equals order.version;
        otherwise raises ConflictError. The returned copy carries the new version.
        """
        ...

    def delete(self, order_id: str) -> bool:
        """Remove an order (hard delete). Returns False if nothing was removed."""
        ...

    def query(
        self,
        user_id: str,
        statuses: Optional[list[OrderStatus]] = None,
        symbol: Optional[str] = None,
        kind: Optional[OrderKind] = None,
        side: Optional[Side] = None,
        portfolio_id: Optional[str] = None,
        opened_since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[PendingOrder]:
        """Query a user's orders, newest open_time first."""
        ...

    def list_expirable(self, now: datetime) -> list[PendingOrder]:
        """Active orders (any user) whose expiry_time is before now."""
        ...
