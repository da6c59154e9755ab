"""Portfolio ownership lookup protocol and an in-memory implementation."""

from typing import Optional, Protocol


class PortfolioDirectory(Protocol):
    """
    Answers whether a portfolio belongs to a user.

    Portfolios themselves are managed elsewhere; this module only needs the
    ownership check before attaching a position or order to one.
    """

    def owns(self, user_id: str, portfolio_id: str) -> bool:
        """Return True if portfolio_id exists and belongs to user_id."""
        ...


class InMemoryPortfolioDirectory:
    """Directory backed by a dict of user_id -> portfolio ids."""

    def __init__(self, portfolios: Optional[dict[str, set[str]]] = None):
        self._portfolios: dict[str, set[str]] = {
            user_id: set(ids) for user_id, ids in (portfolios or {}).items()
        }

    def register(self, user_id: str, portfolio_id: str) -> None:
        self._portfolios.setdefault(user_id, set()).add(portfolio_id)

    def owns(self, user_id: str, portfolio_id: str) -> bool:
        return portfolio_id in self._portfolios.get(user_id, set())


class OpenPortfolioDirectory:
    """Directory that accepts any portfolio id; used when no registry is wired."""

    def owns(self, user_id: str, portfolio_id: str) -> bool:
        return True
