"""External collaborator providers."""

from tradebook.providers.portfolio_directory import (
    PortfolioDirectory,
    InMemoryPortfolioDirectory,
    OpenPortfolioDirectory,
)

__all__ = [
    "PortfolioDirectory",
    "InMemoryPortfolioDirectory",
    "OpenPortfolioDirectory",
]
