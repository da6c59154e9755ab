"""View models for service outputs."""

from tradebook.domain.views.balances import (
    CurrencyBalance,
    CashFlowItem,
    TypeTotal,
    MonthlyCurrencySummary,
    ImportSummary,
)
from tradebook.domain.views.trading import (
    ExecutionResult,
    PLSummary,
    OrderSideStats,
    OrderStatusStats,
)

__all__ = [
    "CurrencyBalance",
    "CashFlowItem",
    "TypeTotal",
    "MonthlyCurrencySummary",
    "ImportSummary",
    "ExecutionResult",
    "PLSummary",
    "OrderSideStats",
    "OrderStatusStats",
]
