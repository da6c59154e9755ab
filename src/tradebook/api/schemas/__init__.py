"""Pydantic schemas for API request/response."""

from tradebook.api.schemas.cash_ledger import (
    TaxInfoSchema,
    CashEntryCreateRequest,
    CashEntryUpdateRequest,
    CashEntryBatchRequest,
    MarkFailedRequest,
    CashEntryResponse,
    CashEntryListResponse,
    ImportSummaryResponse,
    CurrencyBalanceResponse,
    BalancesResponse,
    CashFlowItemResponse,
    CashFlowResponse,
    MonthlySummaryResponse,
    MonthlyCurrencySummaryResponse,
)
from tradebook.api.schemas.position import (
    PositionCreateRequest,
    PositionUpdateRequest,
    MarketPriceRequest,
    ClosePositionRequest,
    PositionResponse,
    PositionListResponse,
    PLSummaryResponse,
)
from tradebook.api.schemas.order import (
    OrderCreateRequest,
    OrderUpdateRequest,
    ExecuteOrderRequest,
    CancelOrderRequest,
    OrderResponse,
    OrderListResponse,
    ExecutionResultResponse,
    OrderSideStatsResponse,
    OrderStatusStatsResponse,
    OrderStatisticsResponse,
)

__all__ = [
    "TaxInfoSchema",
    "CashEntryCreateRequest",
    "CashEntryUpdateRequest",
    "CashEntryBatchRequest",
    "MarkFailedRequest",
    "CashEntryResponse",
    "CashEntryListResponse",
    "ImportSummaryResponse",
    "CurrencyBalanceResponse",
    "BalancesResponse",
    "CashFlowItemResponse",
    "CashFlowResponse",
    "MonthlySummaryResponse",
    "MonthlyCurrencySummaryResponse",
    "PositionCreateRequest",
    "PositionUpdateRequest",
    "MarketPriceRequest",
    "ClosePositionRequest",
    "PositionResponse",
    "PositionListResponse",
    "PLSummaryResponse",
    "OrderCreateRequest",
    "OrderUpdateRequest",
    "ExecuteOrderRequest",
    "CancelOrderRequest",
    "OrderResponse",
    "OrderListResponse",
    "ExecutionResultResponse",
    "OrderSideStatsResponse",
    "OrderStatusStatsResponse",
    "OrderStatisticsResponse",
]
