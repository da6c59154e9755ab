"""Pending order endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from tradebook.api.deps import get_current_user_id, get_order_service
from tradebook.api.schemas import (
    OrderCreateRequest,
    OrderUpdateRequest,
    ExecuteOrderRequest,
    CancelOrderRequest,
    OrderResponse,
    OrderListResponse,
    ExecutionResultResponse,
    OrderStatisticsResponse,
    OrderStatusStatsResponse,
)
from tradebook.domain.models import OrderKind, OrderStatus, Side
from tradebook.services import OrderCreate, OrderService, OrderUpdate

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    data: OrderCreateRequest,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Place a new pending order."""
    order = orders.create_order(
        user_id,
        OrderCreate(
            symbol=data.symbol,
            kind=data.kind,
            side=data.side,
            volume=data.volume,
            currency=data.currency,
            price=data.price,
            stop_price=data.stop_price,
            trailing_amount=data.trailing_amount,
            trailing_percent=data.trailing_percent,
            time_in_force=data.time_in_force,
            expiry_time=data.expiry_time,
            portfolio_id=data.portfolio_id,
            name=data.name,
            notes=data.notes,
        ),
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    status: Optional[list[OrderStatus]] = Query(None),
    symbol: Optional[str] = None,
    kind: Optional[OrderKind] = None,
    side: Optional[Side] = None,
    portfolio_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """List orders, newest first."""
    items = orders.list_orders(
        user_id,
        statuses=status,
        symbol=symbol,
        kind=kind,
        side=side,
        portfolio_id=portfolio_id,
        limit=limit,
        offset=offset,
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in items],
        count=len(items),
    )


@router.get("/active", response_model=OrderListResponse)
def list_active_orders(
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Orders that are pending or partially filled."""
    items = orders.list_active_orders(user_id)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in items],
        count=len(items),
    )


@router.get("/statistics", response_model=OrderStatisticsResponse)
def get_statistics(
    period_days: int = Query(30, ge=1, le=3650),
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderStatisticsResponse:
    """Order counts per status and side for orders opened in the period."""
    stats = orders.order_statistics(user_id, period_days=period_days)
    return OrderStatisticsResponse(
        period_days=period_days,
        statuses=[OrderStatusStatsResponse.model_validate(s) for s in stats],
    )


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get a single order."""
    return OrderResponse.model_validate(orders.get_order(user_id, order_id))


@router.put("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    data: OrderUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Update allow-listed fields of an active order."""
    patch = OrderUpdate(**data.model_dump())
    return OrderResponse.model_validate(orders.update_order(user_id, order_id, patch))


@router.post("/{order_id}/execute", response_model=ExecutionResultResponse)
def execute_order(
    order_id: str,
    data: ExecuteOrderRequest,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> ExecutionResultResponse:
    """Record a fill; a full fill may open a position."""
    result = orders.execute_order(
        user_id,
        order_id,
        executed_price=data.executed_price,
        executed_volume=data.executed_volume,
        commission=data.commission,
        fees=data.fees,
        create_position=data.create_position,
    )
    return ExecutionResultResponse.model_validate(result)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    data: CancelOrderRequest,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Cancel an active order."""
    return OrderResponse.model_validate(orders.cancel_order(user_id, order_id, data.reason))


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    orders: OrderService = Depends(get_order_service),
) -> Response:
    """Permanently remove an order."""
    orders.delete_order(user_id, order_id)
    return Response(status_code=204)
