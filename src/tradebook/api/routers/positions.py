"""Position endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from tradebook.api.deps import get_current_user_id, get_position_service
from tradebook.api.schemas import (
    PositionCreateRequest,
    PositionUpdateRequest,
    MarketPriceRequest,
    ClosePositionRequest,
    PositionResponse,
    PositionListResponse,
    PLSummaryResponse,
)
from tradebook.domain.models import PositionStatus, Side
from tradebook.services import PositionCreate, PositionService, PositionUpdate

router = APIRouter(prefix="/positions", tags=["positions"])


@router.post("", response_model=PositionResponse, status_code=201)
def open_position(
    data: PositionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Open a new position."""
    position = positions.open_position(
        user_id,
        PositionCreate(
            symbol=data.symbol,
            side=data.side,
            volume=data.volume,
            open_price=data.open_price,
            currency=data.currency,
            open_time=data.open_time,
            current_price=data.current_price,
            portfolio_id=data.portfolio_id,
            name=data.name,
            commission=data.commission,
            swap=data.swap,
            taxes=data.taxes,
            notes=data.notes,
        ),
    )
    return PositionResponse.model_validate(position)


@router.get("", response_model=PositionListResponse)
def list_positions(
    status: Optional[list[PositionStatus]] = Query(None),
    symbol: Optional[str] = None,
    side: Optional[Side] = None,
    portfolio_id: Optional[str] = None,
    include_deleted: bool = False,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionListResponse:
    """List positions, newest first."""
    items = positions.list_positions(
        user_id,
        statuses=status,
        symbol=symbol,
        side=side,
        portfolio_id=portfolio_id,
        include_deleted=include_deleted,
        limit=limit,
        offset=offset,
    )
    return PositionListResponse(
        positions=[PositionResponse.model_validate(p) for p in items],
        count=len(items),
    )


@router.get("/summary", response_model=PLSummaryResponse)
def get_summary(
    status: Optional[PositionStatus] = None,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PLSummaryResponse:
    """Aggregate P&L and the current value of open positions."""
    summary = positions.pl_summary(user_id, status=status)
    return PLSummaryResponse(
        total_gross_pl=summary.total_gross_pl,
        total_net_pl=summary.total_net_pl,
        total_commission=summary.total_commission,
        total_taxes=summary.total_taxes,
        total_swap=summary.total_swap,
        position_count=summary.position_count,
        open_value=positions.portfolio_value(user_id),
    )


@router.get("/{position_id}", response_model=PositionResponse)
def get_position(
    position_id: str,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Get a single position."""
    return PositionResponse.model_validate(positions.get_position(user_id, position_id))


@router.put("/{position_id}", response_model=PositionResponse)
def update_position(
    position_id: str,
    data: PositionUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Update allow-listed fields of a position."""
    patch = PositionUpdate(name=data.name, notes=data.notes, swap=data.swap)
    return PositionResponse.model_validate(
        positions.update_position(user_id, position_id, patch)
    )


@router.post("/{position_id}/market-price", response_model=PositionResponse)
def update_market_price(
    position_id: str,
    data: MarketPriceRequest,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Mark an open position to a new price."""
    return PositionResponse.model_validate(
        positions.update_market_price(user_id, position_id, data.price, at=data.at)
    )


@router.post("/{position_id}/close", response_model=PositionResponse)
def close_position(
    position_id: str,
    data: ClosePositionRequest,
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> PositionResponse:
    """Close an open position."""
    position = positions.close_position(
        user_id,
        position_id,
        close_price=data.close_price,
        close_time=data.close_time,
        extra_commission=data.extra_commission,
        extra_taxes=data.extra_taxes,
        note=data.note,
    )
    return PositionResponse.model_validate(position)


@router.delete("/{position_id}", status_code=204)
def delete_position(
    position_id: str,
    hard: bool = Query(False, description="Remove the record instead of marking it deleted"),
    user_id: str = Depends(get_current_user_id),
    positions: PositionService = Depends(get_position_service),
) -> Response:
    """Soft delete a position, or remove it with hard=true."""
    if hard:
        positions.hard_delete_position(user_id, position_id)
    else:
        positions.soft_delete_position(user_id, position_id)
    return Response(status_code=204)
