"""Cash ledger endpoints."""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from tradebook.api.deps import get_balance_aggregator, get_current_user_id, get_ledger_service
from tradebook.api.schemas import (
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
from tradebook.core.timezone import now_utc
from tradebook.domain.models import LedgerEntryStatus, LedgerEntryType, TaxInfo
from tradebook.services import BalanceAggregator, CashEntryCreate, CashEntryUpdate, LedgerService

router = APIRouter(prefix="/cash-ledger", tags=["cash-ledger"])


def _to_create(data: CashEntryCreateRequest) -> CashEntryCreate:
    return CashEntryCreate(
        entry_type=data.entry_type,
        amount=data.amount,
        comment=data.comment,
        currency=data.currency,
        occurred_at=data.occurred_at,
        status=data.status,
        portfolio_id=data.portfolio_id,
        symbol=data.symbol,
        tax=TaxInfo(**data.tax.model_dump()) if data.tax else None,
        notes=data.notes,
        source=data.source,
    )


@router.post("", response_model=CashEntryResponse, status_code=201)
def create_entry(
    data: CashEntryCreateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryResponse:
    """Record a new ledger entry."""
    entry = ledger.record_entry(user_id, _to_create(data))
    return CashEntryResponse.model_validate(entry)


@router.post("/batch", response_model=ImportSummaryResponse, status_code=201)
def create_entries_batch(
    data: CashEntryBatchRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> ImportSummaryResponse:
    """Record a batch of entries; failing rows are reported, not fatal."""
    summary = ledger.record_entries_batch(user_id, [_to_create(item) for item in data.entries])
    return ImportSummaryResponse.model_validate(summary)


@router.get("", response_model=CashEntryListResponse)
def list_entries(
    entry_type: Optional[list[LedgerEntryType]] = Query(None),
    status: Optional[list[LedgerEntryStatus]] = Query(None),
    currency: Optional[str] = Query(None, min_length=3, max_length=3),
    symbol: Optional[str] = None,
    portfolio_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryListResponse:
    """List ledger entries, newest first."""
    filters = dict(
        entry_types=entry_type,
        statuses=status,
        currency=currency,
        symbol=symbol,
        portfolio_id=portfolio_id,
        start_date=start_date,
        end_date=end_date,
    )
    entries = ledger.list_entries(user_id, limit=limit, offset=offset, **filters)
    total = ledger.count_entries(user_id, **filters)
    return CashEntryListResponse(
        entries=[CashEntryResponse.model_validate(e) for e in entries],
        count=len(entries),
        total=total,
    )


@router.get("/balance", response_model=BalancesResponse)
def get_balances(
    currency: Optional[str] = Query(None, min_length=3, max_length=3),
    up_to_date: Optional[datetime] = None,
    status: Optional[LedgerEntryStatus] = LedgerEntryStatus.COMPLETED,
    all_statuses: bool = Query(False, description="Include entries of every status"),
    user_id: str = Depends(get_current_user_id),
    aggregator: BalanceAggregator = Depends(get_balance_aggregator),
) -> BalancesResponse:
    """Per-currency balances, optionally as of a point in time."""
    balances = aggregator.compute_balances(
        user_id,
        currency=currency,
        up_to_date=up_to_date,
        status=None if all_statuses else status,
    )
    return BalancesResponse(
        balances=[CurrencyBalanceResponse.model_validate(b) for b in balances.values()]
    )


@router.get("/cash-flow", response_model=CashFlowResponse)
def get_cash_flow(
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    days: int = Query(30, ge=1, le=3660, description="Look-back window when since is omitted"),
    user_id: str = Depends(get_current_user_id),
    aggregator: BalanceAggregator = Depends(get_balance_aggregator),
) -> CashFlowResponse:
    """Daily signed totals per entry type."""
    since = since or now_utc() - timedelta(days=days)
    items = aggregator.cash_flow_summary(user_id, since=since, until=until)
    return CashFlowResponse(
        since=since,
        until=until,
        items=[CashFlowItemResponse.model_validate(i) for i in items],
    )


@router.get("/monthly/{year}/{month}", response_model=MonthlySummaryResponse)
def get_monthly_summary(
    year: int,
    month: int,
    user_id: str = Depends(get_current_user_id),
    aggregator: BalanceAggregator = Depends(get_balance_aggregator),
) -> MonthlySummaryResponse:
    """Per-currency, per-type totals for one month."""
    summaries = aggregator.monthly_summary(user_id, year, month)
    return MonthlySummaryResponse(
        year=year,
        month=month,
        currencies=[MonthlyCurrencySummaryResponse.model_validate(s) for s in summaries],
    )


@router.get("/{entry_id}", response_model=CashEntryResponse)
def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryResponse:
    """Get a single ledger entry."""
    return CashEntryResponse.model_validate(ledger.get_entry(user_id, entry_id))


@router.put("/{entry_id}", response_model=CashEntryResponse)
def update_entry(
    entry_id: str,
    data: CashEntryUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryResponse:
    """Update allow-listed fields of a ledger entry."""
    patch = CashEntryUpdate(
        occurred_at=data.occurred_at,
        amount=data.amount,
        currency=data.currency,
        comment=data.comment,
        symbol=data.symbol,
        status=data.status,
        notes=data.notes,
        tax=TaxInfo(**data.tax.model_dump()) if data.tax else None,
    )
    return CashEntryResponse.model_validate(ledger.update_entry(user_id, entry_id, patch))


@router.post("/{entry_id}/complete", response_model=CashEntryResponse)
def complete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryResponse:
    """Mark an entry as completed."""
    return CashEntryResponse.model_validate(ledger.mark_completed(user_id, entry_id))


@router.post("/{entry_id}/fail", response_model=CashEntryResponse)
def fail_entry(
    entry_id: str,
    data: MarkFailedRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> CashEntryResponse:
    """Mark an entry as failed."""
    return CashEntryResponse.model_validate(ledger.mark_failed(user_id, entry_id, data.reason))


@router.delete("/{entry_id}", status_code=204)
def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> Response:
    """Permanently remove a ledger entry."""
    ledger.delete_entry(user_id, entry_id)
    return Response(status_code=204)
