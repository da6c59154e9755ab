"""Pydantic schemas for cash ledger endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tradebook.domain.models.enums import EntrySource, LedgerEntryStatus, LedgerEntryType


class TaxInfoSchema(BaseModel):
    """Tax details attached to an entry."""

    model_config = {"from_attributes": True}

    taxable: bool = False
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0)


class CashEntryCreateRequest(BaseModel):
    """Request schema for recording a ledger entry."""

    entry_type: LedgerEntryType = Field(..., description="Entry type")
    amount: Decimal = Field(
        ...,
        description="Positive magnitude; signed for transfer/adjustment",
    )
    comment: str = Field(..., min_length=1, max_length=200)
    currency: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="ISO currency code; defaults to the configured currency",
    )
    occurred_at: Optional[datetime] = Field(default=None, description="Defaults to now")
    status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED
    portfolio_id: Optional[str] = None
    symbol: Optional[str] = Field(default=None, max_length=20)
    tax: Optional[TaxInfoSchema] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    source: EntrySource = EntrySource.API

    @field_validator("symbol", "currency")
    @classmethod
    def uppercase(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else None


class CashEntryUpdateRequest(BaseModel):
    """Request schema for updating a ledger entry (partial update)."""

    occurred_at: Optional[datetime] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=200)
    symbol: Optional[str] = Field(default=None, max_length=20)
    status: Optional[LedgerEntryStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    tax: Optional[TaxInfoSchema] = None


class CashEntryBatchRequest(BaseModel):
    """Request schema for recording a pre-validated batch of entries."""

    entries: list[CashEntryCreateRequest] = Field(..., min_length=1)


class MarkFailedRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=200)


class CashEntryResponse(BaseModel):
    """Response schema for a single ledger entry."""

    model_config = {"from_attributes": True}

    entry_id: str
    user_id: str
    portfolio_id: Optional[str] = None
    entry_type: LedgerEntryType
    amount: Decimal
    signed_amount: Decimal
    direction: str
    currency: str
    occurred_at: datetime
    status: LedgerEntryStatus
    comment: str
    symbol: Optional[str] = None
    tax: Optional[TaxInfoSchema] = None
    notes: Optional[str] = None
    source: EntrySource
    import_batch_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CashEntryListResponse(BaseModel):
    """Response schema for listing ledger entries."""

    entries: list[CashEntryResponse]
    count: int
    total: int


class ImportSummaryResponse(BaseModel):
    """Response schema for batch recording results."""

    model_config = {"from_attributes": True}

    imported_count: int
    error_count: int
    errors: list[str]
    imported_ids: list[str]
    import_batch_id: Optional[str] = None


class CurrencyBalanceResponse(BaseModel):
    """Balance of one currency."""

    model_config = {"from_attributes": True}

    currency: str
    balance: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    count: int


class BalancesResponse(BaseModel):
    """Per-currency balances, ordered by currency code."""

    balances: list[CurrencyBalanceResponse]


class CashFlowItemResponse(BaseModel):
    model_config = {"from_attributes": True}

    day: date
    entry_type: LedgerEntryType
    currency: str
    total_amount: Decimal
    count: int


class CashFlowResponse(BaseModel):
    """Daily cash flow since a given instant."""

    since: datetime
    until: Optional[datetime] = None
    items: list[CashFlowItemResponse]


class TypeTotalResponse(BaseModel):
    model_config = {"from_attributes": True}

    entry_type: LedgerEntryType
    total_amount: Decimal
    count: int


class MonthlyCurrencySummaryResponse(BaseModel):
    model_config = {"from_attributes": True}

    currency: str
    operations: list[TypeTotalResponse]
    total_flow: Decimal


class MonthlySummaryResponse(BaseModel):
    """Per-currency breakdown of one month."""

    year: int
    month: int
    currencies: list[MonthlyCurrencySummaryResponse]
