"""Position lifecycle service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from tradebook.config.settings import Settings, get_settings
from tradebook.core.exceptions import ConflictError, NotFoundError, ValidationError
from tradebook.core.ids import IdFactory, allocate_with_retry, prefixed_id_factory
from tradebook.core.timezone import now_utc, to_utc
from tradebook.domain.models import Position, PositionSource, PositionStatus, Side
from tradebook.domain.models.position import DELETED_MARKER, ZERO, compute_gross_pl
from tradebook.domain.views import PLSummary
from tradebook.providers.portfolio_directory import PortfolioDirectory
from tradebook.repositories.protocols import PositionRepository

logger = logging.getLogger(__name__)


@dataclass
class PositionCreate:
    """Input data for opening a position."""

    symbol: str
    side: Side
    volume: Decimal
    open_price: Decimal
    currency: Optional[str] = None
    open_time: Optional[datetime] = None
    current_price: Optional[Decimal] = None
    portfolio_id: Optional[str] = None
    name: Optional[str] = None
    commission: Decimal = ZERO
    swap: Decimal = ZERO
    taxes: Decimal = ZERO
    notes: Optional[str] = None
    source: PositionSource = PositionSource.MANUAL


@dataclass
class PositionUpdate:
    """Allow-listed position edits; None leaves a field alone."""

    name: Optional[str] = None
    notes: Optional[str] = None
    swap: Optional[Decimal] = None


class PositionService:
    """
    Service for the position lifecycle: open -> closed, open/closed -> deleted.

    gross_pl follows the mark price while a position is open; net_pl is only
    computed when it closes. Every write goes through the repository's
    version check, so a concurrent modification surfaces as ConflictError.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        portfolio_directory: Optional[PortfolioDirectory] = None,
        id_factory: Optional[IdFactory] = None,
        settings: Optional[Settings] = None,
    ):
        self._position_repo = position_repo
        self._portfolio_directory = portfolio_directory
        self._id_factory = id_factory or prefixed_id_factory("POS")
        self._settings = settings or get_settings()

    def open_position(self, user_id: str, data: PositionCreate) -> Position:
        """
        Open a new position.

        purchase_value is open_price * volume; current_price defaults to
        open_price and gross_pl is derived from it. The id is allocated with
        bounded retry on collision.
        """
        self._validate_create(data)
        if data.portfolio_id:
            self._check_portfolio(user_id, data.portfolio_id)

        symbol = data.symbol.strip().upper()
        currency = (data.currency or self._settings.default_currency).strip().upper()
        open_time = to_utc(data.open_time) if data.open_time else now_utc()
        current_price = data.current_price if data.current_price is not None else data.open_price
        created_at = now_utc()

        def create(position_id: str) -> Position:
            position = Position(
                position_id=position_id,
                user_id=user_id,
                portfolio_id=data.portfolio_id,
                symbol=symbol,
                name=data.name,
                side=data.side,
                volume=data.volume,
                open_time=open_time,
                open_price=data.open_price,
                current_price=current_price,
                currency=currency,
                purchase_value=data.open_price * data.volume,
                commission=data.commission,
                swap=data.swap,
                taxes=data.taxes,
                gross_pl=compute_gross_pl(data.side, data.open_price, current_price, data.volume),
                net_pl=ZERO,
                notes=data.notes,
                source=data.source,
                last_price_update=open_time,
                created_at=created_at,
            )
            return self._position_repo.create(position)

        position = allocate_with_retry(
            create,
            self._id_factory,
            self._settings.id_allocation_max_attempts,
            "Position",
        )
        logger.info(
            "Opened position %s: %s %s %s @ %s",
            position.position_id,
            position.side.value,
            position.volume,
            position.symbol,
            position.open_price,
        )
        return position

    def get_position(self, user_id: str, position_id: str) -> Position:
        """Get a position owned by user_id."""
        position = self._position_repo.get_by_id(position_id)
        if not position or position.user_id != user_id:
            raise NotFoundError("Position", position_id)
        return position

    def list_positions(
        self,
        user_id: str,
        statuses: Optional[list[PositionStatus]] = None,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        portfolio_id: Optional[str] = None,
        include_deleted: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Position]:
        """List a user's positions; deleted ones only when asked for."""
        if not statuses and not include_deleted:
            statuses = [PositionStatus.OPEN, PositionStatus.CLOSED]
        return self._position_repo.query(
            user_id=user_id,
            statuses=statuses,
            symbol=symbol.upper() if symbol else None,
            side=side,
            portfolio_id=portfolio_id,
            limit=limit,
            offset=offset,
        )

    def update_market_price(
        self,
        user_id: str,
        position_id: str,
        price: Decimal,
        at: Optional[datetime] = None,
    ) -> Position:
        """Mark an open position to price. net_pl is not touched."""
        if price is None or price <= 0:
            raise ValidationError("Market price must be positive")

        position = self.get_position(user_id, position_id)
        self._require_open(position, "update market price of")

        position.mark(price, to_utc(at) if at else now_utc())
        return self._position_repo.update(position)

    def close_position(
        self,
        user_id: str,
        position_id: str,
        close_price: Decimal,
        close_time: Optional[datetime] = None,
        extra_commission: Decimal = ZERO,
        extra_taxes: Decimal = ZERO,
        note: Optional[str] = None,
    ) -> Position:
        """
        Close an open position.

        Extra costs are added to the running totals, then
        net_pl = gross_pl - commission - taxes - |swap|.
        """
        if close_price is None or close_price <= 0:
            raise ValidationError("Close price must be positive")
        if extra_commission < 0:
            raise ValidationError("Commission cannot be negative")
        if extra_taxes < 0:
            raise ValidationError("Taxes cannot be negative")

        position = self.get_position(user_id, position_id)
        self._require_open(position, "close")

        close_time = to_utc(close_time) if close_time else now_utc()
        if close_time < position.open_time:
            raise ValidationError("Close time cannot be before open time")

        position.close(close_price, close_time, extra_commission, extra_taxes)
        if note:
            position.append_note(note)

        closed = self._position_repo.update(position)
        logger.info(
            "Closed position %s @ %s: gross %s, net %s",
            closed.position_id,
            closed.close_price,
            closed.gross_pl,
            closed.net_pl,
        )
        return closed

    def update_position(
        self,
        user_id: str,
        position_id: str,
        patch: PositionUpdate,
    ) -> Position:
        """Apply an allow-listed patch to a position that is not deleted."""
        position = self.get_position(user_id, position_id)
        if position.status == PositionStatus.DELETED:
            raise ConflictError(f"Cannot update deleted position {position_id}")
        if patch.swap is not None and not position.is_open:
            raise ConflictError("Swap can only be changed while the position is open")

        if patch.name is not None:
            position.name = patch.name
        if patch.notes is not None:
            position.notes = patch.notes
        if patch.swap is not None:
            position.swap = patch.swap

        return self._position_repo.update(position)

    def soft_delete_position(self, user_id: str, position_id: str) -> Position:
        """Mark a position deleted, keeping the record. Repeating is a no-op."""
        position = self.get_position(user_id, position_id)
        if position.status == PositionStatus.DELETED:
            return position

        position.append_note(DELETED_MARKER)
        position.status = PositionStatus.DELETED
        return self._position_repo.update(position)

    def hard_delete_position(self, user_id: str, position_id: str) -> None:
        """Remove a position permanently."""
        self.get_position(user_id, position_id)
        self._position_repo.delete(position_id)

    def pl_summary(
        self,
        user_id: str,
        status: Optional[PositionStatus] = None,
    ) -> PLSummary:
        """Sum P&L and costs over a user's positions (deleted ones excluded by default)."""
        positions = self.list_positions(user_id, statuses=[status] if status else None)

        summary = PLSummary()
        for position in positions:
            summary.total_gross_pl += position.gross_pl
            summary.total_net_pl += position.net_pl
            summary.total_commission += position.commission
            summary.total_taxes += position.taxes
            summary.total_swap += position.swap
            summary.position_count += 1
        return summary

    def portfolio_value(
        self,
        user_id: str,
        portfolio_id: Optional[str] = None,
    ) -> dict[str, Decimal]:
        """Current value of open positions per currency."""
        positions = self.list_positions(
            user_id,
            statuses=[PositionStatus.OPEN],
            portfolio_id=portfolio_id,
        )
        values: dict[str, Decimal] = {}
        for position in positions:
            values[position.currency] = values.get(position.currency, ZERO) + position.current_value
        return {code: values[code] for code in sorted(values)}

    def _check_portfolio(self, user_id: str, portfolio_id: str) -> None:
        if self._portfolio_directory and not self._portfolio_directory.owns(user_id, portfolio_id):
            raise NotFoundError("Portfolio", portfolio_id)

    @staticmethod
    def _require_open(position: Position, action: str) -> None:
        if not position.is_open:
            raise ConflictError(
                f"Cannot {action} position {position.position_id} in status {position.status.value}"
            )

    @staticmethod
    def _validate_create(data: PositionCreate) -> None:
        """Validate position creation input."""
        if not data.symbol or not data.symbol.strip():
            raise ValidationError("Symbol is required")
        if data.volume is None or data.volume <= 0:
            raise ValidationError("Volume must be positive")
        if data.open_price is None or data.open_price <= 0:
            raise ValidationError("Open price must be positive")
        if data.current_price is not None and data.current_price <= 0:
            raise ValidationError("Current price must be positive")
        if data.commission < 0:
            raise ValidationError("Commission cannot be negative")
        if data.taxes < 0:
            raise ValidationError("Taxes cannot be negative")
        if data.currency is not None:
            code = data.currency.strip()
            if len(code) != 3 or not code.isalpha():
                raise ValidationError(f"Invalid currency code: {data.currency}")
