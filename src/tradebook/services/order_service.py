"""Pending order lifecycle service."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from tradebook.config.settings import Settings, get_settings
from tradebook.core.exceptions import (
    AppError,
    ConflictError,
    InvariantViolation,
    NotFoundError,
    ValidationError,
)
from tradebook.core.ids import IdFactory, allocate_with_retry, prefixed_id_factory
from tradebook.core.timezone import end_of_day_utc, now_utc, to_utc
from tradebook.domain.models import (
    OrderKind,
    OrderStatus,
    PendingOrder,
    PositionSource,
    Side,
    SideEffectStatus,
    TimeInForce,
)
from tradebook.domain.models.enums import ACTIVE_ORDER_STATUSES
from tradebook.domain.models.order import ZERO
from tradebook.domain.views import ExecutionResult, OrderSideStats, OrderStatusStats
from tradebook.providers.portfolio_directory import PortfolioDirectory
from tradebook.repositories.protocols import OrderRepository
from tradebook.services.position_service import PositionCreate, PositionService

logger = logging.getLogger(__name__)


@dataclass
class OrderCreate:
    """Input data for placing a pending order."""

    symbol: str
    kind: OrderKind
    side: Side
    volume: Decimal
    currency: Optional[str] = None
    price: Optional[Decimal] = None
    stop_price: Optional[Decimal] = None
    trailing_amount: Optional[Decimal] = None
    trailing_percent: Optional[Decimal] = None
    time_in_force: TimeInForce = TimeInForce.GTC
    expiry_time: Optional[datetime] = None
    open_time: Optional[datetime] = None
    portfolio_id: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class OrderUpdate:
    """Allow-listed order edits; None leaves a field alone."""

    symbol: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    stop_price: Optional[Decimal] = None
    trailing_amount: Optional[Decimal] = None
    trailing_percent: Optional[Decimal] = None
    volume: Optional[Decimal] = None
    expiry_time: Optional[datetime] = None
    notes: Optional[str] = None


class OrderService:
    """
    Service for the pending order lifecycle.

    pending -> partial -> executed, and pending/partial -> cancelled/expired.
    A full fill can open a position; that step runs after the order
    transition has been committed and its outcome is reported separately in
    the ExecutionResult.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        position_service: PositionService,
        portfolio_directory: Optional[PortfolioDirectory] = None,
        id_factory: Optional[IdFactory] = None,
        settings: Optional[Settings] = None,
    ):
        self._order_repo = order_repo
        self._position_service = position_service
        self._portfolio_directory = portfolio_directory
        self._id_factory = id_factory or prefixed_id_factory("ORD")
        self._settings = settings or get_settings()

    def create_order(self, user_id: str, data: OrderCreate) -> PendingOrder:
        """Validate and place a new pending order."""
        if not data.symbol or not data.symbol.strip():
            raise ValidationError("Symbol is required")
        if data.volume is None or data.volume <= 0:
            raise ValidationError("Volume must be positive")
        self._validate_pricing(
            data.kind, data.price, data.stop_price, data.trailing_amount, data.trailing_percent
        )
        currency = (data.currency or self._settings.default_currency).strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Invalid currency code: {data.currency}")

        open_time = to_utc(data.open_time) if data.open_time else now_utc()
        expiry_time = to_utc(data.expiry_time) if data.expiry_time else None
        if data.time_in_force == TimeInForce.GTD and expiry_time is None:
            raise ValidationError("GTD orders require an expiry time")
        if data.time_in_force == TimeInForce.DAY and expiry_time is None:
            expiry_time = end_of_day_utc(open_time)
        if expiry_time is not None and expiry_time <= open_time:
            raise ValidationError("Expiry time must be after open time")

        if data.portfolio_id:
            self._check_portfolio(user_id, data.portfolio_id)

        created_at = now_utc()

        def create(order_id: str) -> PendingOrder:
            order = PendingOrder(
                order_id=order_id,
                user_id=user_id,
                portfolio_id=data.portfolio_id,
                symbol=data.symbol.strip().upper(),
                name=data.name,
                kind=data.kind,
                side=data.side,
                volume=data.volume,
                original_volume=data.volume,
                price=data.price,
                stop_price=data.stop_price,
                trailing_amount=data.trailing_amount,
                trailing_percent=data.trailing_percent,
                time_in_force=data.time_in_force,
                purchase_value=self._purchase_value(data.price, data.volume),
                currency=currency,
                open_time=open_time,
                expiry_time=expiry_time,
                notes=data.notes,
                created_at=created_at,
            )
            return self._order_repo.create(order)

        order = allocate_with_retry(
            create,
            self._id_factory,
            self._settings.id_allocation_max_attempts,
            "PendingOrder",
        )
        logger.info(
            "Placed %s %s order %s for %s %s",
            order.kind.value,
            order.side.value,
            order.order_id,
            order.volume,
            order.symbol,
        )
        return order

    def get_order(self, user_id: str, order_id: str) -> PendingOrder:
        """Get an order owned by user_id."""
        order = self._order_repo.get_by_id(order_id)
        if not order or order.user_id != user_id:
            raise NotFoundError("PendingOrder", order_id)
        return order

    def list_orders(
        self,
        user_id: str,
        statuses: Optional[list[OrderStatus]] = None,
        symbol: Optional[str] = None,
        kind: Optional[OrderKind] = None,
        side: Optional[Side] = None,
        portfolio_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[PendingOrder]:
        """List a user's orders, newest first."""
        return self._order_repo.query(
            user_id=user_id,
            statuses=statuses,
            symbol=symbol.upper() if symbol else None,
            kind=kind,
            side=side,
            portfolio_id=portfolio_id,
            limit=limit,
            offset=offset,
        )

    def list_active_orders(self, user_id: str) -> list[PendingOrder]:
        """Orders that can still be filled."""
        return self.list_orders(user_id, statuses=sorted(ACTIVE_ORDER_STATUSES))

    def update_order(
        self,
        user_id: str,
        order_id: str,
        patch: OrderUpdate,
    ) -> PendingOrder:
        """
        Apply an allow-listed patch to an active order.

        Volume may only shrink. While nothing has been filled yet the
        original volume follows it. purchase_value is recomputed only when
        price or volume change.
        """
        order = self.get_order(user_id, order_id)
        self._require_active(order, "update")

        price = patch.price if patch.price is not None else order.price
        stop_price = patch.stop_price if patch.stop_price is not None else order.stop_price
        trailing_amount = (
            patch.trailing_amount if patch.trailing_amount is not None else order.trailing_amount
        )
        trailing_percent = (
            patch.trailing_percent if patch.trailing_percent is not None else order.trailing_percent
        )
        self._validate_pricing(order.kind, price, stop_price, trailing_amount, trailing_percent)

        volume = order.volume
        if patch.volume is not None:
            if patch.volume <= 0:
                raise ValidationError("Volume must be positive")
            if patch.volume > order.volume:
                raise ValidationError(
                    f"Volume cannot increase from {order.volume} to {patch.volume}"
                )
            volume = patch.volume

        expiry_time = order.expiry_time
        if patch.expiry_time is not None:
            expiry_time = to_utc(patch.expiry_time)
            if expiry_time <= order.open_time:
                raise ValidationError("Expiry time must be after open time")

        if patch.symbol is not None:
            if not patch.symbol.strip():
                raise ValidationError("Symbol cannot be empty")
            order.symbol = patch.symbol.strip().upper()
        if patch.name is not None:
            order.name = patch.name
        if patch.notes is not None:
            order.notes = patch.notes
        order.price = price
        order.stop_price = stop_price
        order.trailing_amount = trailing_amount
        order.trailing_percent = trailing_percent
        if order.status == OrderStatus.PENDING:
            order.original_volume = volume
        order.volume = volume
        order.expiry_time = expiry_time
        if patch.price is not None or patch.volume is not None:
            order.purchase_value = self._purchase_value(price, volume)

        return self._order_repo.update(order)

    def execute_order(
        self,
        user_id: str,
        order_id: str,
        executed_price: Decimal,
        executed_volume: Optional[Decimal] = None,
        commission: Decimal = ZERO,
        fees: Decimal = ZERO,
        create_position: bool = True,
        executed_time: Optional[datetime] = None,
    ) -> ExecutionResult:
        """
        Record a fill against an active order.

        executed_volume defaults to the whole remaining volume. The execution
        record is overwritten with this fill only. On a full fill with
        create_position, a position is opened from this fill and linked; if
        that fails the execution still stands and the result says FAILED.
        """
        if executed_price is None or executed_price <= 0:
            raise ValidationError("Executed price must be positive")
        if commission < 0:
            raise ValidationError("Commission cannot be negative")
        if fees < 0:
            raise ValidationError("Fees cannot be negative")

        order = self.get_order(user_id, order_id)
        self._require_active(order, "execute")

        if executed_volume is None:
            executed_volume = order.volume
        if executed_volume <= 0:
            raise ValidationError("Executed volume must be positive")
        if executed_volume > order.volume:
            raise InvariantViolation(
                f"Executed volume {executed_volume} exceeds remaining volume {order.volume}"
            )

        fill_time = to_utc(executed_time) if executed_time else now_utc()
        is_full = order.apply_fill(executed_price, executed_volume, commission, fees, fill_time)
        order = self._order_repo.update(order)
        logger.info(
            "Order %s filled %s @ %s (%s), remaining %s",
            order.order_id,
            executed_volume,
            executed_price,
            order.status.value,
            order.volume,
        )

        result = ExecutionResult(order=order, remaining_volume=order.volume, is_full=is_full)
        if not is_full or not create_position:
            return result

        try:
            position = self._position_service.open_position(
                user_id,
                PositionCreate(
                    symbol=order.symbol,
                    side=order.side,
                    volume=executed_volume,
                    open_price=executed_price,
                    currency=order.currency,
                    open_time=fill_time,
                    portfolio_id=order.portfolio_id,
                    name=order.name,
                    commission=commission,
                    notes=f"Opened from order {order.order_id}",
                    source=PositionSource.ORDER,
                ),
            )
        except (AppError, SQLAlchemyError) as e:
            logger.exception("Order %s executed but opening its position failed", order.order_id)
            result.position_outcome = SideEffectStatus.FAILED
            result.position_error = str(e)
            return result

        result.position = position
        order.execution.resulting_position_id = position.position_id
        try:
            result.order = self._order_repo.update(order)
        except (AppError, SQLAlchemyError) as e:
            logger.exception(
                "Position %s opened but linking it to order %s failed",
                position.position_id,
                order.order_id,
            )
            result.position_outcome = SideEffectStatus.FAILED
            result.position_error = str(e)
            return result

        result.position_outcome = SideEffectStatus.SUCCEEDED
        return result

    def cancel_order(
        self,
        user_id: str,
        order_id: str,
        reason: Optional[str] = None,
    ) -> PendingOrder:
        """Cancel an active order. Positions from earlier fills are untouched."""
        order = self.get_order(user_id, order_id)
        self._require_active(order, "cancel")

        order.status = OrderStatus.CANCELLED
        order.cancelled_at = now_utc()
        order.cancel_reason = reason
        return self._order_repo.update(order)

    def expire_sweep(self, now: Optional[datetime] = None) -> list[PendingOrder]:
        """
        Expire every active order whose expiry_time is before now.

        Runs across all users. An order that changed since it was read is
        skipped and left for the next sweep.
        """
        now = to_utc(now) if now else now_utc()
        expired: list[PendingOrder] = []
        for order in self._order_repo.list_expirable(now):
            order.status = OrderStatus.EXPIRED
            try:
                expired.append(self._order_repo.update(order))
            except (ConflictError, NotFoundError) as e:
                logger.info("Skipping expiry of order %s: %s", order.order_id, e.message)

        if expired:
            logger.info("Expired %d order(s)", len(expired))
        return expired

    def order_statistics(
        self,
        user_id: str,
        period_days: int = 30,
        now: Optional[datetime] = None,
    ) -> list[OrderStatusStats]:
        """
        Summarize orders opened within the last period_days.

        Orders are grouped by status and then by side. total_volume sums the
        remaining volume; avg_price averages the orders that carry a price
        and is None when none do. Groups follow the status and side
        declaration order; empty groups are omitted.
        """
        if period_days <= 0:
            raise ValidationError("Statistics period must be at least one day")
        now = to_utc(now) if now else now_utc()
        orders = self._order_repo.query(user_id, opened_since=now - timedelta(days=period_days))

        stats: list[OrderStatusStats] = []
        for status in OrderStatus:
            in_status = [o for o in orders if o.status == status]
            if not in_status:
                continue
            group = OrderStatusStats(status=status, total_count=len(in_status))
            for side in Side:
                in_side = [o for o in in_status if o.side == side]
                if not in_side:
                    continue
                prices = [o.price for o in in_side if o.price is not None]
                group.sides.append(
                    OrderSideStats(
                        side=side,
                        count=len(in_side),
                        total_volume=sum((o.volume for o in in_side), ZERO),
                        avg_price=sum(prices, ZERO) / len(prices) if prices else None,
                    )
                )
            stats.append(group)
        return stats

    def delete_order(self, user_id: str, order_id: str) -> None:
        """Remove an order permanently."""
        self.get_order(user_id, order_id)
        self._order_repo.delete(order_id)

    def _check_portfolio(self, user_id: str, portfolio_id: str) -> None:
        if self._portfolio_directory and not self._portfolio_directory.owns(user_id, portfolio_id):
            raise NotFoundError("Portfolio", portfolio_id)

    @staticmethod
    def _purchase_value(price: Optional[Decimal], volume: Decimal) -> Decimal:
        return price * volume if price is not None else ZERO

    @staticmethod
    def _require_active(order: PendingOrder, action: str) -> None:
        if not order.is_active:
            raise ConflictError(
                f"Cannot {action} order {order.order_id} in status {order.status.value}"
            )

    @staticmethod
    def _validate_pricing(
        kind: OrderKind,
        price: Optional[Decimal],
        stop_price: Optional[Decimal],
        trailing_amount: Optional[Decimal],
        trailing_percent: Optional[Decimal],
    ) -> None:
        """Check the price fields each order kind needs."""
        if price is not None and price <= 0:
            raise ValidationError("Price must be positive")
        if stop_price is not None and stop_price <= 0:
            raise ValidationError("Stop price must be positive")
        if trailing_amount is not None and trailing_amount <= 0:
            raise ValidationError("Trailing amount must be positive")
        if trailing_percent is not None and not (0 < trailing_percent <= 100):
            raise ValidationError("Trailing percent must be in (0, 100]")

        if kind in (OrderKind.LIMIT, OrderKind.STOP_LIMIT) and price is None:
            raise ValidationError(f"{kind.value} orders require a price")
        if kind in (OrderKind.STOP, OrderKind.STOP_LIMIT) and stop_price is None:
            raise ValidationError(f"{kind.value} orders require a stop price")
        if (
            kind == OrderKind.TRAILING_STOP
            and trailing_amount is None
            and trailing_percent is None
        ):
            raise ValidationError(
                "trailing_stop orders require a trailing amount or trailing percent"
            )
