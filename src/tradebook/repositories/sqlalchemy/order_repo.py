"""SQLAlchemy implementation of OrderRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tradebook.core.exceptions import ConflictError, DuplicateIdError, NotFoundError
from tradebook.core.timezone import from_storage, now_utc, to_storage
from tradebook.domain.models import (
    OrderExecution,
    OrderKind,
    OrderStatus,
    PendingOrder,
    Side,
)
from tradebook.domain.models.enums import ACTIVE_ORDER_STATUSES
from tradebook.domain.models.order import ZERO
from tradebook.repositories.sqlalchemy.convert import to_decimal
from tradebook.repositories.sqlalchemy.orm_models import PendingOrderORM


class SqlAlchemyOrderRepository:
    """SQLAlchemy-backed pending order repository with optimistic versioning."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, order: PendingOrder) -> PendingOrder:
        """Persist a new order."""
        orm_order = self._to_orm(order)
        self._db.add(orm_order)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise DuplicateIdError("PendingOrder", order.order_id)
        self._db.refresh(orm_order)
        return self._to_domain(orm_order)

    def get_by_id(self, order_id: str) -> Optional[PendingOrder]:
        """Retrieve order by ID."""
        orm_order = self._db.query(PendingOrderORM).filter(
            PendingOrderORM.order_id == order_id
        ).first()
        return self._to_domain(orm_order) if orm_order else None

    def update(self, order: PendingOrder) -> PendingOrder:
        """Write back a modified order if its version is still current."""
        values = self._column_values(order)
        values["version"] = order.version + 1
        values["updated_at"] = to_storage(now_utc())

        matched = self._db.query(PendingOrderORM).filter(
            PendingOrderORM.order_id == order.order_id,
            PendingOrderORM.version == order.version,
        ).update(values, synchronize_session=False)

        if matched == 0:
            self._db.rollback()
            if self.get_by_id(order.order_id) is None:
                raise NotFoundError("PendingOrder", order.order_id)
            raise ConflictError(f"Order {order.order_id} was modified concurrently")

        self._db.commit()
        return self.get_by_id(order.order_id)

    def delete(self, order_id: str) -> bool:
        """Remove an order (hard delete)."""
        deleted = self._db.query(PendingOrderORM).filter(
            PendingOrderORM.order_id == order_id
        ).delete()
        self._db.commit()
        return deleted > 0

    def query(
        self,
        user_id: str,
        statuses: Optional[list[OrderStatus]] = None,
        symbol: Optional[str] = None,
        kind: Optional[OrderKind] = None,
        side: Optional[Side] = None,
        portfolio_id: Optional[str] = None,
        opened_since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[PendingOrder]:
        """Query a user's orders, newest open_time first."""
        conditions = [PendingOrderORM.user_id == user_id]
        if statuses:
            conditions.append(PendingOrderORM.status.in_(statuses))
        if symbol:
            conditions.append(PendingOrderORM.symbol == symbol)
        if kind:
            conditions.append(PendingOrderORM.kind == kind)
        if side:
            conditions.append(PendingOrderORM.side == side)
        if portfolio_id:
            conditions.append(PendingOrderORM.portfolio_id == portfolio_id)
        if opened_since:
            conditions.append(PendingOrderORM.open_time >= to_storage(opened_since))

        query = self._db.query(PendingOrderORM).filter(and_(*conditions)).order_by(
            PendingOrderORM.open_time.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(o) for o in query.all()]

    def list_expirable(self, now: datetime) -> list[PendingOrder]:
        """Active orders of any user whose expiry_time has passed."""
        orm_orders = self._db.query(PendingOrderORM).filter(
            PendingOrderORM.status.in_(list(ACTIVE_ORDER_STATUSES)),
            PendingOrderORM.expiry_time.isnot(None),
            PendingOrderORM.expiry_time < to_storage(now),
        ).order_by(PendingOrderORM.expiry_time).all()
        return [self._to_domain(o) for o in orm_orders]

    @staticmethod
    def _column_values(order: PendingOrder) -> dict:
        execution = order.execution
        return {
            "portfolio_id": order.portfolio_id,
            "symbol": order.symbol,
            "name": order.name,
            "kind": order.kind,
            "side": order.side,
            "volume": order.volume,
            "original_volume": order.original_volume,
            "price": order.price,
            "stop_price": order.stop_price,
            "trailing_amount": order.trailing_amount,
            "trailing_percent": order.trailing_percent,
            "time_in_force": order.time_in_force,
            "purchase_value": order.purchase_value,
            "currency": order.currency,
            "open_time": to_storage(order.open_time),
            "expiry_time": to_storage(order.expiry_time),
            "status": order.status,
            "cancelled_at": to_storage(order.cancelled_at),
            "cancel_reason": order.cancel_reason,
            "notes": order.notes,
            "executed_price": execution.executed_price,
            "executed_volume": execution.executed_volume,
            "execution_commission": execution.commission,
            "execution_fees": execution.fees,
            "executed_time": to_storage(execution.executed_time),
            "resulting_position_id": execution.resulting_position_id,
        }

    def _to_orm(self, order: PendingOrder) -> PendingOrderORM:
        """Convert domain model to ORM model."""
        return PendingOrderORM(
            order_id=order.order_id,
            user_id=order.user_id,
            version=order.version,
            created_at=to_storage(order.created_at) or datetime.utcnow(),
            updated_at=to_storage(order.updated_at),
            **self._column_values(order),
        )

    @staticmethod
    def _to_domain(orm: PendingOrderORM) -> PendingOrder:
        """Convert ORM model to domain model."""
        execution = OrderExecution(
            executed_price=to_decimal(orm.executed_price),
            executed_volume=to_decimal(orm.executed_volume, ZERO),
            commission=to_decimal(orm.execution_commission, ZERO),
            fees=to_decimal(orm.execution_fees, ZERO),
            executed_time=from_storage(orm.executed_time),
            resulting_position_id=orm.resulting_position_id,
        )
        return PendingOrder(
            order_id=orm.order_id,
            user_id=orm.user_id,
            portfolio_id=orm.portfolio_id,
            symbol=orm.symbol,
            name=orm.name,
            kind=orm.kind,
            side=orm.side,
            volume=to_decimal(orm.volume),
            original_volume=to_decimal(orm.original_volume),
            price=to_decimal(orm.price),
            stop_price=to_decimal(orm.stop_price),
            trailing_amount=to_decimal(orm.trailing_amount),
            trailing_percent=to_decimal(orm.trailing_percent),
            time_in_force=orm.time_in_force,
            purchase_value=to_decimal(orm.purchase_value, ZERO),
            currency=orm.currency,
            open_time=from_storage(orm.open_time),
            expiry_time=from_storage(orm.expiry_time),
            status=orm.status,
            execution=execution,
            cancelled_at=from_storage(orm.cancelled_at),
            cancel_reason=orm.cancel_reason,
            notes=orm.notes,
            version=orm.version,
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
