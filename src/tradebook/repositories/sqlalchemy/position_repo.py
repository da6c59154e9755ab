"""SQLAlchemy implementation of PositionRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tradebook.core.exceptions import ConflictError, DuplicateIdError, NotFoundError
from tradebook.core.timezone import from_storage, now_utc, to_storage
from tradebook.domain.models import Position, PositionStatus, Side
from tradebook.domain.models.position import ZERO
from tradebook.repositories.sqlalchemy.convert import to_decimal
from tradebook.repositories.sqlalchemy.orm_models import PositionORM


class SqlAlchemyPositionRepository:
    """SQLAlchemy-backed position repository with optimistic versioning."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, position: Position) -> Position:
        """Persist a new position."""
        orm_position = self._to_orm(position)
        self._db.add(orm_position)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise DuplicateIdError("Position", position.position_id)
        self._db.refresh(orm_position)
        return self._to_domain(orm_position)

    def get_by_id(self, position_id: str) -> Optional[Position]:
        """Retrieve position by ID."""
        orm_position = self._db.query(PositionORM).filter(
            PositionORM.position_id == position_id
        ).first()
        return self._to_domain(orm_position) if orm_position else None

    def update(self, position: Position) -> Position:
        """
        Write back a modified position.

        The write only lands if the stored version still equals
        ``position.version``; otherwise ConflictError is raised and nothing
        changes. On success the stored version is incremented.
        """
        values = self._column_values(position)
        values["version"] = position.version + 1
        values["updated_at"] = to_storage(now_utc())

        matched = self._db.query(PositionORM).filter(
            PositionORM.position_id == position.position_id,
            PositionORM.version == position.version,
        ).update(values, synchronize_session=False)

        if matched == 0:
            self._db.rollback()
            if self.get_by_id(position.position_id) is None:
                raise NotFoundError("Position", position.position_id)
            raise ConflictError(
                f"Position {position.position_id} was modified concurrently"
            )

        self._db.commit()
        return self.get_by_id(position.position_id)

    def delete(self, position_id: str) -> bool:
        """Remove a position (hard delete)."""
        deleted = self._db.query(PositionORM).filter(
            PositionORM.position_id == position_id
        ).delete()
        self._db.commit()
        return deleted > 0

    def query(
        self,
        user_id: str,
        statuses: Optional[list[PositionStatus]] = None,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        portfolio_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Position]:
        """Query a user's positions, newest open_time first."""
        conditions = [PositionORM.user_id == user_id]
        if statuses:
            conditions.append(PositionORM.status.in_(statuses))
        if symbol:
            conditions.append(PositionORM.symbol == symbol)
        if side:
            conditions.append(PositionORM.side == side)
        if portfolio_id:
            conditions.append(PositionORM.portfolio_id == portfolio_id)

        query = self._db.query(PositionORM).filter(and_(*conditions)).order_by(
            PositionORM.open_time.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(p) for p in query.all()]

    @staticmethod
    def _column_values(position: Position) -> dict:
        return {
            "portfolio_id": position.portfolio_id,
            "symbol": position.symbol,
            "name": position.name,
            "side": position.side,
            "volume": position.volume,
            "open_time": to_storage(position.open_time),
            "open_price": position.open_price,
            "close_time": to_storage(position.close_time),
            "close_price": position.close_price,
            "current_price": position.current_price,
            "purchase_value": position.purchase_value,
            "sale_value": position.sale_value,
            "commission": position.commission,
            "swap": position.swap,
            "taxes": position.taxes,
            "currency": position.currency,
            "status": position.status,
            "gross_pl": position.gross_pl,
            "net_pl": position.net_pl,
            "notes": position.notes,
            "source": position.source,
            "last_price_update": to_storage(position.last_price_update),
        }

    def _to_orm(self, position: Position) -> PositionORM:
        """Convert domain model to ORM model."""
        return PositionORM(
            position_id=position.position_id,
            user_id=position.user_id,
            version=position.version,
            created_at=to_storage(position.created_at) or datetime.utcnow(),
            updated_at=to_storage(position.updated_at),
            **self._column_values(position),
        )

    @staticmethod
    def _to_domain(orm: PositionORM) -> Position:
        """Convert ORM model to domain model."""
        return Position(
            position_id=orm.position_id,
            user_id=orm.user_id,
            portfolio_id=orm.portfolio_id,
            symbol=orm.symbol,
            name=orm.name,
            side=orm.side,
            volume=to_decimal(orm.volume),
            open_time=from_storage(orm.open_time),
            open_price=to_decimal(orm.open_price),
            close_time=from_storage(orm.close_time),
            close_price=to_decimal(orm.close_price),
            current_price=to_decimal(orm.current_price),
            purchase_value=to_decimal(orm.purchase_value, ZERO),
            sale_value=to_decimal(orm.sale_value),
            commission=to_decimal(orm.commission, ZERO),
            swap=to_decimal(orm.swap, ZERO),
            taxes=to_decimal(orm.taxes, ZERO),
            currency=orm.currency,
            status=orm.status,
            gross_pl=to_decimal(orm.gross_pl, ZERO),
            net_pl=to_decimal(orm.net_pl, ZERO),
            notes=orm.notes,
            source=orm.source,
            last_price_update=from_storage(orm.last_price_update),
            version=orm.version,
            created_at=from_storage(orm.created_at),
            updated_at=from_storage(orm.updated_at),
        )
