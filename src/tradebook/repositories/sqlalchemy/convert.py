"""Value conversion helpers shared by the SQLAlchemy repositories."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class DecimalText(TypeDecorator):
    """
    Fixed-scale Decimal stored as text.

    SQLite keeps NUMERIC columns as floats, which drifts past ~15
    significant digits. Storing the quantized decimal string keeps values
    exact on every backend.
    """

    impl = String(48)
    cache_ok = True

    def __init__(self, scale: int = 8):
        super().__init__()
        self.scale = scale
        self._quantum = Decimal(1).scaleb(-scale)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(str(value)).quantize(self._quantum))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


def to_decimal(value, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Convert a stored numeric to Decimal; None maps to default."""
    if value is None:
        return default
    return Decimal(str(value))
