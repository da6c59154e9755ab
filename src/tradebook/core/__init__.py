"""Core utilities and shared functionality."""

from tradebook.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    UTC,
)
from tradebook.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ConflictError,
    DuplicateIdError,
    InvariantViolation,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "UTC",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DuplicateIdError",
    "InvariantViolation",
]
