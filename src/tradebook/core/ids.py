"""Identifier generation and bounded allocation retry."""

import logging
import time
import uuid
from typing import Callable, TypeVar

from tradebook.core.exceptions import ConflictError, DuplicateIdError

logger = logging.getLogger(__name__)

T = TypeVar("T")

IdFactory = Callable[[], str]


def generate_id(prefix: str) -> str:
    """Return a timestamp+random identifier, e.g. ``POS_1718460000000_3f9a1c``."""
    millis = int(time.time() * 1000)
    return f"{prefix}_{millis}_{uuid.uuid4().hex[:6]}"


def prefixed_id_factory(prefix: str) -> IdFactory:
    """Build an id factory bound to a record prefix."""
    return lambda: generate_id(prefix)


def allocate_with_retry(
    create: Callable[[str], T],
    id_factory: IdFactory,
    max_attempts: int,
    resource: str,
) -> T:
    """
    Persist a new record under a freshly generated id.

    ``create`` receives the candidate id and must raise DuplicateIdError when
    the store reports it as taken. Collisions are retried up to max_attempts;
    past the cap a ConflictError is surfaced.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        candidate = id_factory()
        try:
            return create(candidate)
        except DuplicateIdError:
            logger.warning(
                "%s id collision on %s (attempt %d/%d)",
                resource,
                candidate,
                attempt,
                attempts,
            )
    raise ConflictError(
        f"Could not allocate a unique {resource} id after {attempts} attempts"
    )
