"""Position repository protocol."""

from typing import Protocol, Optional

from tradebook.domain.models import Position, PositionStatus, Side


class PositionRepository(Protocol):
    """Interface for position data access."""

    def create(self, position: Position) -> Position:
        """Persist a new position; raises DuplicateIdError if the id is taken."""
        ...

    def get_by_id(self, position_id: str) -> Optional[Position]:
        """Retrieve position by ID."""
        ...

    def update(self, position: Position) -> Position:
        """
        Write back a modified position.

        Succeeds only if the stored version still equals position.version;
        otherwise raises ConflictError. The returned copy carries the new version.
        """
        ...

    def delete(self, position_id: str) -> bool:
        """Remove a position (hard delete). Returns False if nothing was removed."""
        ...

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
        ...
