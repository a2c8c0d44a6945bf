"""In-memory implementations of repository interfaces."""

from tripsheet.app.db.repositories import TripState


class InMemoryTripStateRepository:
    """In-memory implementation of TripStateRepository."""

    def __init__(self, initial: TripState | None = None) -> None:
        self._record = initial.to_record() if initial is not None else None
        self.save_count = 0

    async def load(self) -> TripState | None:
        """Load the stored state."""
        if self._record is None:
            return None
        return TripState.from_record(self._record)

    async def save(self, state: TripState) -> None:
        """Store the state as a JSON-ready record."""
        self._record = state.to_record()
        self.save_count += 1
