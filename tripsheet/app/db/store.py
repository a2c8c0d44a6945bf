"""Single authoritative trip state, guarded by a lock.

Every writer (user edits and background enrichment alike) goes through
``DocumentStore.apply_mutation``: read, compute, persist, replace, all under one
``asyncio.Lock``. The in-memory state only changes after a successful save.
"""

import asyncio
import logging
from collections.abc import Callable

from tripsheet.app.db.repositories import TripState, TripStateRepository

logger = logging.getLogger(__name__)

Mutation = Callable[[TripState], TripState]


class PersistenceError(Exception):
    """Saving the trip state failed; the previous state is retained."""

    pass


class DocumentStore:
    """Mutex-guarded owner of the current TripState."""

    def __init__(self, repository: TripStateRepository, initial: TripState | None = None) -> None:
        self._repository = repository
        self._state = initial or TripState.empty()
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, repository: TripStateRepository) -> "DocumentStore":
        """Create a store seeded from whatever the repository holds."""
        state = await repository.load()
        return cls(repository, state)

    def current(self) -> TripState:
        """Snapshot of the current state (a copy)."""
        return self._state.copy()

    async def apply_mutation(self, fn: Mutation) -> TripState:
        """Apply ``fn`` to a copy of the state, persist, then publish.

        Args:
            fn: Receives a private copy of the current state and returns the next
                state. Exceptions raised by ``fn`` propagate and change nothing.

        Returns:
            Copy of the new state

        Raises:
            PersistenceError: Repository save failed; state is unchanged
        """
        async with self._lock:
            next_state = fn(self._state.copy())
            try:
                await self._repository.save(next_state)
            except Exception as e:
                logger.error(
                    f"Trip state save failed: {type(e).__name__}",
                    extra={"structured": {"error_reason": type(e).__name__}},
                )
                raise PersistenceError("Failed to persist trip state") from e
            self._state = next_state
            return next_state.copy()
