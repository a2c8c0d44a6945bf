"""SQL implementations of repository interfaces."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripsheet.app.db.models import TripStateRow
from tripsheet.app.db.repositories import TripState


class SqlTripStateRepository:
    """SQL implementation of TripStateRepository (one row per trip key)."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], trip_key: str = "default"
    ) -> None:
        self._session_factory = session_factory
        self._trip_key = trip_key

    async def load(self) -> TripState | None:
        """Load the stored state."""
        async with self._session_factory() as session:
            row = await session.get(TripStateRow, self._trip_key)
            if row is None:
                return None
            return TripState.from_record(
                {
                    "document": row.document,
                    "outline_text": row.outline_text,
                    "enrichment_cache": row.enrichment_cache,
                }
            )

    async def save(self, state: TripState) -> None:
        """Upsert the trip row in a single transaction."""
        record = state.to_record()
        async with self._session_factory() as session, session.begin():
            row = await session.get(TripStateRow, self._trip_key)
            if row is None:
                session.add(TripStateRow(trip_key=self._trip_key, **record))
            else:
                row.document = record["document"]
                row.outline_text = record["outline_text"]
                row.enrichment_cache = record["enrichment_cache"]
