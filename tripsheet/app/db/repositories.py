"""Repository protocol interfaces for trip state persistence."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from tripsheet.app.models.itinerary import Enrichment, TripDocument


@dataclass(frozen=True)
class TripState:
    """Everything persisted for one trip.

    ``enrichment_cache`` maps prompt_text to the last known enrichment for it,
    independent of where (or whether) that text appears in the document.
    """

    document: TripDocument
    outline_text: str = ""
    enrichment_cache: dict[str, Enrichment] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "TripState":
        return cls(document=TripDocument())

    def copy(self) -> "TripState":
        """Deep copy, safe to mutate."""
        return TripState(
            document=self.document.model_copy(deep=True),
            outline_text=self.outline_text,
            enrichment_cache={k: v.model_copy(deep=True) for k, v in self.enrichment_cache.items()},
        )

    def to_record(self) -> dict[str, Any]:
        """JSON-ready form for storage."""
        return {
            "document": self.document.model_dump(mode="json"),
            "outline_text": self.outline_text,
            "enrichment_cache": {
                k: v.model_dump(mode="json") for k, v in self.enrichment_cache.items()
            },
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TripState":
        return cls(
            document=TripDocument.model_validate(record.get("document") or {}),
            outline_text=record.get("outline_text") or "",
            enrichment_cache={
                k: Enrichment.model_validate(v)
                for k, v in (record.get("enrichment_cache") or {}).items()
            },
        )


class TripStateRepository(Protocol):
    """Repository for the persisted trip state."""

    async def load(self) -> TripState | None:
        """Load the stored state.

        Returns:
            TripState, or None when nothing has been stored yet
        """
        ...

    async def save(self, state: TripState) -> None:
        """Persist the full state, replacing what was stored.

        Args:
            state: State to store
        """
        ...
