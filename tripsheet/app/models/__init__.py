"""Models package - re-exports for convenience."""

from tripsheet.app.models.common import WEEKDAY_LABELS, Category, ItemStatus, TimeType
from tripsheet.app.models.itinerary import (
    Day,
    EnrichableNode,
    Enrichment,
    Item,
    PlaceStub,
    TripDocument,
)

__all__ = [
    # Common
    "Category",
    "ItemStatus",
    "TimeType",
    "WEEKDAY_LABELS",
    # Itinerary
    "Day",
    "EnrichableNode",
    "Enrichment",
    "Item",
    "PlaceStub",
    "TripDocument",
]
