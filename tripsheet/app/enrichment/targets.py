"""Addressing of enrichable nodes and collection of enrichment work."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel

from tripsheet.app.models.itinerary import EnrichableNode, TripDocument
from tripsheet.app.outline.timeparse import format_day_token


class NodeKind(str, Enum):
    """Where in the document an enrichable node lives."""

    hotel = "hotel"
    reservation = "reservation"
    item = "item"


@dataclass(frozen=True)
class NodePath:
    """Stable address of a node: hotel, reservation index, or (day, item index)."""

    kind: NodeKind
    index: int = 0
    day: date | None = None

    def __str__(self) -> str:
        if self.kind is NodeKind.item and self.day is not None:
            return f"{self.day.isoformat()}[{self.index}]"
        if self.kind is NodeKind.reservation:
            return f"reservation[{self.index}]"
        return self.kind.value


class EnrichmentRequest(BaseModel):
    """One (description, context) pair sent to the enrichment provider."""

    description: str
    context: str


@dataclass(frozen=True)
class EnrichmentTarget:
    """A node missing enrichment, as seen when it was collected."""

    path: NodePath
    prompt_text: str
    context: str

    @property
    def request(self) -> EnrichmentRequest:
        return EnrichmentRequest(description=self.prompt_text, context=self.context)


def iter_enrichable(doc: TripDocument) -> Iterator[tuple[NodePath, EnrichableNode, str]]:
    """Walk hotel, reservations, then day items in document order.

    Yields:
        (path, node, context) for every enrichable node
    """
    if doc.hotel is not None:
        yield NodePath(NodeKind.hotel), doc.hotel, "hotel"
    for index, reservation in enumerate(doc.reservations):
        yield NodePath(NodeKind.reservation, index), reservation, "reservation"
    for day in doc.days:
        day_label = " ".join(part for part in (format_day_token(day.date), day.title) if part)
        for index, item in enumerate(day.items):
            context = f"{day_label} ({item.category.value})"
            yield NodePath(NodeKind.item, index, day.date), item, context


def resolve_path(doc: TripDocument, path: NodePath) -> EnrichableNode | None:
    """Return the node at a path, or None if it no longer exists."""
    if path.kind is NodeKind.hotel:
        return doc.hotel
    if path.kind is NodeKind.reservation:
        if 0 <= path.index < len(doc.reservations):
            return doc.reservations[path.index]
        return None
    if path.day is None:
        return None
    day = doc.find_day(path.day)
    if day is None or not 0 <= path.index < len(day.items):
        return None
    return day.items[path.index]


def find_items_needing_enrichment(doc: TripDocument) -> list[EnrichmentTarget]:
    """Collect every node whose enrichment is None.

    Placeholder records are non-null and therefore never collected.
    """
    return [
        EnrichmentTarget(path=path, prompt_text=node.prompt_text, context=context)
        for path, node, context in iter_enrichable(doc)
        if node.enrichment is None
    ]
