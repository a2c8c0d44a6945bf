"""Itinerary operations: outline/document replacement and single-item edits.

Every write follows the same path: edit a private copy, renumber items, merge
known enrichment, persist through the store, then kick off background
enrichment. The caller gets the merged document back immediately.
"""

import logging
from collections.abc import Callable
from datetime import date

from pydantic import BaseModel, Field, field_validator

from tripsheet.app.config import Settings
from tripsheet.app.db.engine import create_session_factory, get_async_engine, init_models
from tripsheet.app.db.repositories import TripState, TripStateRepository
from tripsheet.app.db.sql_repositories import SqlTripStateRepository
from tripsheet.app.db.store import DocumentStore
from tripsheet.app.enrichment.clients import get_enrichment_client
from tripsheet.app.enrichment.merge import merge_enrichment
from tripsheet.app.enrichment.runner import BatchRunner, RetryPolicy
from tripsheet.app.enrichment.scheduler import EnrichmentScheduler
from tripsheet.app.enrichment.targets import EnrichmentTarget, find_items_needing_enrichment
from tripsheet.app.models.common import ItemStatus, TimeType
from tripsheet.app.models.itinerary import Day, Item, TripDocument
from tripsheet.app.outline.categories import infer_category
from tripsheet.app.outline.parser import parse_item_line, parse_outline
from tripsheet.app.outline.serializer import render_item, serialize_outline
from tripsheet.app.outline.timeparse import classify_time_token, parse_time_token
from tripsheet.app.utils.logging import StructuredEnrichmentLogger
from tripsheet.app.utils.metrics import PrometheusEnrichmentMetrics

logger = logging.getLogger(__name__)


class ItemNotFoundError(LookupError):
    """No day for the date, or no item at the index."""

    def __init__(self, day: date, index: int | None = None) -> None:
        self.day = day
        self.index = index
        target = f"item {index} on {day.isoformat()}" if index is not None else day.isoformat()
        super().__init__(f"Not found: {target}")


def _collapse(value: str) -> str:
    collapsed = " ".join(value.split())
    if not collapsed:
        raise ValueError("prompt_text must not be empty")
    return collapsed


class ItemChanges(BaseModel):
    """Partial update for one item. Only fields explicitly set are applied."""

    prompt_text: str | None = None
    time: str | None = Field(None, description="Time token; null clears the time")
    status: ItemStatus | None = None

    @field_validator("prompt_text")
    @classmethod
    def validate_prompt_text(cls, v: str | None) -> str | None:
        return _collapse(v) if v is not None else None


def _apply_time(item: Item, raw: str | None) -> None:
    """Set time fields from a token; unrecognized tokens clear the time."""
    token = (raw or "").strip().lower()
    time_type = classify_time_token(token) if token else TimeType.none
    if token and time_type is TimeType.none:
        logger.info(f"Dropping unrecognized time token: {raw!r}")
    if time_type is TimeType.none:
        item.time_label = None
        item.time_start = item.time_end = None
        item.time_type = TimeType.none
        return
    item.time_label = token
    item.time_start, item.time_end = parse_time_token(token)
    item.time_type = time_type


def _renumber(doc: TripDocument) -> None:
    for day in doc.days:
        for position, item in enumerate(day.items):
            item.sort_order = position


def _order_by_sort_order(doc: TripDocument) -> None:
    """Stable sort; items with equal sort_order keep their list position."""
    for day in doc.days:
        day.items.sort(key=lambda i: i.sort_order)


def _settle_item(item: Item, *, timed_markers: bool) -> None:
    """Give an item the meaning its outline line parses back to.

    Text like "Dinner: Carbone" or "optional Carbone" on an untimed primary item
    reads as a time or status once written out, so the item takes that reading.
    """
    reparsed = parse_item_line(render_item(item, timed_markers=timed_markers))
    current = (item.prompt_text, item.time_label, item.status)
    if (reparsed.prompt_text, reparsed.time_label, reparsed.status) == current:
        return
    logger.info(
        f"Item text {item.prompt_text!r} reads as time {reparsed.time_label!r}, "
        f"status {reparsed.status.value} in the outline"
    )
    item.prompt_text = reparsed.prompt_text
    item.display_text = reparsed.prompt_text
    item.time_label = reparsed.time_label
    item.time_start, item.time_end = reparsed.time_start, reparsed.time_end
    item.time_type = reparsed.time_type
    item.status = reparsed.status
    item.category = reparsed.category


def _locate_day(doc: TripDocument, day_date: date) -> Day:
    day = doc.find_day(day_date)
    if day is None:
        raise ItemNotFoundError(day_date)
    return day


def _locate_item(doc: TripDocument, day_date: date, index: int) -> tuple[Day, Item]:
    day = _locate_day(doc, day_date)
    if not 0 <= index < len(day.items):
        raise ItemNotFoundError(day_date, index)
    return day, day.items[index]


class ItineraryService:
    """Item mutation operations over the single trip document."""

    def __init__(
        self,
        store: DocumentStore,
        scheduler: EnrichmentScheduler,
        *,
        year: int,
        timed_markers: bool = True,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._year = year
        self._timed_markers = timed_markers

    @property
    def scheduler(self) -> EnrichmentScheduler:
        return self._scheduler

    def get_document(self) -> TripDocument:
        return self._store.current().document

    def get_outline(self) -> str:
        return self._store.current().outline_text

    def pending_enrichment(self) -> list[EnrichmentTarget]:
        """Nodes still waiting for enrichment."""
        return find_items_needing_enrichment(self._store.current().document)

    def trigger_enrichment(self) -> bool:
        """Start a background pass. False when folded into one already running."""
        return self._scheduler.schedule() is not None

    async def replace_outline(self, text: str) -> TripDocument:
        """Replace the whole outline.

        Raises:
            InvalidDateError: A day header cannot be resolved; nothing is stored
        """
        fresh = parse_outline(text, year=self._year)
        outline_text = text.rstrip() + "\n" if text.strip() else ""

        def mutate(state: TripState) -> TripState:
            merged = merge_enrichment(fresh, state.document, state.enrichment_cache)
            return TripState(merged, outline_text, state.enrichment_cache)

        return await self._commit(mutate)

    async def replace_document(self, doc: TripDocument) -> TripDocument:
        """Replace the whole document; the outline text is regenerated.

        Items are ordered by ``sort_order``, then by list position, and renumbered.
        """
        fresh = doc.model_copy(deep=True)
        _order_by_sort_order(fresh)
        _renumber(fresh)
        self._settle(fresh)

        def mutate(state: TripState) -> TripState:
            merged = merge_enrichment(fresh, state.document, state.enrichment_cache)
            return TripState(merged, self._render(merged), state.enrichment_cache)

        return await self._commit(mutate)

    async def add_item(
        self,
        day_date: date,
        prompt_text: str,
        time: str | None = None,
        status: ItemStatus = ItemStatus.primary,
        position: int | None = None,
    ) -> TripDocument:
        """Add an item to a day, creating the day if needed.

        Args:
            day_date: Day to add to
            prompt_text: Item text
            time: Optional time token, e.g. "7pm"
            status: Item status
            position: Insert position; appended when None
        """
        item = Item(prompt_text=prompt_text, status=status)
        _apply_time(item, time)
        item.category = infer_category(item.time_label, item.prompt_text)

        def edit(doc: TripDocument) -> None:
            day = doc.find_day(day_date)
            if day is None:
                day = Day(date=day_date)
                doc.days.append(day)
                doc.days.sort(key=lambda d: d.date)
            at = len(day.items) if position is None else max(0, min(position, len(day.items)))
            day.items.insert(at, item.model_copy(deep=True))

        return await self._edit_document(edit)

    async def update_item(self, day_date: date, index: int, changes: ItemChanges) -> TripDocument:
        """Update an item's text, time, or status.

        A text change discards the item's enrichment so it is fetched again.

        Raises:
            ItemNotFoundError: No such day or index
        """
        fields_set = changes.model_fields_set

        def edit(doc: TripDocument) -> None:
            _day, item = _locate_item(doc, day_date, index)
            if changes.prompt_text is not None and changes.prompt_text != item.prompt_text:
                item.prompt_text = changes.prompt_text
                item.enrichment = None
                item.display_text = item.prompt_text
            if "time" in fields_set:
                _apply_time(item, changes.time)
            if changes.status is not None:
                item.status = changes.status
            item.category = infer_category(item.time_label, item.prompt_text)

        return await self._edit_document(edit)

    async def remove_item(self, day_date: date, index: int) -> TripDocument:
        """Remove an item; the day itself is kept.

        Raises:
            ItemNotFoundError: No such day or index
        """

        def edit(doc: TripDocument) -> None:
            day, _item = _locate_item(doc, day_date, index)
            del day.items[index]

        return await self._edit_document(edit)

    def _render(self, doc: TripDocument) -> str:
        return serialize_outline(doc, timed_markers=self._timed_markers)

    def _settle(self, doc: TripDocument) -> None:
        for day in doc.days:
            for item in day.items:
                _settle_item(item, timed_markers=self._timed_markers)

    async def _edit_document(self, edit: Callable[[TripDocument], None]) -> TripDocument:
        def mutate(state: TripState) -> TripState:
            edited = state.document.model_copy(deep=True)
            edit(edited)
            _renumber(edited)
            self._settle(edited)
            merged = merge_enrichment(edited, state.document, state.enrichment_cache)
            return TripState(merged, self._render(merged), state.enrichment_cache)

        return await self._commit(mutate)

    async def _commit(self, mutate: Callable[[TripState], TripState]) -> TripDocument:
        state = await self._store.apply_mutation(mutate)
        self._scheduler.schedule()
        return state.document


async def build_itinerary_service(
    settings: Settings, repository: TripStateRepository | None = None
) -> ItineraryService:
    """Wire store, enrichment runner, and scheduler from settings.

    Args:
        settings: Application settings
        repository: Storage override; defaults to the SQL repository

    Returns:
        Ready ItineraryService
    """
    if repository is None:
        engine = get_async_engine()
        await init_models(engine)
        repository = SqlTripStateRepository(create_session_factory(engine), settings.trip_key)

    store = await DocumentStore.open(repository)
    metrics = PrometheusEnrichmentMetrics()
    runner = BatchRunner(
        get_enrichment_client(settings),
        RetryPolicy.from_settings(settings),
        metrics=metrics,
        logger=StructuredEnrichmentLogger(),
    )
    scheduler = EnrichmentScheduler(
        store,
        runner,
        max_batch_size=settings.enrichment_max_batch_size,
        max_cache_entries=settings.enrichment_cache_max_entries,
        metrics=metrics,
    )
    return ItineraryService(
        store, scheduler, year=settings.trip_year, timed_markers=settings.outline_timed_markers
    )
