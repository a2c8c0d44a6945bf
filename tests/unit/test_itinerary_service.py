"""Tests for itinerary mutation operations."""

from datetime import date, time

import pytest
from fakes import SAMPLE_OUTLINE, FakeEnrichmentClient, RecordingScheduler

from tripsheet.app.db.inmemory import InMemoryTripStateRepository
from tripsheet.app.db.repositories import TripState
from tripsheet.app.db.store import DocumentStore, PersistenceError
from tripsheet.app.enrichment.targets import find_items_needing_enrichment
from tripsheet.app.itinerary.service import ItemChanges, ItemNotFoundError, ItineraryService
from tripsheet.app.models.common import Category, ItemStatus, TimeType
from tripsheet.app.models.itinerary import Day, Item, TripDocument
from tripsheet.app.outline.parser import parse_outline
from tripsheet.app.outline.timeparse import InvalidDateError

JAN_14 = date(2026, 1, 14)
JAN_15 = date(2026, 1, 15)


class TestScenarios:
    """End-to-end flows through the real scheduler."""

    @pytest.mark.asyncio
    async def test_add_then_edit_resets_enrichment(
        self, service: ItineraryService, enrichment_client: FakeEnrichmentClient
    ) -> None:
        await service.replace_outline("# Jan 14 (Wed)\n- 7pm: Carbone\n")
        await service.scheduler.wait_idle()
        assert service.get_document().days[0].items[0].enrichment is not None

        doc = await service.update_item(
            JAN_14, 0, ItemChanges(prompt_text="Carbone, Greenwich Village")
        )

        item = doc.days[0].items[0]
        assert item.enrichment is None
        assert item.display_text == "Carbone, Greenwich Village"
        assert item.time_label == "7pm"
        pending = [t.prompt_text for t in find_items_needing_enrichment(doc)]
        assert pending == ["Carbone, Greenwich Village"]

        await service.scheduler.wait_idle()
        assert enrichment_client.calls[-1][0].description == "Carbone, Greenwich Village"

    @pytest.mark.asyncio
    async def test_outline_edit_keeps_known_enrichment(self, service: ItineraryService) -> None:
        await service.replace_outline(SAMPLE_OUTLINE)
        await service.scheduler.wait_idle()

        edited = SAMPLE_OUTLINE.replace("- 11am: Katz's Delicatessen", "- lunch: Katz's Delicatessen")
        edited = edited.replace("- 4-6pm: Walk the Bowery", "- 4-6pm: Walk the Bowery slowly")
        doc = await service.replace_outline(edited)

        items = doc.days[0].items
        assert items[0].enrichment is not None
        assert items[0].display_text == "Katz's Delicatessen (official)"
        assert items[2].enrichment is None

    @pytest.mark.asyncio
    async def test_response_returns_before_enrichment(self, service: ItineraryService) -> None:
        doc = await service.replace_outline(SAMPLE_OUTLINE)

        assert all(i.enrichment is None for d in doc.days for i in d.items)
        await service.scheduler.wait_idle()
        assert service.pending_enrichment() == []


@pytest.fixture
def recorded() -> tuple[ItineraryService, RecordingScheduler, InMemoryTripStateRepository]:
    repository = InMemoryTripStateRepository()
    scheduler = RecordingScheduler()
    svc = ItineraryService(DocumentStore(repository), scheduler, year=2026)  # type: ignore[arg-type]
    return svc, scheduler, repository


class TestReplace:
    """Wholesale outline and document replacement."""

    @pytest.mark.asyncio
    async def test_replace_outline_persists_text_and_triggers(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, scheduler, repository = recorded

        await svc.replace_outline(SAMPLE_OUTLINE + "\n\n\n")

        assert svc.get_outline() == SAMPLE_OUTLINE
        assert repository.save_count == 1
        assert scheduler.scheduled == 1

    @pytest.mark.asyncio
    async def test_invalid_outline_leaves_state_untouched(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, scheduler, repository = recorded
        await svc.replace_outline(SAMPLE_OUTLINE)

        with pytest.raises(InvalidDateError):
            await svc.replace_outline("# Jan 99 (Wed)\n- Nope\n")

        assert svc.get_outline() == SAMPLE_OUTLINE
        assert repository.save_count == 1
        assert scheduler.scheduled == 1

    @pytest.mark.asyncio
    async def test_replace_document_regenerates_outline(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        doc = await svc.replace_outline(SAMPLE_OUTLINE)
        for item in doc.days[0].items:
            item.sort_order = 10 - item.sort_order

        result = await svc.replace_document(doc)

        assert [i.sort_order for i in result.days[0].items] == [0, 1, 2, 3]
        assert result.days[0].items[0].prompt_text == "Village Vanguard"
        assert svc.get_outline().splitlines()[7] == "- 7pm optional: Village Vanguard"

    @pytest.mark.asyncio
    async def test_replace_document_orders_by_sort_order(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        doc = TripDocument(
            days=[
                Day(
                    date=JAN_14,
                    items=[
                        Item(prompt_text="Second", sort_order=1),
                        Item(prompt_text="First", sort_order=0),
                    ],
                )
            ]
        )

        result = await svc.replace_document(doc)

        assert [i.prompt_text for i in result.days[0].items] == ["First", "Second"]
        assert svc.get_outline() == "# Jan 14 (Wed)\n- First\n- Second\n"

    @pytest.mark.asyncio
    async def test_replace_document_equal_sort_orders_keep_list_order(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        items = [Item(prompt_text=t) for t in ("Gamma", "Alpha", "Beta")]

        result = await svc.replace_document(TripDocument(days=[Day(date=JAN_14, items=items)]))

        assert [i.prompt_text for i in result.days[0].items] == ["Gamma", "Alpha", "Beta"]


class TestItemOperations:
    """Add, update, and remove single items."""

    @pytest.mark.asyncio
    async def test_add_item_creates_day_in_order(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, scheduler, _repository = recorded
        await svc.replace_outline("# Jan 16\n- Later\n")

        doc = await svc.add_item(JAN_14, "Katz's Delicatessen", time="11am")

        assert [d.date for d in doc.days] == [JAN_14, date(2026, 1, 16)]
        item = doc.days[0].items[0]
        assert (item.time_start, item.time_type, item.category) == (
            time(11, 0),
            TimeType.specific,
            Category.food,
        )
        assert "# Jan 14 (Wed)\n- 11am: Katz's Delicatessen" in svc.get_outline()
        assert scheduler.scheduled == 2

    @pytest.mark.asyncio
    async def test_add_item_at_position(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        await svc.replace_outline("# Jan 14\n- First\n- Third\n")

        doc = await svc.add_item(JAN_14, "Second", status=ItemStatus.optional, position=1)

        assert [i.prompt_text for i in doc.days[0].items] == ["First", "Second", "Third"]
        assert [i.sort_order for i in doc.days[0].items] == [0, 1, 2]
        assert doc.days[0].items[1].status is ItemStatus.optional

    @pytest.mark.asyncio
    async def test_add_item_drops_unrecognized_time(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        doc = await svc.add_item(JAN_14, "Carbone", time="whenever")
        item = doc.days[0].items[0]
        assert item.time_label is None
        assert item.time_type is TimeType.none

    @pytest.mark.asyncio
    async def test_add_item_rejects_blank_text(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, repository = recorded
        with pytest.raises(ValueError):
            await svc.add_item(JAN_14, "   ")
        assert repository.save_count == 0

    @pytest.mark.asyncio
    async def test_update_time_and_status_keeps_enrichment(self, service: ItineraryService) -> None:
        await service.replace_outline("# Jan 14\n- 7pm: Carbone\n")
        await service.scheduler.wait_idle()

        doc = await service.update_item(
            JAN_14, 0, ItemChanges(time="dinner", status=ItemStatus.backup)
        )

        item = doc.days[0].items[0]
        assert item.enrichment is not None
        assert item.status is ItemStatus.backup
        assert item.time_type is TimeType.vague
        assert item.category is Category.food

    @pytest.mark.asyncio
    async def test_update_with_explicit_null_time_clears_it(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        await svc.replace_outline("# Jan 14\n- 7pm: Carbone\n")

        cleared = await svc.update_item(JAN_14, 0, ItemChanges.model_validate({"time": None}))
        assert cleared.days[0].items[0].time_label is None

    @pytest.mark.asyncio
    async def test_update_without_time_field_keeps_it(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        await svc.replace_outline("# Jan 14\n- 7pm: Carbone\n")

        doc = await svc.update_item(JAN_14, 0, ItemChanges(status=ItemStatus.optional))
        assert doc.days[0].items[0].time_label == "7pm"

    @pytest.mark.asyncio
    async def test_same_text_does_not_reset(self, service: ItineraryService) -> None:
        await service.replace_outline("# Jan 14\n- Carbone\n")
        await service.scheduler.wait_idle()

        doc = await service.update_item(JAN_14, 0, ItemChanges(prompt_text="  Carbone "))
        assert doc.days[0].items[0].enrichment is not None

    @pytest.mark.asyncio
    async def test_remove_item(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        await svc.replace_outline("# Jan 14\n- First\n- Second\n")

        doc = await svc.remove_item(JAN_14, 0)

        assert [(i.prompt_text, i.sort_order) for i in doc.days[0].items] == [("Second", 0)]
        assert svc.get_outline() == "# Jan 14 (Wed)\n- Second\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("day", "index"), [(JAN_15, 0), (JAN_14, 5), (JAN_14, -1)])
    async def test_missing_targets_raise(self, recorded, day: date, index: int) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, repository = recorded
        await svc.replace_outline("# Jan 14\n- Only\n")

        with pytest.raises(ItemNotFoundError):
            await svc.update_item(day, index, ItemChanges(status=ItemStatus.backup))
        with pytest.raises(ItemNotFoundError):
            await svc.remove_item(day, index)
        assert repository.save_count == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_surfaces(self) -> None:
        class DownRepository(InMemoryTripStateRepository):
            async def save(self, state: TripState) -> None:
                raise ConnectionError("db down")

        scheduler = RecordingScheduler()
        svc = ItineraryService(DocumentStore(DownRepository()), scheduler, year=2026)  # type: ignore[arg-type]

        with pytest.raises(PersistenceError):
            await svc.add_item(JAN_14, "Carbone")

        assert svc.get_document().days == []
        assert scheduler.scheduled == 0


def _outline_reading(svc: ItineraryService) -> list[tuple[str, str | None, ItemStatus]]:
    reparsed = parse_outline(svc.get_outline(), year=2026)
    return [(i.prompt_text, i.time_label, i.status) for i in reparsed.days[0].items]


def _document_reading(doc: TripDocument) -> list[tuple[str, str | None, ItemStatus]]:
    return [(i.prompt_text, i.time_label, i.status) for i in doc.days[0].items]


class TestOutlineStability:
    """Edited items read back the same from the stored outline."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Dinner: Carbone", ("Carbone", "dinner", ItemStatus.primary)),
            ("7pm: Carbone", ("Carbone", "7pm", ItemStatus.primary)),
            ("fallback: Carbone", ("Carbone", None, ItemStatus.backup)),
            ("optional Carbone", ("Carbone", None, ItemStatus.optional)),
            ("Note: bring cash", ("Note: bring cash", None, ItemStatus.primary)),
        ],
    )
    async def test_added_text_matches_outline(self, recorded, text: str, expected: tuple) -> None:  # type: ignore[no-untyped-def,type-arg]
        svc, _scheduler, _repository = recorded

        doc = await svc.add_item(JAN_14, text)

        assert _document_reading(doc) == [expected]
        assert _outline_reading(svc) == [expected]

    @pytest.mark.asyncio
    async def test_timed_item_keeps_colon_text(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded

        doc = await svc.add_item(JAN_14, "Dinner: Carbone", time="7pm")

        assert _document_reading(doc) == [("Dinner: Carbone", "7pm", ItemStatus.primary)]
        assert _outline_reading(svc) == _document_reading(doc)

    @pytest.mark.asyncio
    async def test_updated_text_matches_outline(self, recorded) -> None:  # type: ignore[no-untyped-def]
        svc, _scheduler, _repository = recorded
        await svc.replace_outline("# Jan 14\n- Carbone\n")

        doc = await svc.update_item(JAN_14, 0, ItemChanges(prompt_text="optional: Katz's"))

        assert _document_reading(doc) == [("Katz's", None, ItemStatus.optional)]
        assert _outline_reading(svc) == _document_reading(doc)

    @pytest.mark.asyncio
    async def test_resubmitted_outline_keeps_enrichment(self, service: ItineraryService) -> None:
        await service.add_item(JAN_14, "Dinner: Carbone")
        await service.scheduler.wait_idle()

        doc = await service.replace_outline(service.get_outline())

        item = doc.days[0].items[0]
        assert item.prompt_text == "Carbone"
        assert item.enrichment is not None
