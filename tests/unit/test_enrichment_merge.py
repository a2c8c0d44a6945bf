"""Tests for carrying enrichment across edits."""

from datetime import date

from fakes import place

from tripsheet.app.enrichment.merge import (
    build_enrichment_index,
    merge_enrichment,
    prune_enrichment_cache,
)
from tripsheet.app.models.itinerary import Day, Enrichment, Item, PlaceStub, TripDocument
from tripsheet.app.outline.parser import parse_outline


def _doc(*texts: str, day: date = date(2026, 1, 14)) -> TripDocument:
    items = [Item(prompt_text=t, sort_order=i) for i, t in enumerate(texts)]
    return TripDocument(days=[Day(date=day, items=items)])


def _enriched(*texts: str) -> TripDocument:
    doc = _doc(*texts)
    for item in doc.days[0].items:
        item.enrichment = place(f"{item.prompt_text} official")
        item.display_text = f"{item.prompt_text} official"
    return doc


class TestMergeEnrichment:
    """Identity is exact prompt_text."""

    def test_no_previous_returns_fresh_unchanged(self) -> None:
        fresh = _doc("Katz's Delicatessen")
        assert merge_enrichment(fresh, None) is fresh

    def test_identical_text_carries_enrichment(self) -> None:
        previous = _enriched("Katz's Delicatessen")
        fresh = parse_outline("# Jan 15\n- 9pm: Katz's Delicatessen\n", year=2026)

        merged = merge_enrichment(fresh, previous)

        item = merged.days[0].items[0]
        assert item.enrichment == previous.days[0].items[0].enrichment
        assert item.display_text == "Katz's Delicatessen official"
        assert item.time_label == "9pm"

    def test_one_character_difference_does_not_carry(self) -> None:
        previous = _enriched("Katz's Delicatessen")
        fresh = _doc("Katz's Delicatessen.")

        merged = merge_enrichment(fresh, previous)

        item = merged.days[0].items[0]
        assert item.enrichment is None
        assert item.display_text == "Katz's Delicatessen."

    def test_position_is_irrelevant(self) -> None:
        previous = _enriched("Carbone", "Katz's Delicatessen")
        fresh = _doc("Katz's Delicatessen", "New place", "Carbone")

        merged = merge_enrichment(fresh, previous)

        names = [i.enrichment.name if i.enrichment else None for i in merged.days[0].items]
        assert names == ["Katz's Delicatessen official", None, "Carbone official"]

    def test_hotel_and_reservations_merge(self) -> None:
        previous = TripDocument(
            hotel=PlaceStub(prompt_text="The Ludlow", enrichment=place("The Ludlow Hotel")),
            reservations=[PlaceStub(prompt_text="Hamilton", enrichment=place("Hamilton"))],
        )
        fresh = TripDocument(
            hotel=PlaceStub(prompt_text="The Ludlow"),
            reservations=[PlaceStub(prompt_text="Hamilton"), PlaceStub(prompt_text="Carbone")],
        )

        merged = merge_enrichment(fresh, previous)

        assert merged.hotel is not None
        assert merged.hotel.display_text == "The Ludlow Hotel"
        assert merged.reservations[0].enrichment is not None
        assert merged.reservations[1].enrichment is None

    def test_inputs_not_mutated(self) -> None:
        previous = _enriched("Carbone")
        fresh = _doc("Carbone")
        previous_before = previous.model_copy(deep=True)
        fresh_before = fresh.model_copy(deep=True)

        merged = merge_enrichment(fresh, previous)
        merged.days[0].items[0].enrichment.hook = "changed"  # type: ignore[union-attr]

        assert previous == previous_before
        assert fresh == fresh_before

    def test_placeholder_is_carried_and_keeps_prompt_as_display(self) -> None:
        previous = _doc("Sleep in")
        previous.days[0].items[0].enrichment = Enrichment.placeholder(hook="Add details...")

        merged = merge_enrichment(_doc("Sleep in"), previous)

        item = merged.days[0].items[0]
        assert item.enrichment is not None
        assert item.enrichment.needs_details is True
        assert item.display_text == "Sleep in"

    def test_cache_supplies_enrichment_missing_from_previous(self) -> None:
        cache = {"Carbone": place("Carbone official")}

        merged = merge_enrichment(_doc("Carbone"), _doc("Something else"), cache)

        assert merged.days[0].items[0].display_text == "Carbone official"

    def test_cache_alone_is_enough(self) -> None:
        merged = merge_enrichment(_doc("Carbone"), None, {"Carbone": place("Carbone official")})
        assert merged.days[0].items[0].enrichment is not None

    def test_previous_document_wins_over_cache(self) -> None:
        previous = _enriched("Carbone")
        cache = {"Carbone": place("Stale name")}

        merged = merge_enrichment(_doc("Carbone"), previous, cache)

        assert merged.days[0].items[0].display_text == "Carbone official"


class TestBuildEnrichmentIndex:
    """Lookup construction."""

    def test_only_enriched_nodes_recorded(self) -> None:
        doc = _enriched("Carbone")
        doc.days[0].items.append(Item(prompt_text="Unenriched"))
        assert set(build_enrichment_index(doc)) == {"Carbone"}

    def test_duplicate_text_last_write_wins(self) -> None:
        doc = _doc("Carbone", "Carbone")
        doc.days[0].items[0].enrichment = place("First")
        doc.days[0].items[1].enrichment = place("Second")
        assert build_enrichment_index(doc)["Carbone"].name == "Second"


class TestPruneEnrichmentCache:
    """Bounding the persisted cache."""

    def test_within_bound_is_untouched(self) -> None:
        cache = {"Old": place("Old")}
        assert prune_enrichment_cache(cache, _doc("Carbone"), 5) == 0
        assert list(cache) == ["Old"]

    def test_oldest_unused_entries_go_first(self) -> None:
        cache = {"Oldest": place("Oldest"), "Older": place("Older"), "Carbone": place("Carbone")}

        removed = prune_enrichment_cache(cache, _doc("Carbone"), 2)

        assert removed == 1
        assert list(cache) == ["Older", "Carbone"]

    def test_text_in_document_is_never_dropped(self) -> None:
        cache = {"Carbone": place("Carbone"), "Hamilton": place("Hamilton")}

        removed = prune_enrichment_cache(cache, _doc("Carbone", "Hamilton"), 1)

        assert removed == 0
        assert set(cache) == {"Carbone", "Hamilton"}
