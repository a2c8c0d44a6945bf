"""Render a TripDocument back to canonical outline text.

Inverse of ``parse_outline``: ``parse_outline(serialize_outline(doc))`` reproduces
every parsed field and the item order within each day.
"""

from tripsheet.app.models.common import ItemStatus
from tripsheet.app.models.itinerary import Day, Item, TripDocument
from tripsheet.app.outline.timeparse import format_day_token, format_time_range


def _time_token(item: Item) -> str:
    if item.time_label:
        return item.time_label
    return format_time_range(item.time_start, item.time_end)


def render_item(item: Item, *, timed_markers: bool = True) -> str:
    """Render one item as a list line (without the "- " marker).

    Args:
        item: Item to render
        timed_markers: Keep the time on backup/optional items ("7pm fallback: x").
            When False, backup and optional items render as bare prefixes and
            lose their time.
    """
    token = _time_token(item)
    text = item.prompt_text

    if item.status is ItemStatus.backup:
        return f"{token} fallback: {text}" if token and timed_markers else f"fallback: {text}"
    if item.status is ItemStatus.optional:
        return f"{token} optional: {text}" if token and timed_markers else f"optional: {text}"
    return f"{token}: {text}" if token else text


def render_day_header(day: Day) -> str:
    """Render "# Jan 14 (Wed) - Title"."""
    header = f"# {format_day_token(day.date)} ({day.day_of_week})"
    if day.title:
        header += f" - {day.title}"
    return header


def serialize_outline(doc: TripDocument, *, timed_markers: bool = True) -> str:
    """Serialize a document to outline text ending in exactly one newline."""
    sections: list[str] = []

    if doc.hotel is not None:
        sections.append(f"# Hotel\n{doc.hotel.prompt_text}")

    if doc.reservations:
        lines = ["# Reservations"] + [f"- {r.prompt_text}" for r in doc.reservations]
        sections.append("\n".join(lines))

    for day in doc.days:
        lines = [render_day_header(day)]
        lines.extend(
            f"- {render_item(item, timed_markers=timed_markers)}"
            for item in sorted(day.items, key=lambda i: i.sort_order)
        )
        sections.append("\n".join(lines))

    if doc.notes:
        lines = ["# Notes"] + [f"- {note}" for note in doc.notes]
        sections.append("\n".join(lines))

    return "\n\n".join(sections).rstrip() + "\n"
