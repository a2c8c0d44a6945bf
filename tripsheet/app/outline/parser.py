"""Plain-text outline parser.

Outline format::

    # Hotel
    Untitled at 3 Freeman Alley

    # Reservations
    - Hamilton, Jan 15 7pm

    # Jan 14 (Wed) - Arrival
    - 11am: Katz's Delicatessen
    - fallback: Russ & Daughters
    - 7pm (optional): Village Vanguard

    # Notes
    - Bring a warm coat

The only fatal condition is a day header whose date cannot be resolved.
"""

import logging
import re
from datetime import date
from enum import Enum

from tripsheet.app.models.common import ItemStatus, TimeType
from tripsheet.app.models.itinerary import Day, Item, PlaceStub, TripDocument
from tripsheet.app.outline.categories import infer_category
from tripsheet.app.outline.timeparse import (
    InvalidDateError,
    classify_time_token,
    is_time_token,
    parse_day_token,
    parse_time_token,
)

logger = logging.getLogger(__name__)

DAY_HEADER_RE = re.compile(
    r"^#\s+(?P<date>[A-Za-z]+\.?\s+\d{1,2}|\d{4}-\d{2}-\d{2})"
    r"(?:\s+\((?P<dow>[A-Za-z]+)\))?"
    r"(?:\s+-\s+(?P<title>.*\S))?\s*$"
)

BACKUP_PREFIX = "fallback: "
OPTIONAL_PREFIXES = ("optional: ", "optional ")
TIME_DELIMITER = ": "

# Trailing markers allowed on the time head, e.g. "7pm (optional): ..."
_HEAD_MARKERS: tuple[tuple[str, ItemStatus], ...] = (
    ("(optional)", ItemStatus.optional),
    (" optional", ItemStatus.optional),
    (" fallback", ItemStatus.backup),
)


class Section(str, Enum):
    """Parser state while scanning the outline."""

    none = "none"
    hotel = "hotel"
    reservations = "reservations"
    notes = "notes"
    day = "day"


_SECTION_HEADERS: tuple[tuple[str, Section], ...] = (
    ("# Hotel", Section.hotel),
    ("# Reservations", Section.reservations),
    ("# Notes", Section.notes),
)


def _split_head_marker(head: str) -> tuple[str, ItemStatus | None]:
    for marker, status in _HEAD_MARKERS:
        if head.endswith(marker):
            return head[: -len(marker)].strip(), status
    return head, None


def parse_item_line(content: str, sort_order: int = 0) -> Item:
    """Parse the text after a "- " list marker into an Item.

    Args:
        content: List line content without the marker
        sort_order: Position within the day

    Returns:
        Item with status, time, and inferred category; enrichment is None
    """
    content = content.strip()
    status = ItemStatus.primary

    if content.startswith(BACKUP_PREFIX):
        status = ItemStatus.backup
        content = content[len(BACKUP_PREFIX) :].strip()
    else:
        for prefix in OPTIONAL_PREFIXES:
            if content.startswith(prefix):
                status = ItemStatus.optional
                content = content[len(prefix) :].strip()
                break

    time_label: str | None = None
    description = content

    head, sep, rest = content.partition(TIME_DELIMITER)
    if sep and head.strip() and rest.strip():
        token, marker = _split_head_marker(head.strip().lower())
        if is_time_token(token):
            time_label = token
            description = rest.strip()
            # Markers never override an explicit prefix status.
            if marker is not None and status is ItemStatus.primary:
                status = marker

    start, end = parse_time_token(time_label) if time_label else (None, None)
    time_type = classify_time_token(time_label) if time_label else TimeType.none

    return Item(
        prompt_text=description,
        time_label=time_label,
        time_start=start,
        time_end=end,
        time_type=time_type,
        category=infer_category(time_label, description),
        status=status,
        sort_order=sort_order,
    )


def parse_outline(text: str, *, year: int) -> TripDocument:
    """Parse outline text into a TripDocument.

    Args:
        text: Outline text
        year: Year for day headers that carry no year

    Returns:
        Document with days in ascending date order

    Raises:
        InvalidDateError: A day header's date cannot be resolved
    """
    section = Section.none
    hotel: PlaceStub | None = None
    reservations: list[PlaceStub] = []
    notes: list[str] = []
    days: dict[date, Day] = {}
    current_day: Day | None = None

    for line_number, line in enumerate(text.splitlines(), start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if trimmed == "#" or trimmed.startswith("# "):
            current_day = None
            section = Section.none
            for prefix, header_section in _SECTION_HEADERS:
                if trimmed.startswith(prefix):
                    section = header_section
                    break
            else:
                match = DAY_HEADER_RE.match(trimmed)
                if match:
                    try:
                        day_date = parse_day_token(match.group("date"), year)
                    except InvalidDateError as e:
                        raise InvalidDateError(e.token, line_number) from e
                    title = (match.group("title") or "").strip()
                    current_day = days.get(day_date)
                    if current_day is None:
                        current_day = Day(date=day_date, title=title)
                        days[day_date] = current_day
                    elif title and not current_day.title:
                        current_day.title = title
                    section = Section.day
                else:
                    logger.debug(f"Ignoring unknown header on line {line_number}: {trimmed}")
            continue

        is_list = trimmed.startswith("- ")
        content = trimmed[2:].strip() if is_list else ""

        if section is Section.hotel:
            if not is_list and hotel is None:
                hotel = PlaceStub(prompt_text=trimmed)
        elif not is_list or not content:
            continue
        elif section is Section.reservations:
            reservations.append(PlaceStub(prompt_text=content))
        elif section is Section.notes:
            notes.append(content)
        elif section is Section.day and current_day is not None:
            current_day.items.append(parse_item_line(content, len(current_day.items)))

    return TripDocument(
        hotel=hotel,
        reservations=reservations,
        days=list(days.values()),
        notes=notes,
    )
