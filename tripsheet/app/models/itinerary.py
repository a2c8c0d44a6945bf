"""Itinerary document models - hotel, reservations, days, items, and enrichment."""

from datetime import date, time

from pydantic import BaseModel, Field, field_validator, model_validator

from tripsheet.app.models.common import WEEKDAY_LABELS, Category, ItemStatus, TimeType


class Enrichment(BaseModel):
    """Place details fetched for one outline entry.

    Every field may be None (unknown). A record with ``needs_details=True`` is a
    placeholder: the provider was asked and could not identify a specific place.
    A placeholder is still an attempted enrichment and is never re-queued.
    """

    name: str | None = None
    description: str | None = None
    hook: str | None = None
    tip: str | None = None
    vibe: str | None = None
    hours: str | None = None
    price: str | None = None
    address: str | None = None
    neighborhood: str | None = None
    maps_url: str | None = None
    website: str | None = None
    walking_mins: int | None = None
    is_walking_route: bool = False
    waypoints: list[str] = Field(default_factory=list)
    distance: str | None = None
    duration: str | None = None
    route_url: str | None = None
    needs_details: bool = False

    @classmethod
    def placeholder(cls, description: str | None = None, hook: str | None = None) -> "Enrichment":
        """Record meaning "attempted, no specific place found"."""
        return cls(description=description, hook=hook, needs_details=True)


class EnrichableNode(BaseModel):
    """Common shape of anything that can carry enrichment."""

    prompt_text: str
    display_text: str = ""
    enrichment: Enrichment | None = None

    @field_validator("prompt_text")
    @classmethod
    def validate_prompt_text(cls, v: str) -> str:
        """Collapse whitespace and require non-empty text."""
        collapsed = " ".join(v.split())
        if not collapsed:
            raise ValueError("prompt_text must not be empty")
        return collapsed

    @model_validator(mode="after")
    def default_display_text(self) -> "EnrichableNode":
        """Display text falls back to the prompt text."""
        if not self.display_text:
            self.display_text = self.prompt_text
        return self


class PlaceStub(EnrichableNode):
    """Hotel or reservation entry."""

    pass


class Item(EnrichableNode):
    """Single scheduled activity within a day."""

    time_label: str | None = None
    time_start: time | None = None
    time_end: time | None = None
    time_type: TimeType = TimeType.none
    category: Category = Category.activity
    status: ItemStatus = ItemStatus.primary
    sort_order: int = 0


class Day(BaseModel):
    """One calendar day of the trip."""

    date: date
    day_of_week: str = ""
    title: str = ""
    items: list[Item] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return " ".join(v.split())

    @model_validator(mode="after")
    def derive_day_of_week(self) -> "Day":
        """Day of week is always derived from the date."""
        self.day_of_week = WEEKDAY_LABELS[self.date.weekday()]
        return self


class TripDocument(BaseModel):
    """Complete structured itinerary for one trip."""

    hotel: PlaceStub | None = None
    reservations: list[PlaceStub] = Field(default_factory=list)
    days: list[Day] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: list[str]) -> list[str]:
        """One line per note; blank notes are dropped."""
        collapsed = (" ".join(note.split()) for note in v)
        return [note for note in collapsed if note]

    @model_validator(mode="after")
    def validate_days(self) -> "TripDocument":
        """Keep days ascending by date and reject duplicate dates."""
        seen: set[date] = set()
        for day in self.days:
            if day.date in seen:
                raise ValueError(f"duplicate day {day.date.isoformat()}")
            seen.add(day.date)
        self.days = sorted(self.days, key=lambda d: d.date)
        return self

    def find_day(self, day_date: date) -> Day | None:
        """Return the day for a date, or None."""
        for day in self.days:
            if day.date == day_date:
                return day
        return None
