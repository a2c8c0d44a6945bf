"""Common types and enums shared across itinerary models."""

from enum import Enum

WEEKDAY_LABELS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class TimeType(str, Enum):
    """How an item's time was expressed in the outline."""

    specific = "specific"
    range = "range"
    vague = "vague"
    none = "none"


class Category(str, Enum):
    """Activity category inferred from time and description keywords."""

    food = "food"
    culture = "culture"
    entertainment = "entertainment"
    transit = "transit"
    activity = "activity"


class ItemStatus(str, Enum):
    """Scheduling status of an item within its day."""

    primary = "primary"
    backup = "backup"
    optional = "optional"
