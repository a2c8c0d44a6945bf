"""Time and date token normalization for the outline format.

Pure functions only. Unrecognized time tokens are not errors: they resolve to
``TimeRange(None, None)`` and ``TimeType.none``. Day tokens are stricter since a
day without a date cannot be ordered, so they raise ``InvalidDateError``.
"""

import re
from datetime import date, time
from typing import NamedTuple

from tripsheet.app.models.common import WEEKDAY_LABELS, TimeType


class InvalidDateError(ValueError):
    """Day token cannot be resolved to a calendar date."""

    def __init__(self, token: str, line_number: int | None = None) -> None:
        self.token = token
        self.line_number = line_number
        where = f" (line {line_number})" if line_number is not None else ""
        super().__init__(f"Cannot resolve day '{token}'{where}")


class TimeRange(NamedTuple):
    """Canonical start/end of a time token; either side may be None."""

    start: time | None
    end: time | None


VAGUE_TIMES: dict[str, time] = {
    "breakfast": time(8, 0),
    "brunch": time(10, 0),
    "morning": time(9, 0),
    "lunch": time(12, 0),
    "afternoon": time(14, 0),
    "evening": time(18, 0),
    "dinner": time(19, 0),
    "night": time(22, 0),
    "late": time(23, 0),
}

_CLOCK = r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?"
_SINGLE_RE = re.compile(rf"^{_CLOCK}$")
_RANGE_RE = re.compile(rf"^{_CLOCK}\s*-\s*{_CLOCK}$")

_ISO_DAY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_RE = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2})$")

_MONTHS: tuple[str, ...] = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
_MONTH_ABBR: tuple[str, ...] = tuple(m[:3].title() for m in _MONTHS)


def _to_24h(hour: int, minute: int, meridiem: str | None) -> time | None:
    """Convert clock parts to a time, or None if out of range."""
    if minute > 59:
        return None
    if meridiem is None:
        if hour > 23:
            return None
        return time(hour, minute)
    if not 1 <= hour <= 12:
        return None
    if meridiem == "am":
        hour = 0 if hour == 12 else hour
    else:
        hour = 12 if hour == 12 else hour + 12
    return time(hour, minute)


def _parse_single(token: str) -> time | None:
    match = _SINGLE_RE.match(token)
    if not match:
        return None
    hour, minute, meridiem = match.groups()
    # A bare number ("11") is not a time; it needs a meridiem or minutes.
    if meridiem is None and minute is None:
        return None
    return _to_24h(int(hour), int(minute or 0), meridiem)


def _parse_range(token: str) -> TimeRange | None:
    match = _RANGE_RE.match(token)
    if not match:
        return None
    s_hour, s_min, s_mer, e_hour, e_min, e_mer = match.groups()

    if e_mer is None:
        # "13:00-15:30" is fine, "1-4" and "1pm-4" are not.
        if s_mer is not None or s_min is None or e_min is None:
            return None

    end = _to_24h(int(e_hour), int(e_min or 0), e_mer)
    if end is None:
        return None

    start_mer = s_mer or e_mer
    start = _to_24h(int(s_hour), int(s_min or 0), start_mer)
    if start is None:
        return None

    # "11-1pm": borrowing pm would put the start after the end.
    if s_mer is None and e_mer == "pm" and start > end:
        start = _to_24h(int(s_hour), int(s_min or 0), "am")
        if start is None:
            return None

    return TimeRange(start, end)


def _normalize(raw: str) -> str:
    return raw.strip().lower()


def parse_time_token(raw: str) -> TimeRange:
    """Resolve a time token to canonical start/end times.

    Args:
        raw: Token as written, e.g. "7:30pm", "4-6pm", "morning"

    Returns:
        TimeRange; both sides None when the token is not recognized
    """
    token = _normalize(raw)
    if token in VAGUE_TIMES:
        return TimeRange(VAGUE_TIMES[token], None)
    single = _parse_single(token)
    if single is not None:
        return TimeRange(single, None)
    rng = _parse_range(token)
    if rng is not None:
        return rng
    return TimeRange(None, None)


def classify_time_token(raw: str) -> TimeType:
    """Classify how a time token was expressed."""
    token = _normalize(raw)
    if token in VAGUE_TIMES:
        return TimeType.vague
    if _parse_single(token) is not None:
        return TimeType.specific
    if _parse_range(token) is not None:
        return TimeType.range
    return TimeType.none


def is_time_token(raw: str) -> bool:
    """True when the token is a recognized time."""
    return classify_time_token(raw) is not TimeType.none


def _clock_parts(value: time) -> tuple[str, str]:
    hour = value.hour % 12 or 12
    meridiem = "am" if value.hour < 12 else "pm"
    clock = f"{hour}:{value.minute:02d}" if value.minute else str(hour)
    return clock, meridiem


def format_time_range(start: time | None, end: time | None = None) -> str:
    """Render canonical times in compact outline form.

    Examples: "7:30pm", "4-6pm", "11am-3pm". Returns "" when there is no start.
    """
    if start is None:
        return ""
    s_clock, s_mer = _clock_parts(start)
    if end is None:
        return f"{s_clock}{s_mer}"
    e_clock, e_mer = _clock_parts(end)
    if s_mer == e_mer and start <= end:
        return f"{s_clock}-{e_clock}{e_mer}"
    return f"{s_clock}{s_mer}-{e_clock}{e_mer}"


def parse_day_token(raw: str, year: int) -> date:
    """Resolve "Jan 14", "January 14", "jan. 14" or "2026-01-14" to a date.

    Raises:
        InvalidDateError: Token is not a resolvable calendar date
    """
    token = raw.strip()

    iso = _ISO_DAY_RE.match(token)
    if iso:
        try:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        except ValueError as e:
            raise InvalidDateError(raw) from e

    match = _DAY_RE.match(token)
    if not match:
        raise InvalidDateError(raw)
    name = match.group(1).lower()
    month = None
    for index, full in enumerate(_MONTHS, start=1):
        if name == full or (len(name) >= 3 and full.startswith(name)):
            month = index
            break
    if month is None:
        raise InvalidDateError(raw)
    try:
        return date(year, month, int(match.group(2)))
    except ValueError as e:
        raise InvalidDateError(raw) from e


def format_day_token(value: date) -> str:
    """Render a date as an outline day token, e.g. "Jan 14"."""
    return f"{_MONTH_ABBR[value.month - 1]} {value.day}"


def day_of_week_label(value: date) -> str:
    """Short weekday label, e.g. "Wed"."""
    return WEEKDAY_LABELS[value.weekday()]
