"""Fixed weekend slot windows and field capacity rules."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Tuple, Union

from dreamer.core.exceptions import InvalidSlotError

SLOT_WINDOWS: Dict[int, Tuple[time, time]] = {
    1: (time(9, 0), time(10, 30)),
    2: (time(10, 30), time(12, 0)),
    3: (time(12, 0), time(13, 30)),
    4: (time(13, 30), time(15, 0)),
}

# date.weekday(): Saturday == 5, Sunday == 6
BOOKABLE_WEEKDAYS = frozenset({5, 6})

FIELD_CAPACITY: Dict[str, int] = {
    "futbol7": 14,
    "futbol11": 22,
}


def capacity_for_type(field_type: str) -> int:
    """Return the maximum occupancy allowed for a field type."""

    try:
        return FIELD_CAPACITY[field_type]
    except KeyError as exc:
        raise ValueError(f"Unknown field type: {field_type!r}") from exc


def parse_slot_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidSlotError(
            f"Invalid date '{value}', expected YYYY-MM-DD"
        ) from exc


def validate_slot(slot_date: Union[str, date], slot: int) -> date:
    """Check that ``slot`` is bookable on ``slot_date`` and return the parsed date.

    Only Saturdays and Sundays are bookable, in one of the four fixed windows.
    """

    parsed = parse_slot_date(slot_date)

    if parsed.weekday() not in BOOKABLE_WEEKDAYS:
        raise InvalidSlotError(
            f"Reservations are only allowed on Saturdays and Sundays ({parsed.isoformat()})"
        )

    if slot not in SLOT_WINDOWS:
        raise InvalidSlotError(
            f"Invalid slot {slot}; expected one of {sorted(SLOT_WINDOWS)}"
        )

    return parsed


def slot_bounds(slot_date: date, slot: int) -> Tuple[datetime, datetime]:
    start, end = SLOT_WINDOWS[slot]
    return datetime.combine(slot_date, start), datetime.combine(slot_date, end)


def format_slot(slot: int) -> str:
    start, end = SLOT_WINDOWS[slot]
    return f"{start:%H:%M}-{end:%H:%M}"


__all__ = [
    "SLOT_WINDOWS",
    "BOOKABLE_WEEKDAYS",
    "FIELD_CAPACITY",
    "capacity_for_type",
    "parse_slot_date",
    "validate_slot",
    "slot_bounds",
    "format_slot",
]
