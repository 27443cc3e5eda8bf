# backend/slotbook/services/slots/template.py
"""
Slot template: candidate hours per weekday and their virtual defaults.

Pure functions, no I/O. A virtual slot is what a (date, hour) looks like
before anything was persisted for it: closed and unbooked.
"""

import math
from datetime import date

from ...schemas.slots import TimeSlot
from .config import SlotTemplate, get_slot_template
from .errors import NotFound


def hours_for_weekday(
    weekday: int,
    template: SlotTemplate | None = None,
) -> tuple[float, ...]:
    """Ordered candidate hours for weekday (0 = Monday)."""
    template = template or get_slot_template()
    return template.hours_for(weekday)


def default_slots(
    target_date: date,
    template: SlotTemplate | None = None,
) -> list[TimeSlot]:
    """One virtual slot per template hour, ascending by hour."""
    return [
        virtual_slot(target_date, hour)
        for hour in hours_for_weekday(target_date.weekday(), template)
    ]


def virtual_slot(target_date: date, hour: float) -> TimeSlot:
    return TimeSlot(
        id=slot_id(target_date, hour),
        date=target_date,
        hour=hour,
        available=False,
        booked=False,
    )


# ── Ids ──────────────────────────────────────────────────────────────────


def hour_key(hour: float) -> str:
    """
    Hour as it appears in slot ids.

    11.0 → "11", 19.5 → "19.5"
    """
    return f"{float(hour):g}"


def slot_id(target_date: date, hour: float) -> str:
    return f"{target_date.isoformat()}-{hour_key(hour)}"


def parse_hour(raw: str | float) -> float:
    """Parse a decimal hour ("19.5"); raises ValueError when out of range."""
    hour = float(raw)
    if not math.isfinite(hour) or not 0 <= hour < 24:
        raise ValueError(f"hour out of range: {raw!r}")
    return hour


def parse_slot_id(value: str) -> tuple[date, float]:
    """
    Split "{date}-{hour}" back into its parts.

    Raises NotFound for anything that is not a well-formed id.
    """
    date_part, sep, hour_part = value.rpartition("-")
    if not sep:
        raise NotFound(value, "malformed slot id")
    try:
        return date.fromisoformat(date_part), parse_hour(hour_part)
    except ValueError:
        raise NotFound(value, "malformed slot id") from None


def template_slot(
    value: str,
    template: SlotTemplate | None = None,
) -> TimeSlot:
    """
    Materialize the virtual slot for an id.

    Raises NotFound when the hour is not part of that weekday's template.
    """
    target_date, hour = parse_slot_id(value)
    if hour not in hours_for_weekday(target_date.weekday(), template):
        raise NotFound(value)
    return virtual_slot(target_date, hour)


# ── Display ──────────────────────────────────────────────────────────────


def format_hour(hour: float) -> str:
    """
    Human label for an hour.

    9 → "9:00 AM", 19.5 → "7:30 PM", 0 → "12:00 AM"
    """
    whole = math.floor(hour)
    minutes = round((hour - whole) * 60)
    period = "PM" if hour >= 12 else "AM"
    display = 12 if whole == 0 else whole - 12 if whole > 12 else whole
    return f"{display}:{minutes:02d} {period}"
