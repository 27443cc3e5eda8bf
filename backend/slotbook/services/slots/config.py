# backend/slotbook/services/slots/config.py
"""
Weekday template configuration for slot generation.
"""

import json
from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

# Most days: 8 AM – 8 PM, hourly
DEFAULT_HOURS: tuple[float, ...] = tuple(float(h) for h in range(8, 21))

# Monday & Friday: 9 AM – 6 PM, then 7:30 PM (no 7 PM)
SHORT_DAY_HOURS: tuple[float, ...] = tuple(float(h) for h in range(9, 19)) + (19.5,)


def _default_week() -> tuple[tuple[float, ...], ...]:
    return tuple(
        SHORT_DAY_HOURS if weekday in (0, 4) else DEFAULT_HOURS
        for weekday in range(7)
    )


@dataclass(frozen=True)
class SlotTemplate:
    """
    Candidate hours per weekday.

    Attributes:
        weekday_hours: Seven hour tuples, index 0 = Monday (date.weekday()).
                       Hours are floats; 19.5 means 7:30 PM.
    """
    weekday_hours: tuple[tuple[float, ...], ...] = _default_week()

    def __post_init__(self):
        """Validate and normalize (sorted, unique) hours."""
        if len(self.weekday_hours) != 7:
            raise ValueError(f"weekday_hours must have 7 entries, got {len(self.weekday_hours)}")

        normalized = []
        for weekday, hours in enumerate(self.weekday_hours):
            clean = tuple(sorted({float(h) for h in hours}))
            for hour in clean:
                if not 0 <= hour < 24:
                    raise ValueError(f"hour {hour} for {DAY_NAMES[weekday]} must be in [0, 24)")
            normalized.append(clean)
        object.__setattr__(self, "weekday_hours", tuple(normalized))

    def hours_for(self, weekday: int) -> tuple[float, ...]:
        return self.weekday_hours[weekday]

    @classmethod
    def from_schedule(cls, schedule: dict) -> "SlotTemplate":
        """
        Build a template from a weekday → hours mapping.

        Keys may be numeric ("0" = Monday) or day names ("mon").
        Days missing from the mapping keep the default hours;
        null or an empty list closes the day.
        """
        week = list(_default_week())
        for key, hours in schedule.items():
            key = str(key).strip().lower()
            if key.isdigit() and int(key) < 7:
                weekday = int(key)
            elif key[:3] in DAY_NAMES:
                weekday = DAY_NAMES.index(key[:3])
            else:
                raise ValueError(f"unknown weekday key: {key!r}")

            if hours is None:
                week[weekday] = ()
            elif isinstance(hours, list):
                week[weekday] = tuple(float(h) for h in hours)
            else:
                raise ValueError(f"hours for {key!r} must be a list, got {type(hours).__name__}")
        return cls(weekday_hours=tuple(week))

    @classmethod
    def from_json(cls, raw: str) -> "SlotTemplate":
        try:
            schedule = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"slot template is not valid JSON: {exc}") from exc
        if not isinstance(schedule, dict):
            raise ValueError("slot template must be a JSON object")
        return cls.from_schedule(schedule)


@lru_cache
def get_slot_template() -> SlotTemplate:
    """
    Get the configured slot template (singleton).

    Reads SLOT_TEMPLATE from settings, falls back to the built-in week.
    """
    if settings.slot_template:
        return SlotTemplate.from_json(settings.slot_template)
    return SlotTemplate()
