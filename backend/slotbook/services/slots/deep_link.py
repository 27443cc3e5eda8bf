# backend/slotbook/services/slots/deep_link.py
"""
Deep-link resolution: (date, hour) from a URL → bookable or not.

Only a persisted slot that is open and unbooked is bookable. Virtual
slots, closed slots and booked slots all come back as the same
NotBookable, so the caller cannot tell "booked" from "closed".

Reads a single date from the store, never the full history. A fresh
booking made a moment earlier may still show as NotBookable; that is
expected, not an error.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date

from ...schemas.slots import TimeSlot
from .config import SlotTemplate, get_slot_template
from .errors import ValidationError
from .store import SlotStore
from .template import parse_hour, slot_id, template_slot

logger = logging.getLogger(__name__)

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class Bookable:
    slot: TimeSlot


@dataclass(frozen=True)
class NotBookable:
    pass


NOT_BOOKABLE = NotBookable()


class DeepLinkResolver:
    def __init__(self, store: SlotStore, template: SlotTemplate | None = None):
        self.store = store
        self.template = template or get_slot_template()

    def resolve(self, raw_date: str | date, raw_hour: str | float) -> Bookable | NotBookable:
        """
        Args:
            raw_date: "yyyy-mm-dd" (or a date)
            raw_hour: decimal hour, "19.5" for 7:30 PM

        Raises:
            ValidationError: date or hour cannot be parsed
            NotFound: hour is not in that weekday's template
            StoreUnavailable: store read failed
        """
        target_date, hour = _parse(raw_date, raw_hour)
        value = slot_id(target_date, hour)
        template_slot(value, self.template)

        slot = self.store.read_for_date(target_date).get(value)
        if slot is None or not slot.available or slot.booked:
            logger.debug("deep link %s not bookable", value)
            return NOT_BOOKABLE
        return Bookable(slot)


def _parse(raw_date: str | date, raw_hour: str | float) -> tuple[date, float]:
    try:
        target_date = raw_date if isinstance(raw_date, date) else _parse_date(raw_date)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid date: {raw_date!r}") from None
    try:
        hour = parse_hour(raw_hour)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid hour: {raw_hour!r}") from None
    return target_date, hour


def _parse_date(raw: str) -> date:
    # yyyy-mm-dd only; fromisoformat also takes 20240604 and week dates
    if not ISO_DATE.fullmatch(raw):
        raise ValueError(raw)
    return date.fromisoformat(raw)
