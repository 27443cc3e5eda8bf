# backend/slotbook/services/slots/__init__.py
"""
Slot availability & booking engine.

Template: candidate hours per weekday (virtual slots, never stored)
Overrides: persisted slots (SQL table or Redis hashes)
Engine:   merge + buffered availability edits + save()
Mutator:  bookings, written through immediately
"""

from .config import SlotTemplate, get_slot_template
from .template import default_slots, format_hour, hours_for_weekday, slot_id
from .store import SlotStore
from .sql_store import SqlSlotStore
from .redis_store import RedisSlotStore
from .results import MutationResult, Outcome, WriteMode
from .availability import AvailabilityEngine, SlotState
from .booking import BookingMutator
from .deep_link import NOT_BOOKABLE, Bookable, DeepLinkResolver, NotBookable
from .errors import NotFound, SlotError, StoreUnavailable, ValidationError

__all__ = [
    "SlotTemplate",
    "get_slot_template",
    "default_slots",
    "format_hour",
    "hours_for_weekday",
    "slot_id",
    "SlotStore",
    "SqlSlotStore",
    "RedisSlotStore",
    "MutationResult",
    "Outcome",
    "WriteMode",
    "AvailabilityEngine",
    "SlotState",
    "BookingMutator",
    "NOT_BOOKABLE",
    "Bookable",
    "DeepLinkResolver",
    "NotBookable",
    "NotFound",
    "SlotError",
    "StoreUnavailable",
    "ValidationError",
]
