# backend/slotbook/services/slots/results.py
"""
Mutation outcomes and write modes.

BUFFERED operations (toggle, bulk toggle, unbook) only change the session
state and mark it dirty until save(). IMMEDIATE operations (quick book,
move/edit, delete) write through to the store before returning.
"""

from dataclasses import dataclass
from enum import Enum

from ...schemas.slots import TimeSlot


class WriteMode(str, Enum):
    BUFFERED = "buffered"
    IMMEDIATE = "immediate"


class Outcome(str, Enum):
    APPLIED = "applied"
    # Booked slot: toggles and re-bookings are defined no-ops
    CONFLICT_IGNORED = "conflict_ignored"
    # Recurring booking touched by a caller that cannot edit recurring slots
    RECURRING_LOCKED = "recurring_locked"


def write_mode(mode: WriteMode):
    """Tag a public engine/mutator method with its write mode."""
    def decorator(func):
        func.write_mode = mode
        return func
    return decorator


@dataclass(frozen=True)
class MutationResult:
    outcome: Outcome
    write_mode: WriteMode
    slot: TimeSlot | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is Outcome.APPLIED
