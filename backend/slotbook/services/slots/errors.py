# backend/slotbook/services/slots/errors.py
"""
Slot engine errors.

A booked slot rejecting a toggle is not an error: it is reported as
Outcome.CONFLICT_IGNORED on the mutation result.
"""


class SlotError(Exception):
    """Base class for slot engine errors."""


class ValidationError(SlotError):
    """Caller input rejected before any store call (e.g. empty client name)."""


class NotFound(SlotError):
    """Slot id does not map to a (date, hour) pair in the weekday template."""

    def __init__(self, slot_id: str, reason: str = "not in template"):
        self.slot_id = slot_id
        super().__init__(f"slot {slot_id!r}: {reason}")


class StoreUnavailable(SlotError):
    """
    Backing store could not be reached.

    Carries the store operation that failed so the caller can tell
    "nothing happened" apart from "pending edits are still in memory".
    """

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        message = f"slot store unavailable during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
