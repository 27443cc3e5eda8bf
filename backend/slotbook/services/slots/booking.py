# backend/slotbook/services/slots/booking.py
"""
Booking mutations on top of the availability engine.

✓ quick_book            IMMEDIATE  write_one, then memory
✓ unbook                BUFFERED   memory only, marks the session dirty
✓ move_or_edit_booking  IMMEDIATE  write_one (same hour) / store.move (new hour)
✓ delete_booking        IMMEDIATE  writes the virtual default → override removed

Immediate operations touch SlotState only after the store call succeeded,
so a StoreUnavailable leaves memory exactly as it was.

Recurring bookings (notes start with "Recurring:") can only be unbooked,
moved or deleted when the caller passes can_edit_recurring=True.
"""

import logging

from ...schemas.slots import TimeSlot
from .availability import AvailabilityEngine, SlotState
from .errors import ValidationError
from .results import MutationResult, Outcome, WriteMode, write_mode
from .template import format_hour, slot_id, template_slot, virtual_slot

logger = logging.getLogger(__name__)


class BookingMutator:
    """Booking-side mutations; shares store and template with the engine."""

    def __init__(self, engine: AvailabilityEngine):
        self.engine = engine
        self.store = engine.store

    @write_mode(WriteMode.IMMEDIATE)
    def quick_book(
        self,
        state: SlotState,
        value: str,
        client_name: str,
    ) -> MutationResult:
        """Book a slot for client_name and persist it right away."""
        name = _require_name(client_name)
        slot = self.engine.resolve(state, value)
        if slot.booked:
            logger.debug("quick book ignored, slot %s already booked", slot.id)
            return MutationResult(Outcome.CONFLICT_IGNORED, WriteMode.IMMEDIATE, slot)

        booked = slot.model_copy(update={
            "available": True,
            "booked": True,
            "booked_by": name,
        })
        self.store.write_one(booked)

        with state.lock:
            state.slots[booked.id] = booked
            # persisted copy now matches memory
            state.dirty_ids.discard(booked.id)
        logger.info("slot %s (%s) booked for %s", booked.id, format_hour(booked.hour), name)
        return MutationResult(Outcome.APPLIED, WriteMode.IMMEDIATE, booked)

    @write_mode(WriteMode.BUFFERED)
    def unbook(
        self,
        state: SlotState,
        value: str,
        *,
        can_edit_recurring: bool = False,
    ) -> MutationResult:
        """Release a booking in memory; the slot stays open until save()."""
        with state.lock:
            slot = self.engine.resolve(state, value)
            locked = self._check_booked(slot, WriteMode.BUFFERED, can_edit_recurring)
            if locked:
                return locked

            released = slot.model_copy(update={
                "available": True,
                "booked": False,
                "booked_by": None,
                "booked_email": None,
                "booked_phone": None,
                "notes": None,
            })
            state.slots[released.id] = released
            state.mark_dirty(released.id)
        logger.info("slot %s unbooked (pending save)", released.id)
        return MutationResult(Outcome.APPLIED, WriteMode.BUFFERED, released)

    @write_mode(WriteMode.IMMEDIATE)
    def move_or_edit_booking(
        self,
        state: SlotState,
        value: str,
        new_hour: float,
        new_client_name: str,
        *,
        can_edit_recurring: bool = False,
    ) -> MutationResult:
        """
        Relabel a booking, or move it to another hour of the same date.

        Same hour: booked_by is replaced, written with write_one.
        New hour:  old override removed and new one written in a single
                   store.move(), carrying email/phone/notes forward.

        Raises:
            ValidationError: empty client name
            NotFound: new hour is not part of that day's template
        """
        name = _require_name(new_client_name)
        slot = self.engine.resolve(state, value)
        locked = self._check_booked(slot, WriteMode.IMMEDIATE, can_edit_recurring)
        if locked:
            return locked

        new_id = slot_id(slot.date, new_hour)

        if new_id == slot.id:
            relabeled = slot.model_copy(update={"booked_by": name})
            self.store.write_one(relabeled)
            with state.lock:
                state.slots[relabeled.id] = relabeled
                state.dirty_ids.discard(relabeled.id)
            logger.info("booking %s relabeled to %s", relabeled.id, name)
            return MutationResult(Outcome.APPLIED, WriteMode.IMMEDIATE, relabeled)

        target = state.slots.get(new_id)
        if target is None:
            target = template_slot(new_id, self.engine.template)
        if target.booked:
            logger.debug("move %s → %s ignored, target booked", slot.id, new_id)
            return MutationResult(Outcome.CONFLICT_IGNORED, WriteMode.IMMEDIATE, slot)

        moved = target.model_copy(update={
            "available": True,
            "booked": True,
            "booked_by": name,
            "booked_email": slot.booked_email,
            "booked_phone": slot.booked_phone,
            "notes": slot.notes,
        })
        self.store.move(slot.id, moved)

        with state.lock:
            state.slots.pop(slot.id, None)
            state.dirty_ids.discard(slot.id)
            state.slots[moved.id] = moved
            state.dirty_ids.discard(moved.id)
        logger.info("booking moved %s → %s (%s)", slot.id, moved.id, name)
        return MutationResult(Outcome.APPLIED, WriteMode.IMMEDIATE, moved)

    @write_mode(WriteMode.IMMEDIATE)
    def delete_booking(
        self,
        state: SlotState,
        value: str,
        *,
        can_edit_recurring: bool = False,
    ) -> MutationResult:
        """Remove the override entirely; the slot reverts to virtual."""
        slot = self.engine.resolve(state, value)
        locked = self._check_booked(slot, WriteMode.IMMEDIATE, can_edit_recurring)
        if locked:
            return locked

        cleared = virtual_slot(slot.date, slot.hour)
        self.store.write_one(cleared)

        with state.lock:
            state.slots.pop(slot.id, None)
            state.dirty_ids.discard(slot.id)
        logger.info("booking %s deleted", slot.id)
        return MutationResult(Outcome.APPLIED, WriteMode.IMMEDIATE, cleared)

    # ── Rules ────────────────────────────────────────────────────────────

    def _check_booked(
        self,
        slot: TimeSlot,
        mode: WriteMode,
        can_edit_recurring: bool,
    ) -> MutationResult | None:
        """Result to return instead of mutating, or None when allowed."""
        if not slot.booked:
            logger.debug("slot %s is not booked, nothing to change", slot.id)
            return MutationResult(Outcome.CONFLICT_IGNORED, mode, slot)
        if slot.is_recurring and not can_edit_recurring:
            logger.info("slot %s is a recurring booking, mutation rejected", slot.id)
            return MutationResult(Outcome.RECURRING_LOCKED, mode, slot)
        return None


def _require_name(client_name: str | None) -> str:
    name = (client_name or "").strip()
    if not name:
        raise ValidationError("client name is required")
    return name
