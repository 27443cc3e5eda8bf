# backend/slotbook/services/slots/availability.py
"""
Availability engine: template + overrides → visible slots.

Two tiers:
- persisted overrides (sparse, keyed by slot id), held in SlotState
- template defaults (virtual, generated on read, never written)

Schedule-shape edits (toggle, bulk toggle) are buffered in SlotState and
reach the store only on save().
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta

from ...schemas.slots import SlotsDayStatus, TimeSlot
from .config import SlotTemplate, get_slot_template
from .results import MutationResult, Outcome, WriteMode, write_mode
from .store import SlotStore
from .template import default_slots, parse_slot_id, slot_id, template_slot

logger = logging.getLogger(__name__)


@dataclass
class SlotState:
    """
    Admin session state, passed explicitly into every engine call.

    Attributes:
        slots: Known overrides keyed by slot id (persisted + pending).
        has_unsaved_changes: Set by buffered edits, cleared by save().
        dirty_ids: Ids with buffered edits not yet saved.
        revision: Bumped on every buffered edit.
        lock: Guards slots, dirty_ids and the flag; held only for
            in-memory work, never across a store call.
        save_lock: Serializes save() calls.
    """
    slots: dict[str, TimeSlot] = field(default_factory=dict)
    has_unsaved_changes: bool = False
    dirty_ids: set[str] = field(default_factory=set)
    revision: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    save_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def mark_dirty(self, *ids: str) -> None:
        self.dirty_ids.update(ids)
        self.has_unsaved_changes = True
        self.revision += 1


class AvailabilityEngine:
    """Merges template and overrides, owns buffered edits and save()."""

    def __init__(self, store: SlotStore, template: SlotTemplate | None = None):
        self.store = store
        self.template = template or get_slot_template()

    # ── State ────────────────────────────────────────────────────────────

    def open(self) -> SlotState:
        """Start a session from everything persisted."""
        state = SlotState(slots=self.store.read_all())
        logger.info("slot session opened with %s overrides", len(state.slots))
        return state

    def reload(
        self,
        state: SlotState,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> None:
        """
        Pick up overrides written elsewhere (e.g. client booking intake).

        With a date range only that window is refreshed. Ids with
        unsaved edits keep their in-memory version.
        """
        windowed = start_date is not None and end_date is not None
        if not windowed:
            fresh = self.store.read_all()
        else:
            if start_date > end_date:
                start_date, end_date = end_date, start_date
            fresh = self.store.read_for_date_range(start_date, end_date)

        with state.lock:
            stale = {
                sid for sid, slot in state.slots.items()
                if not windowed or start_date <= slot.date <= end_date
            }
            for sid in stale - state.dirty_ids:
                del state.slots[sid]
            for sid, slot in fresh.items():
                if sid not in state.dirty_ids:
                    state.slots[sid] = slot

    def resolve(self, state: SlotState, value: str) -> TimeSlot:
        """
        Current version of a slot: override if known, else template default.

        Raises NotFound for malformed ids and hours outside the template.
        """
        target_date, hour = parse_slot_id(value)
        canonical = slot_id(target_date, hour)
        if canonical in state.slots:
            return state.slots[canonical]
        return template_slot(canonical, self.template)

    # ── Read ─────────────────────────────────────────────────────────────

    def get_slots_for_date(self, state: SlotState, target_date: date) -> list[TimeSlot]:
        """Visible slots for a date, one per template hour, ascending."""
        return _merge(default_slots(target_date, self.template), state.slots)

    def read_slots_for_date(self, target_date: date) -> list[TimeSlot]:
        """Same merge against the store only (no session edits)."""
        persisted = self.store.read_for_date(target_date)
        return _merge(default_slots(target_date, self.template), persisted)

    def day_summary(self, state: SlotState, target_date: date) -> SlotsDayStatus:
        """Open / booked / recurring counts for one date."""
        status = SlotsDayStatus(date=target_date)
        for slot in self.get_slots_for_date(state, target_date):
            if slot.is_recurring:
                status.recurring_count += 1
            elif slot.booked:
                status.booked_count += 1
            elif slot.available:
                status.open_count += 1
        return status

    def calendar(
        self,
        state: SlotState,
        start_date: date,
        end_date: date,
    ) -> list[SlotsDayStatus]:
        return [
            self.day_summary(state, start_date + timedelta(days=offset))
            for offset in range((end_date - start_date).days + 1)
        ]

    # ── Buffered edits ───────────────────────────────────────────────────

    @write_mode(WriteMode.BUFFERED)
    def toggle_slot(self, state: SlotState, value: str) -> MutationResult:
        """Flip availability in memory. Booked slots are left alone."""
        with state.lock:
            slot = self.resolve(state, value)
            if slot.booked:
                logger.debug("toggle ignored for booked slot %s", slot.id)
                return MutationResult(Outcome.CONFLICT_IGNORED, WriteMode.BUFFERED, slot)

            updated = slot.model_copy(update={"available": not slot.available})
            state.slots[updated.id] = updated
            state.mark_dirty(updated.id)
        return MutationResult(Outcome.APPLIED, WriteMode.BUFFERED, updated)

    @write_mode(WriteMode.BUFFERED)
    def bulk_toggle(
        self,
        state: SlotState,
        target_date: date,
        make_available: bool,
    ) -> list[TimeSlot]:
        """
        Open or close every unbooked slot of target_date.

        Returns the slots that were updated; booked ones are skipped.
        Slots of other dates are never touched.
        """
        updated = []
        with state.lock:
            for slot in self.get_slots_for_date(state, target_date):
                if slot.booked:
                    continue
                changed = slot.model_copy(update={"available": make_available})
                state.slots[changed.id] = changed
                updated.append(changed)

            state.mark_dirty(*(slot.id for slot in updated))
        logger.info(
            "bulk toggle %s → available=%s (%s slots)",
            target_date, make_available, len(updated),
        )
        return updated

    # ── Save ─────────────────────────────────────────────────────────────

    def save(self, state: SlotState) -> int:
        """
        Persist every known override in one batch.

        Saves on the same state are serialized: a second call waits
        for the first. On StoreUnavailable the state is left as is,
        still dirty, so the caller can retry.

        Untouched overrides loaded at open() are written back as well,
        so a booking made elsewhere since the last open()/reload() is
        overwritten by the older copy (last write wins).

        Returns:
            Number of slots sent to the store.
        """
        with state.save_lock:
            with state.lock:
                revision = state.revision
                saved_ids = set(state.dirty_ids)
                batch = list(state.slots.values())

            self.store.write_many(batch)

            with state.lock:
                if state.revision == revision:
                    state.dirty_ids.clear()
                    state.has_unsaved_changes = False
                else:
                    # edited while the batch was in flight
                    state.dirty_ids -= saved_ids

                # virtual-shaped entries were removed from the store
                for sid, slot in list(state.slots.items()):
                    if slot.is_virtual and sid not in state.dirty_ids:
                        del state.slots[sid]

        logger.info("saved %s slots", len(batch))
        return len(batch)


def _merge(defaults: list[TimeSlot], overrides: dict[str, TimeSlot]) -> list[TimeSlot]:
    result = []
    for default in defaults:
        slot = overrides.get(default.id, default)
        if slot.booked and not slot.available:
            # booked always displays as available
            slot = slot.model_copy(update={"available": True})
        result.append(slot)
    return result
