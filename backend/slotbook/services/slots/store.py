# backend/slotbook/services/slots/store.py
"""
SlotStore: the persistence boundary for slot overrides.

Only non-virtual slots are stored. Writing a slot that is closed and
unbooked removes its override instead, so the slot reads back as the
template default again.

Every method may block on I/O and raises StoreUnavailable when the
backing service fails. These are the only blocking points of the engine.
"""

from abc import ABC, abstractmethod
from datetime import date

from ...schemas.slots import TimeSlot


class SlotStore(ABC):
    """Keyed map of persisted slot overrides."""

    name = "abstract"

    # ── Read ─────────────────────────────────────────────────────────────

    @abstractmethod
    def read_all(self) -> dict[str, TimeSlot]:
        """Every persisted override, keyed by slot id."""

    @abstractmethod
    def read_for_date(self, target_date: date) -> dict[str, TimeSlot]:
        """Overrides of a single date."""

    @abstractmethod
    def read_for_date_range(
        self,
        start_date: date,
        end_date: date,
    ) -> dict[str, TimeSlot]:
        """Overrides with start_date <= date <= end_date."""

    # ── Write ────────────────────────────────────────────────────────────

    @abstractmethod
    def write_one(self, slot: TimeSlot) -> None:
        """Persist one override (last write wins)."""

    @abstractmethod
    def write_many(self, slots: list[TimeSlot]) -> None:
        """
        Persist a batch, all or nothing.

        On failure nothing from the batch is visible.
        """

    @abstractmethod
    def move(self, old_id: str, new_slot: TimeSlot) -> None:
        """
        Atomically drop the override at old_id and write new_slot.

        Either both changes land or neither does.
        """
