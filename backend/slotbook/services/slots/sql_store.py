# backend/slotbook/services/slots/sql_store.py
"""
SQL storage for slot overrides (time_slots table).

One row per non-virtual slot. Each write call runs in a single session
transaction: commit on success, rollback on any database error.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...models.slots import TimeSlots
from ...schemas.slots import TimeSlot
from .errors import StoreUnavailable
from .store import SlotStore

logger = logging.getLogger(__name__)


class SqlSlotStore(SlotStore):
    """SQLAlchemy-backed SlotStore."""

    name = "sql"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("slot store %s failed", operation)
            raise StoreUnavailable(operation, str(exc)) from exc
        finally:
            db.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def read_all(self) -> dict[str, TimeSlot]:
        with self._session("read_all") as db:
            rows = db.query(TimeSlots).all()
            return _rows_to_map(rows)

    def read_for_date(self, target_date: date) -> dict[str, TimeSlot]:
        with self._session("read_for_date") as db:
            rows = (
                db.query(TimeSlots)
                .filter(TimeSlots.date == target_date.isoformat())
                .all()
            )
            return _rows_to_map(rows)

    def read_for_date_range(
        self,
        start_date: date,
        end_date: date,
    ) -> dict[str, TimeSlot]:
        with self._session("read_for_date_range") as db:
            rows = (
                db.query(TimeSlots)
                .filter(
                    TimeSlots.date >= start_date.isoformat(),
                    TimeSlots.date <= end_date.isoformat(),
                )
                .all()
            )
            return _rows_to_map(rows)

    # ── Write ────────────────────────────────────────────────────────────

    def write_one(self, slot: TimeSlot) -> None:
        with self._session("write_one") as db:
            _apply(db, slot)

    def write_many(self, slots: list[TimeSlot]) -> None:
        if not slots:
            return

        with self._session("write_many") as db:
            for slot in slots:
                _apply(db, slot)

        logger.info("slot store wrote batch of %s slots", len(slots))

    def move(self, old_id: str, new_slot: TimeSlot) -> None:
        with self._session("move") as db:
            db.query(TimeSlots).filter(TimeSlots.id == old_id).delete()
            _apply(db, new_slot)


# ── Helpers ──────────────────────────────────────────────────────────────


def _apply(db: Session, slot: TimeSlot) -> None:
    """Upsert, or delete when the slot is back to its virtual shape."""
    if slot.is_virtual:
        db.query(TimeSlots).filter(TimeSlots.id == slot.id).delete()
    else:
        db.merge(_slot_to_row(slot))


def _rows_to_map(rows: list[TimeSlots]) -> dict[str, TimeSlot]:
    result = {}
    for row in rows:
        slot = _row_to_slot(row)
        result[slot.id] = slot
    return result


def _row_to_slot(row: TimeSlots) -> TimeSlot:
    return TimeSlot(
        id=row.id,
        date=date.fromisoformat(row.date),
        hour=row.hour,
        available=bool(row.available),
        booked=bool(row.booked),
        booked_by=row.booked_by,
        booked_email=row.booked_email,
        booked_phone=row.booked_phone,
        notes=row.notes,
    )


def _slot_to_row(slot: TimeSlot) -> TimeSlots:
    return TimeSlots(
        id=slot.id,
        date=slot.date.isoformat(),
        hour=slot.hour,
        available=int(slot.available),
        booked=int(slot.booked),
        booked_by=slot.booked_by or None,
        booked_email=slot.booked_email or None,
        booked_phone=slot.booked_phone or None,
        notes=slot.notes or None,
        updated_at=datetime.now().isoformat(timespec="seconds"),
    )
