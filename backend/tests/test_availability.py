from __future__ import annotations

import threading
import time
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from slotbook.services.slots import (
    AvailabilityEngine,
    NotFound,
    Outcome,
    StoreUnavailable,
    WriteMode,
)
from slotbook.services.slots.template import hours_for_weekday

from conftest import MONDAY, TUESDAY, TUESDAY_HOURS, WEDNESDAY, booked_slot, open_slot


def _dump(slots) -> list[str]:
    return [s.model_dump_json() for s in slots]


def test_slots_for_date_match_template_for_every_day(engine, store, template) -> None:
    store.write_one(booked_slot(TUESDAY, 11))
    state = engine.open()

    start = date(2024, 6, 1)
    for offset in range(21):
        day = start + timedelta(days=offset)
        slots = engine.get_slots_for_date(state, day)

        hours = [s.hour for s in slots]
        assert hours == list(hours_for_weekday(day.weekday(), template))
        assert hours == sorted(hours)
        assert len({s.id for s in slots}) == len(slots)


def test_override_replaces_default_at_same_id(engine, store) -> None:
    store.write_one(open_slot(TUESDAY, 10))
    state = engine.open()

    slots = {s.id: s for s in engine.get_slots_for_date(state, TUESDAY)}
    assert slots["2024-06-04-10"].available
    assert not slots["2024-06-04-9"].available


def test_override_outside_template_is_not_shown(engine, store) -> None:
    store.write_one(open_slot(TUESDAY, 12))
    state = engine.open()

    assert [s.hour for s in engine.get_slots_for_date(state, TUESDAY)] == list(TUESDAY_HOURS)


def test_get_slots_for_date_is_idempotent(engine, store) -> None:
    store.write_many([open_slot(TUESDAY, 9), booked_slot(TUESDAY, 13)])
    state = engine.open()

    first = engine.get_slots_for_date(state, TUESDAY)
    engine.get_slots_for_date(state, WEDNESDAY)
    second = engine.get_slots_for_date(state, TUESDAY)

    assert first == second


def test_booked_slot_always_displays_available(engine, store) -> None:
    # intake flow may write booked rows without the available flag
    slot = booked_slot(TUESDAY, 9).model_copy(update={"available": False})
    store.write_one(slot)
    state = engine.open()

    shown = engine.get_slots_for_date(state, TUESDAY)[0]
    assert shown.booked and shown.available


def test_toggle_flips_in_memory_without_writing(engine, state, store) -> None:
    result = engine.toggle_slot(state, "2024-06-04-9")

    assert result.outcome is Outcome.APPLIED
    assert result.write_mode is WriteMode.BUFFERED
    assert result.slot.available
    assert state.has_unsaved_changes
    assert store.read_all() == {}

    engine.toggle_slot(state, "2024-06-04-9")
    assert not engine.get_slots_for_date(state, TUESDAY)[0].available
    assert state.has_unsaved_changes


def test_toggle_on_booked_slot_is_ignored(engine, store) -> None:
    store.write_many([booked_slot(TUESDAY, 9), booked_slot(TUESDAY, 10, notes="Recurring: abc")])
    state = engine.open()
    before = _dump(engine.get_slots_for_date(state, TUESDAY))

    for value in ("2024-06-04-9", "2024-06-04-10"):
        result = engine.toggle_slot(state, value)
        assert result.outcome is Outcome.CONFLICT_IGNORED

    assert _dump(engine.get_slots_for_date(state, TUESDAY)) == before
    assert not state.has_unsaved_changes


def test_toggle_unknown_hour_is_not_found(engine, state) -> None:
    with pytest.raises(NotFound):
        engine.toggle_slot(state, "2024-06-04-12")


def test_bulk_toggle_only_touches_that_date(engine, store) -> None:
    store.write_one(booked_slot(TUESDAY, 11))
    state = engine.open()
    monday_before = _dump(engine.get_slots_for_date(state, MONDAY))
    wednesday_before = _dump(engine.get_slots_for_date(state, WEDNESDAY))

    updated = engine.bulk_toggle(state, TUESDAY, True)

    assert len(updated) == 4
    tuesday = engine.get_slots_for_date(state, TUESDAY)
    assert all(s.available for s in tuesday)
    assert [s.booked for s in tuesday] == [False, False, True, False, False]
    assert _dump(engine.get_slots_for_date(state, MONDAY)) == monday_before
    assert _dump(engine.get_slots_for_date(state, WEDNESDAY)) == wednesday_before
    assert state.has_unsaved_changes


def test_bulk_toggle_off_keeps_bookings(engine, store) -> None:
    store.write_many([open_slot(TUESDAY, 9), booked_slot(TUESDAY, 10)])
    state = engine.open()

    engine.bulk_toggle(state, TUESDAY, False)

    slots = {s.hour: s for s in engine.get_slots_for_date(state, TUESDAY)}
    assert not slots[9.0].available
    assert slots[10.0].booked and slots[10.0].available


def test_save_persists_and_clears_flag(engine, state, store) -> None:
    engine.bulk_toggle(state, TUESDAY, True)
    engine.toggle_slot(state, "2024-06-04-14")

    saved = engine.save(state)

    assert saved == 5
    assert not state.has_unsaved_changes
    assert set(store.read_for_date(TUESDAY)) == {
        "2024-06-04-9", "2024-06-04-10", "2024-06-04-11", "2024-06-04-13",
    }
    # closed slot was dropped from memory as well as from the store
    assert "2024-06-04-14" not in state.slots


def test_save_failure_keeps_pending_edits(engine, state, store) -> None:
    engine.bulk_toggle(state, TUESDAY, True)
    before = _dump(engine.get_slots_for_date(state, TUESDAY))

    with patch.object(store, "write_many", side_effect=StoreUnavailable("write_many")):
        with pytest.raises(StoreUnavailable) as exc_info:
            engine.save(state)

    assert exc_info.value.operation == "write_many"
    assert state.has_unsaved_changes
    assert _dump(engine.get_slots_for_date(state, TUESDAY)) == before
    assert store.read_all() == {}

    engine.save(state)
    assert not state.has_unsaved_changes
    assert len(store.read_for_date(TUESDAY)) == 5


def test_concurrent_saves_are_serialized(engine, state, store) -> None:
    engine.bulk_toggle(state, TUESDAY, True)
    real_write_many = store.write_many
    active = {"now": 0, "max": 0}
    guard = threading.Lock()

    def slow_write_many(slots):
        with guard:
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
        time.sleep(0.05)
        real_write_many(slots)
        with guard:
            active["now"] -= 1

    with patch.object(store, "write_many", side_effect=slow_write_many):
        threads = [threading.Thread(target=engine.save, args=(state,)) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    assert active["max"] == 1
    assert not state.has_unsaved_changes


def test_edit_during_save_stays_dirty(engine, state, store) -> None:
    engine.toggle_slot(state, "2024-06-04-9")
    real_write_many = store.write_many

    def write_then_edit(slots):
        real_write_many(slots)
        engine.toggle_slot(state, "2024-06-04-10")

    with patch.object(store, "write_many", side_effect=write_then_edit):
        engine.save(state)

    assert state.has_unsaved_changes
    assert state.dirty_ids == {"2024-06-04-10"}


def test_read_slots_for_date_ignores_session_edits(engine, state, store) -> None:
    engine.toggle_slot(state, "2024-06-04-9")

    assert not any(s.available for s in engine.read_slots_for_date(TUESDAY))


def test_reload_picks_up_intake_bookings_and_keeps_pending_edits(engine, state, store) -> None:
    engine.toggle_slot(state, "2024-06-04-9")
    # another flow books 9 and 13 directly in the store
    store.write_many([booked_slot(TUESDAY, 9, name="Web"), booked_slot(TUESDAY, 13, name="Web")])

    engine.reload(state)

    slots = {s.hour: s for s in engine.get_slots_for_date(state, TUESDAY)}
    assert slots[13.0].booked
    assert slots[9.0].available and not slots[9.0].booked
    assert state.has_unsaved_changes


def test_reload_window_uses_range_read(engine, state, store) -> None:
    store.write_one(booked_slot(WEDNESDAY, 9, name="Web"))

    with patch.object(store, "read_all") as read_all:
        engine.reload(state, WEDNESDAY, TUESDAY)

    read_all.assert_not_called()
    assert engine.get_slots_for_date(state, WEDNESDAY)[1].booked


def test_day_summary_counts(engine, store) -> None:
    store.write_many([
        open_slot(TUESDAY, 9),
        open_slot(TUESDAY, 10),
        booked_slot(TUESDAY, 11),
        booked_slot(TUESDAY, 13, notes="Recurring: lesson-7"),
    ])
    state = engine.open()

    status = engine.day_summary(state, TUESDAY)
    assert (status.open_count, status.booked_count, status.recurring_count) == (2, 1, 1)

    days = engine.calendar(state, MONDAY, WEDNESDAY)
    assert [d.date for d in days] == [MONDAY, TUESDAY, WEDNESDAY]


def test_engine_uses_configured_template_by_default(store) -> None:
    engine = AvailabilityEngine(store)
    state = engine.open()

    # built-in week: Monday ends with a 7:30 PM slot
    assert engine.get_slots_for_date(state, MONDAY)[-1].hour == 19.5


def test_toggles_during_saves_do_not_break_save(engine, state, store) -> None:
    tuesdays = [TUESDAY + timedelta(weeks=n) for n in range(300)]
    errors = []

    def toggle_new_slots():
        try:
            for day in tuesdays:
                for hour in TUESDAY_HOURS:
                    engine.toggle_slot(state, f"{day.isoformat()}-{hour}")
        except Exception as exc:
            errors.append(exc)

    with patch.object(store, "write_many"):
        toggler = threading.Thread(target=toggle_new_slots)
        toggler.start()
        while toggler.is_alive():
            try:
                engine.save(state)
            except Exception as exc:
                errors.append(exc)
                break
        toggler.join()

    assert errors == []
    assert len(state.slots) == len(tuesdays) * len(TUESDAY_HOURS)


def test_calendar_reaches_the_last_representable_date(engine, state) -> None:
    days = engine.calendar(state, date(9999, 12, 30), date.max)

    assert [d.date for d in days] == [date(9999, 12, 30), date.max]
