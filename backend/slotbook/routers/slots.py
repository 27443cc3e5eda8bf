# backend/slotbook/routers/slots.py
"""
Admin slots API.

Buffered:  POST /slots/{id}/toggle, POST /slots/bulk-toggle, POST /slots/{id}/unbook
Immediate: POST /slots/{id}/book, POST /slots/{id}/move, DELETE /slots/{id}
Session:   POST /slots/save, GET /slots/unsaved, POST /slots/reload, POST /slots/close
Views:     GET /slots/day, GET /slots/calendar

Session state is picked by the X-Admin-Session header.
"""

from datetime import date, timedelta
from fastapi import APIRouter, Depends, Header, Query, Request, Response

from ..config import settings
from ..deps import AdminSessions, get_engine, get_mutator, get_slot_state
from ..schemas.slots import (
    BulkToggleRequest,
    MoveBookingRequest,
    MutationResponse,
    QuickBookRequest,
    SaveResponse,
    SlotsCalendarResponse,
    SlotsDayResponse,
    UnsavedResponse,
)
from ..services.slots import (
    AvailabilityEngine,
    BookingMutator,
    MutationResult,
    SlotState,
)


CALENDAR_DEFAULT_DAYS = 30

router = APIRouter(prefix="/slots", tags=["slots"])


def _mutation_response(result: MutationResult, state: SlotState) -> MutationResponse:
    return MutationResponse(
        outcome=result.outcome.value,
        write_mode=result.write_mode.value,
        slot=result.slot,
        has_unsaved_changes=state.has_unsaved_changes,
    )


def _day_response(
    engine: AvailabilityEngine,
    state: SlotState,
    target_date: date,
) -> SlotsDayResponse:
    return SlotsDayResponse(
        date=target_date,
        slots=engine.get_slots_for_date(state, target_date),
        has_unsaved_changes=state.has_unsaved_changes,
    )


# ── Views ────────────────────────────────────────────────────────────────


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    target_date: date = Query(..., alias="date"),
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    """Merged slots for a date, including unsaved edits."""
    return _day_response(engine, state, target_date)


@router.get("/calendar", response_model=SlotsCalendarResponse)
def get_slots_calendar(
    start_date: date | None = None,
    end_date: date | None = None,
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    """Open / booked / recurring counts per day, refreshed from the store."""
    if start_date is None:
        start_date = date.today()
    horizon = min(settings.calendar_horizon_days, (date.max - start_date).days)
    last_date = start_date + timedelta(days=horizon)
    if end_date is None:
        end_date = start_date + timedelta(days=min(CALENDAR_DEFAULT_DAYS, horizon))
    if end_date > last_date:
        end_date = last_date
    if end_date < start_date:
        end_date = start_date

    engine.reload(state, start_date, end_date)

    return SlotsCalendarResponse(
        start_date=start_date,
        end_date=end_date,
        days=engine.calendar(state, start_date, end_date),
    )


# ── Buffered ─────────────────────────────────────────────────────────────


@router.post("/bulk-toggle", response_model=SlotsDayResponse)
def bulk_toggle(
    data: BulkToggleRequest,
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    engine.bulk_toggle(state, data.date, data.make_available)
    return _day_response(engine, state, data.date)


@router.post("/{slot_id}/toggle", response_model=MutationResponse)
def toggle_slot(
    slot_id: str,
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    return _mutation_response(engine.toggle_slot(state, slot_id), state)


@router.post("/{slot_id}/unbook", response_model=MutationResponse)
def unbook(
    slot_id: str,
    can_edit_recurring: bool = False,
    mutator: BookingMutator = Depends(get_mutator),
    state: SlotState = Depends(get_slot_state),
):
    result = mutator.unbook(state, slot_id, can_edit_recurring=can_edit_recurring)
    return _mutation_response(result, state)


# ── Immediate ────────────────────────────────────────────────────────────


@router.post("/{slot_id}/book", response_model=MutationResponse)
def quick_book(
    slot_id: str,
    data: QuickBookRequest,
    mutator: BookingMutator = Depends(get_mutator),
    state: SlotState = Depends(get_slot_state),
):
    result = mutator.quick_book(state, slot_id, data.client_name)
    return _mutation_response(result, state)


@router.post("/{slot_id}/move", response_model=MutationResponse)
def move_or_edit_booking(
    slot_id: str,
    data: MoveBookingRequest,
    can_edit_recurring: bool = False,
    mutator: BookingMutator = Depends(get_mutator),
    state: SlotState = Depends(get_slot_state),
):
    result = mutator.move_or_edit_booking(
        state,
        slot_id,
        data.new_hour,
        data.client_name,
        can_edit_recurring=can_edit_recurring,
    )
    return _mutation_response(result, state)


@router.delete("/{slot_id}", response_model=MutationResponse)
def delete_booking(
    slot_id: str,
    can_edit_recurring: bool = False,
    mutator: BookingMutator = Depends(get_mutator),
    state: SlotState = Depends(get_slot_state),
):
    result = mutator.delete_booking(state, slot_id, can_edit_recurring=can_edit_recurring)
    return _mutation_response(result, state)


# ── Session ──────────────────────────────────────────────────────────────


@router.post("/save", response_model=SaveResponse)
def save(
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    """Persist buffered edits. On 503 the edits are still pending; retry."""
    saved = engine.save(state)
    return SaveResponse(saved=saved, has_unsaved_changes=state.has_unsaved_changes)


@router.get("/unsaved", response_model=UnsavedResponse)
def has_unsaved_changes(state: SlotState = Depends(get_slot_state)):
    return UnsavedResponse(has_unsaved_changes=state.has_unsaved_changes)


@router.post("/reload", response_model=UnsavedResponse)
def reload(
    engine: AvailabilityEngine = Depends(get_engine),
    state: SlotState = Depends(get_slot_state),
):
    """Pick up bookings written by other flows; pending edits are kept."""
    engine.reload(state)
    return UnsavedResponse(has_unsaved_changes=state.has_unsaved_changes)


@router.post("/close", status_code=204)
def close_session(
    request: Request,
    x_admin_session: str = Header("admin"),
):
    """Forget the session state; unsaved edits are discarded."""
    sessions: AdminSessions = request.app.state.admin_sessions
    sessions.drop(x_admin_session)
    return Response(status_code=204)
