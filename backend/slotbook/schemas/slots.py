"""
Pydantic schemas for slots.

TimeSlot is the engine's only entity; the rest are API request/response
bodies.
"""

from datetime import date
from pydantic import BaseModel, Field


RECURRING_PREFIX = "Recurring:"


class TimeSlot(BaseModel):
    """A single hourly slot, keyed "{date}-{hour}"."""
    id: str
    date: date
    hour: float
    available: bool = False
    booked: bool = False

    # Booking metadata, meaningful only when booked=True
    booked_by: str | None = None
    booked_email: str | None = None
    booked_phone: str | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}

    @property
    def is_recurring(self) -> bool:
        """Booked by the recurring-lesson flow (notes carry the marker)."""
        return self.booked and (self.notes or "").startswith(RECURRING_PREFIX)

    @property
    def is_virtual(self) -> bool:
        """Same shape as a template default: nothing worth persisting."""
        return not self.available and not self.booked


class SlotsDayResponse(BaseModel):
    """Merged slot list for one day (admin view)."""
    date: date
    slots: list[TimeSlot]
    has_unsaved_changes: bool

    model_config = {"from_attributes": True}


class SlotsDayStatus(BaseModel):
    """Counts for a single day in the admin calendar."""
    date: date
    open_count: int = 0
    booked_count: int = 0
    recurring_count: int = 0

    model_config = {"from_attributes": True}


class SlotsCalendarResponse(BaseModel):
    """Per-day counts for a date range."""
    start_date: date
    end_date: date
    days: list[SlotsDayStatus]

    model_config = {"from_attributes": True}


class BulkToggleRequest(BaseModel):
    date: date
    make_available: bool


class QuickBookRequest(BaseModel):
    client_name: str


class MoveBookingRequest(BaseModel):
    new_hour: float = Field(ge=0, lt=24)
    client_name: str


class MutationResponse(BaseModel):
    """Result of a single admin mutation."""
    outcome: str  # applied / conflict_ignored / recurring_locked
    write_mode: str  # buffered / immediate
    slot: TimeSlot | None = None
    has_unsaved_changes: bool


class SaveResponse(BaseModel):
    saved: int
    has_unsaved_changes: bool


class UnsavedResponse(BaseModel):
    has_unsaved_changes: bool


class DeepLinkResponse(BaseModel):
    """Binary decision for a (date, hour) deep link."""
    bookable: bool
    slot: TimeSlot | None = None
