from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotbook.models.slots import Base
from slotbook.schemas.slots import TimeSlot
from slotbook.services.slots import (
    AvailabilityEngine,
    BookingMutator,
    DeepLinkResolver,
    SlotTemplate,
    SqlSlotStore,
)
from slotbook.services.slots.template import slot_id

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
WEDNESDAY = date(2024, 6, 5)
TUESDAY_HOURS = (9.0, 10.0, 11.0, 13.0, 14.0)


def booked_slot(
    target_date: date,
    hour: float,
    name: str = "Jane Doe",
    notes: str | None = None,
    **extra,
) -> TimeSlot:
    return TimeSlot(
        id=slot_id(target_date, hour),
        date=target_date,
        hour=hour,
        available=True,
        booked=True,
        booked_by=name,
        notes=notes,
        **extra,
    )


def open_slot(target_date: date, hour: float) -> TimeSlot:
    return TimeSlot(
        id=slot_id(target_date, hour),
        date=target_date,
        hour=hour,
        available=True,
        booked=False,
    )


@pytest.fixture
def template() -> SlotTemplate:
    # Tuesday is short with a lunch gap; Monday keeps a 7:30 PM slot
    return SlotTemplate.from_schedule({
        "mon": [9, 10, 19.5],
        "tue": list(TUESDAY_HOURS),
    })


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> SqlSlotStore:
    return SqlSlotStore(session_factory)


@pytest.fixture
def engine(store, template) -> AvailabilityEngine:
    return AvailabilityEngine(store, template)


@pytest.fixture
def mutator(engine) -> BookingMutator:
    return BookingMutator(engine)


@pytest.fixture
def resolver(store, template) -> DeepLinkResolver:
    return DeepLinkResolver(store, template)


@pytest.fixture
def state(engine):
    return engine.open()
