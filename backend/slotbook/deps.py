# backend/slotbook/deps.py
"""
FastAPI dependencies: store backend, engine objects, admin session state.
"""

import threading
from functools import lru_cache

from fastapi import Depends, Header, Request

from .config import settings
from .services.slots import (
    AvailabilityEngine,
    BookingMutator,
    DeepLinkResolver,
    RedisSlotStore,
    SlotState,
    SlotStore,
    SlotTemplate,
    SqlSlotStore,
    get_slot_template,
)


@lru_cache
def get_slot_store() -> SlotStore:
    """Store backend selected by SLOT_STORE (singleton)."""
    if settings.slot_store == "redis":
        from .redis_client import redis_client
        return RedisSlotStore(redis_client)

    from .database import SessionLocal, init_db
    init_db()
    return SqlSlotStore(SessionLocal)


def get_engine(
    store: SlotStore = Depends(get_slot_store),
    template: SlotTemplate = Depends(get_slot_template),
) -> AvailabilityEngine:
    return AvailabilityEngine(store, template)


def get_mutator(engine: AvailabilityEngine = Depends(get_engine)) -> BookingMutator:
    return BookingMutator(engine)


def get_resolver(
    store: SlotStore = Depends(get_slot_store),
    template: SlotTemplate = Depends(get_slot_template),
) -> DeepLinkResolver:
    return DeepLinkResolver(store, template)


class AdminSessions:
    """Open SlotState per admin session key, created on first use."""

    def __init__(self):
        self._states: dict[str, SlotState] = {}
        self._lock = threading.Lock()

    def get(self, key: str, engine: AvailabilityEngine) -> SlotState:
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = engine.open()
                self._states[key] = state
            return state

    def drop(self, key: str) -> None:
        with self._lock:
            self._states.pop(key, None)


def get_slot_state(
    request: Request,
    engine: AvailabilityEngine = Depends(get_engine),
    x_admin_session: str = Header("admin"),
) -> SlotState:
    sessions: AdminSessions = request.app.state.admin_sessions
    return sessions.get(x_admin_session, engine)
