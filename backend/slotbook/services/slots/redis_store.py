# backend/slotbook/services/slots/redis_store.py
"""
Redis storage for slot overrides using one Hash per day.

Key format: slots:day:{date}
Field: slot id ("2024-06-04-11"), value: JSON-encoded TimeSlot.

Batches and moves go through a MULTI/EXEC pipeline, so they are applied
as a unit or not at all.
"""

import json
import logging
from datetime import date, timedelta

from redis import Redis
from redis.exceptions import RedisError

from ...schemas.slots import TimeSlot
from .errors import StoreUnavailable
from .store import SlotStore
from .template import parse_slot_id

logger = logging.getLogger(__name__)


class RedisSlotStore(SlotStore):
    """Redis-backed SlotStore."""

    name = "redis"
    KEY_PREFIX = "slots:day"

    def __init__(self, redis: Redis):
        self.redis = redis

    def _key(self, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{dt.isoformat()}"

    def _fail(self, operation: str, exc: RedisError) -> StoreUnavailable:
        logger.exception("slot store %s failed", operation)
        return StoreUnavailable(operation, str(exc))

    # ── Read ─────────────────────────────────────────────────────────────

    def read_all(self) -> dict[str, TimeSlot]:
        try:
            keys = list(self.redis.scan_iter(match=f"{self.KEY_PREFIX}:*"))
            return self._read_keys(keys)
        except RedisError as exc:
            raise self._fail("read_all", exc) from exc

    def read_for_date(self, target_date: date) -> dict[str, TimeSlot]:
        try:
            raw = self.redis.hgetall(self._key(target_date))
        except RedisError as exc:
            raise self._fail("read_for_date", exc) from exc
        return _decode_hash(raw)

    def read_for_date_range(
        self,
        start_date: date,
        end_date: date,
    ) -> dict[str, TimeSlot]:
        keys = [
            self._key(start_date + timedelta(days=offset))
            for offset in range((end_date - start_date).days + 1)
        ]

        try:
            return self._read_keys(keys)
        except RedisError as exc:
            raise self._fail("read_for_date_range", exc) from exc

    def _read_keys(self, keys: list) -> dict[str, TimeSlot]:
        if not keys:
            return {}

        pipe = self.redis.pipeline(transaction=False)
        for key in keys:
            pipe.hgetall(key)

        result: dict[str, TimeSlot] = {}
        for raw in pipe.execute():
            result.update(_decode_hash(raw))
        return result

    # ── Write ────────────────────────────────────────────────────────────

    def write_one(self, slot: TimeSlot) -> None:
        try:
            if slot.is_virtual:
                self.redis.hdel(self._key(slot.date), slot.id)
            else:
                self.redis.hset(self._key(slot.date), slot.id, _encode(slot))
        except RedisError as exc:
            raise self._fail("write_one", exc) from exc

    def write_many(self, slots: list[TimeSlot]) -> None:
        if not slots:
            return

        pipe = self.redis.pipeline(transaction=True)
        for slot in slots:
            self._queue(pipe, slot)

        try:
            pipe.execute()
        except RedisError as exc:
            raise self._fail("write_many", exc) from exc

        logger.info("slot store wrote batch of %s slots", len(slots))

    def move(self, old_id: str, new_slot: TimeSlot) -> None:
        old_date, _ = parse_slot_id(old_id)

        pipe = self.redis.pipeline(transaction=True)
        pipe.hdel(self._key(old_date), old_id)
        self._queue(pipe, new_slot)

        try:
            pipe.execute()
        except RedisError as exc:
            raise self._fail("move", exc) from exc

    def _queue(self, pipe, slot: TimeSlot) -> None:
        key = self._key(slot.date)
        if slot.is_virtual:
            pipe.hdel(key, slot.id)
        else:
            pipe.hset(key, slot.id, _encode(slot))


# ── Encoding ─────────────────────────────────────────────────────────────


def _encode(slot: TimeSlot) -> str:
    return slot.model_dump_json()


def _decode_hash(raw: dict) -> dict[str, TimeSlot]:
    result = {}
    for field, value in (raw or {}).items():
        field = field.decode() if isinstance(field, bytes) else field
        value = value.decode() if isinstance(value, bytes) else value
        try:
            result[field] = TimeSlot.model_validate(json.loads(value))
        except (ValueError, TypeError):
            logger.warning("skipping undecodable slot %s", field)
    return result
