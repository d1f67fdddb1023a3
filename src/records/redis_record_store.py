# src/records/redis_record_store.py — v1
"""Redis-based record store (RECORD_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one cache.
"""

from __future__ import annotations

import logging
from typing import Any

from imageboost.records.base_record_store import (
    BaseRecordStore,
    matches,
    sort_and_limit,
)
from imageboost.records.models import Record

logger = logging.getLogger(__name__)

_KEY_PREFIX = "imageboost:records:"


class RedisRecordStore(BaseRecordStore):
    """Redis-backed record store."""

    def __init__(self, redis_url: str) -> None:
        super().__init__()
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def insert(self, collection: str, data: dict[str, Any]) -> Record:
        """Insert a record and add it to the collection index."""
        record = self._new_record(collection, data)
        self._client.set(_record_key(collection, record.id), record.model_dump_json())
        # Maintain a set of all record ids for scans
        self._client.sadd(_index_key(collection), record.id)
        return record

    async def get(self, collection: str, record_id: str) -> Record | None:
        """Retrieve a record by id."""
        data = self._client.get(_record_key(collection, record_id))
        if data is None:
            return None
        try:
            return Record.model_validate_json(data)
        except ValueError as e:
            logger.warning("Failed to deserialize record %s: %s", record_id, e)
            return None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Scan the collection index since Redis has no secondary index here."""
        found: list[Record] = []
        for record_id in self._client.smembers(_index_key(collection)):
            record = await self.get(collection, record_id)
            if record is not None and matches(record, filters):
                found.append(record)
        return sort_and_limit(found, order_by, descending, limit)

    async def update(
        self, collection: str, record_id: str, changes: dict[str, Any]
    ) -> Record | None:
        """Merge changes into a record's data."""
        record = await self.get(collection, record_id)
        if record is None:
            return None
        record.data.update(changes)
        self._client.set(_record_key(collection, record_id), record.model_dump_json())
        return record

    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record and its index entry."""
        removed = self._client.delete(_record_key(collection, record_id))
        self._client.srem(_index_key(collection), record_id)
        return bool(removed)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()


def _record_key(collection: str, record_id: str) -> str:
    return f"{_KEY_PREFIX}{collection}:{record_id}"


def _index_key(collection: str) -> str:
    return f"{_KEY_PREFIX}{collection}:__index__"
