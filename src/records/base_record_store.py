# src/records/base_record_store.py — v2
"""Abstract record store interface.

A small document-store contract: insert, equality filters, ordering by
timestamp, limit, partial update and delete, over named collections.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from imageboost.records.models import Record


class BaseRecordStore(ABC):
    """Unified interface for record storage backends."""

    def __init__(self) -> None:
        self._last_timestamp: datetime | None = None

    @abstractmethod
    async def insert(self, collection: str, data: dict[str, Any]) -> Record:
        """Insert a new record; the store assigns id and created_at."""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Record | None:
        """Retrieve a record by id."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Return records whose fields equal every filter value."""

    @abstractmethod
    async def update(
        self, collection: str, record_id: str, changes: dict[str, Any]
    ) -> Record | None:
        """Merge changes into a record's data. Returns None if absent."""

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record. Returns True if it existed."""

    async def count(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> int:
        """Count records matching the filters."""
        return len(await self.find(collection, filters))

    def close(self) -> None:
        """Release backend connections. Stores without any keep the no-op."""

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str = "created_at",
    ) -> Record | None:
        """Newest record matching the filters, or None."""
        records = await self.find(collection, filters, order_by=order_by, limit=1)
        return records[0] if records else None

    def _new_record(self, collection: str, data: dict[str, Any]) -> Record:
        """Build a record with a store-assigned id and timestamp."""
        created_at = self._next_timestamp()
        record_id = f"{created_at:%Y%m%d%H%M%S%f}_{uuid.uuid4().hex[:8]}"
        return Record(
            id=record_id, collection=collection, created_at=created_at, data=data
        )

    def _next_timestamp(self) -> datetime:
        """Server timestamp, strictly increasing within this store instance."""
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now


def matches(record: Record, filters: dict[str, Any] | None) -> bool:
    """Equality match of every filter against the record."""
    if not filters:
        return True
    return all(record.field(name) == value for name, value in filters.items())


def sort_and_limit(
    records: list[Record],
    order_by: str,
    descending: bool,
    limit: int | None,
) -> list[Record]:
    """Order records by a field (id breaks ties) and apply the limit."""
    def sort_key(record: Record) -> tuple:
        value = record.field(order_by)
        # Records missing the field sort last in either direction
        return (value is not None, value if value is not None else "", record.id)

    ordered = sorted(records, key=sort_key, reverse=descending)
    if not descending:
        ordered.sort(key=lambda r: r.field(order_by) is None)
    return ordered[:limit] if limit is not None else ordered
