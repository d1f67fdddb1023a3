# src/records/json_record_store.py — v1
"""JSON file-based record store (default RECORD_BACKEND=json).

Stores each record as an individual JSON file under
``<root>/<collection>/<record_id>.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from imageboost.records.base_record_store import (
    BaseRecordStore,
    matches,
    sort_and_limit,
)
from imageboost.records.models import Record

logger = logging.getLogger(__name__)


class JsonRecordStore(BaseRecordStore):
    """File-based record store using JSON files."""

    def __init__(self, root: Path | str) -> None:
        super().__init__()
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def insert(self, collection: str, data: dict[str, Any]) -> Record:
        """Insert a new record."""
        record = self._new_record(collection, data)
        self._write(record)
        return record

    async def get(self, collection: str, record_id: str) -> Record | None:
        """Retrieve a record by id."""
        path = self._record_path(collection, record_id)
        if not path.exists():
            return None
        try:
            return Record.model_validate_json(path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.warning("Failed to read record %s/%s: %s", collection, record_id, e)
            return None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Scan the collection directory and filter in memory."""
        directory = self._root / _safe(collection)
        if not directory.is_dir():
            return []

        found: list[Record] = []
        for path in directory.glob("*.json"):
            try:
                record = Record.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                # Deleted concurrently or half-written: not a visible record
                continue
            if matches(record, filters):
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
        self._write(record)
        return record

    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record file."""
        path = self._record_path(collection, record_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _write(self, record: Record) -> None:
        path = self._record_path(record.collection, record.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(record.model_dump_json(indent=2), encoding="utf-8")

    def _record_path(self, collection: str, record_id: str) -> Path:
        """Return file path for a record."""
        return self._root / _safe(collection) / f"{_safe(record_id)}.json"


def _safe(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_")
