# src/records/sqlite_record_store.py — v1
"""SQLite-based record store (RECORD_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency. Filters are evaluated with
json_extract() over the stored JSON document.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from imageboost.records.base_record_store import BaseRecordStore
from imageboost.records.models import Record

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    id TEXT PRIMARY KEY,
    collection TEXT NOT NULL,
    created_at TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_collection_created
    ON records(collection, created_at);
"""

_COLUMNS = {"id", "created_at"}


class SqliteRecordStore(BaseRecordStore):
    """SQLite-backed record store."""

    def __init__(self, db_path: Path | str) -> None:
        super().__init__()
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def insert(self, collection: str, data: dict[str, Any]) -> Record:
        """Insert a new record."""
        record = self._new_record(collection, data)
        self._conn.execute(
            "INSERT INTO records (id, collection, created_at, data) VALUES (?, ?, ?, ?)",
            (
                record.id,
                collection,
                record.created_at.isoformat(),
                json.dumps(record.data, default=str),
            ),
        )
        self._conn.commit()
        return record

    async def get(self, collection: str, record_id: str) -> Record | None:
        """Retrieve a record by id."""
        row = self._conn.execute(
            "SELECT id, collection, created_at, data FROM records"
            " WHERE collection = ? AND id = ?",
            (collection, record_id),
        ).fetchone()
        return _to_record(row) if row else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Equality-filtered, ordered query."""
        clauses = ["collection = ?"]
        params: list[Any] = [collection]
        for name, value in (filters or {}).items():
            column, column_params = _column(name)
            if value is None:
                clauses.append(f"{column} IS NULL")
                params.extend(column_params)
            else:
                clauses.append(f"{column} = ?")
                params.extend(column_params)
                params.append(value)

        order_column, order_params = _column(order_by)
        direction = "DESC" if descending else "ASC"
        sql = (
            "SELECT id, collection, created_at, data FROM records"
            f" WHERE {' AND '.join(clauses)}"
            f" ORDER BY {order_column} {direction}, id {direction}"
        )
        params.extend(order_params)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        return [_to_record(row) for row in self._conn.execute(sql, params)]

    async def update(
        self, collection: str, record_id: str, changes: dict[str, Any]
    ) -> Record | None:
        """Merge changes into a record's data."""
        record = await self.get(collection, record_id)
        if record is None:
            return None
        record.data.update(changes)
        self._conn.execute(
            "UPDATE records SET data = ? WHERE collection = ? AND id = ?",
            (json.dumps(record.data, default=str), collection, record_id),
        )
        self._conn.commit()
        return record

    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record."""
        cursor = self._conn.execute(
            "DELETE FROM records WHERE collection = ? AND id = ?",
            (collection, record_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    async def count(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> int:
        """Count without materialising records when unfiltered."""
        if filters:
            return await super().count(collection, filters)
        row = self._conn.execute(
            "SELECT COUNT(*) FROM records WHERE collection = ?", (collection,)
        ).fetchone()
        return int(row[0])

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


def _column(name: str) -> tuple[str, list[Any]]:
    """SQL expression (and its parameters) addressing a record field."""
    if name in _COLUMNS:
        return name, []
    return "json_extract(data, ?)", [f'$."{name}"']


def _to_record(row: tuple) -> Record:
    return Record(
        id=row[0],
        collection=row[1],
        created_at=datetime.fromisoformat(row[2]),
        data=json.loads(row[3]),
    )
