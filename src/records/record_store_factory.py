# src/records/record_store_factory.py — v1
"""Factory for record store instantiation."""

from __future__ import annotations

from imageboost.config.settings import Settings
from imageboost.records.base_record_store import BaseRecordStore


def create_record_store(settings: Settings | None = None) -> BaseRecordStore:
    """Instantiate the configured record backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseRecordStore implementation.
    """
    backend = "json" if settings is None else settings.record_backend
    root = "~/.imageboost/records" if settings is None else str(settings.record_root)

    if backend == "json":
        from imageboost.records.json_record_store import JsonRecordStore
        return JsonRecordStore(root=root)

    if backend == "sqlite":
        from imageboost.records.sqlite_record_store import SqliteRecordStore
        return SqliteRecordStore(db_path=f"{root}/imageboost_records.db")

    if backend == "redis":
        from imageboost.records.redis_record_store import RedisRecordStore
        if settings is None or not settings.record_redis_url:
            raise ValueError(
                "RECORD_REDIS_URL must be set when RECORD_BACKEND=redis"
            )
        return RedisRecordStore(redis_url=settings.record_redis_url)

    raise ValueError(f"Unsupported record backend: {backend!r}")
