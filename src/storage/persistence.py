# src/storage/persistence.py — v2
"""The persistence client: one blob store plus one record store.

Built once per process and passed by reference to the cache store, the
original archive, the orchestrator and the revert manager. Entry points that
are not handed a client use the shared one from get_persistence().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from imageboost.config.settings import Settings
from imageboost.records.base_record_store import BaseRecordStore
from imageboost.records.record_store_factory import create_record_store
from imageboost.storage.base_blob_store import BaseBlobStore
from imageboost.storage.blob_store_factory import create_blob_store

logger = logging.getLogger(__name__)

_shared: PersistenceClient | None = None


@dataclass(frozen=True)
class PersistenceClient:
    """Shared handle on blob and record storage."""

    blobs: BaseBlobStore
    records: BaseRecordStore

    def close(self) -> None:
        self.records.close()


def create_persistence(settings: Settings | None = None) -> PersistenceClient:
    """Build a new persistence client from settings."""
    client = PersistenceClient(
        blobs=create_blob_store(settings),
        records=create_record_store(settings),
    )
    logger.info(
        "Persistence ready: blobs=%s, records=%s",
        type(client.blobs).__name__, type(client.records).__name__,
    )
    return client


def get_persistence(settings: Settings | None = None) -> PersistenceClient:
    """Process-wide client, created from ``settings`` on first use.

    Later calls return the same client; their settings are ignored.
    """
    global _shared
    if _shared is None:
        _shared = create_persistence(settings)
    return _shared


def close_persistence() -> None:
    """Close and forget the process-wide client."""
    global _shared
    if _shared is not None:
        _shared.close()
        _shared = None
