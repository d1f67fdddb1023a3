# src/cache/original_archive.py — v1
"""Original archive: pristine source bytes kept so a swap can be reverted.

One entry per canonical key, created the first time it is needed and never
mutated afterwards.
"""

from __future__ import annotations

import logging
import uuid

from imageboost.cache.models import OriginalArchiveEntry
from imageboost.core.canonical import canonical
from imageboost.core.errors import StorageError
from imageboost.core.formats import content_type_for, extension_for, normalize_format
from imageboost.records.models import Record
from imageboost.storage.persistence import PersistenceClient

logger = logging.getLogger(__name__)

ORIGINALS_COLLECTION = "original_images"
_BLOB_PREFIX = "originals"


class OriginalArchive:
    """Store and look up original images by canonical key."""

    def __init__(
        self,
        persistence: PersistenceClient,
        collection: str = ORIGINALS_COLLECTION,
    ) -> None:
        self._blobs = persistence.blobs
        self._records = persistence.records
        self._collection = collection

    async def find(self, url: str) -> OriginalArchiveEntry | None:
        """Archived original for a URL's canonical key, if any."""
        record = await self._records.find_one(
            self._collection, {"canonical_key": canonical(url)}
        )
        return _to_entry(record) if record else None

    async def archive(
        self,
        source_url: str,
        data: bytes,
        fmt: str,
        content_type: str | None = None,
    ) -> OriginalArchiveEntry:
        """Archive the original bytes unless the key is already archived.

        Raises:
            StorageError: If the blob or record write fails.
        """
        existing = await self.find(source_url)
        if existing is not None:
            return existing

        key = canonical(source_url)
        normalized = normalize_format(fmt) or "jpeg"
        stored_path = f"{_BLOB_PREFIX}/{uuid.uuid4()}.{extension_for(normalized)}"
        token = str(uuid.uuid4())
        mime = content_type or content_type_for(normalized)

        try:
            await self._blobs.put(
                stored_path, data, mime, metadata={"original_url": source_url}
            )
            record = await self._records.insert(
                self._collection,
                {
                    "canonical_key": key,
                    "source_url": source_url,
                    "stored_path": stored_path,
                    "stored_url": self._blobs.public_url(stored_path, token),
                    "byte_size": len(data),
                    "format": normalized,
                    "content_type": mime,
                },
            )
        except Exception as e:
            raise StorageError(f"Failed to archive original image: {e}") from e

        logger.info("Archived original for %s (%d bytes)", key, len(data))
        return _to_entry(record)


def _to_entry(record: Record) -> OriginalArchiveEntry:
    return OriginalArchiveEntry(
        id=record.id, created_at=record.created_at, **record.data
    )
