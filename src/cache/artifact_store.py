# src/cache/artifact_store.py — v1
"""Compressed-artifact cache store with existence-verified lookup.

A metadata record is authoritative for its canonical key only while the blob
it references still exists. Every lookup verifies that inline and deletes
records whose blob has vanished (self-healing), so out-of-band deletions in
the blob store surface as ordinary cache misses.

Known limitation: there is no per-key mutual exclusion. Two concurrent
misses for the same key can both store an artifact; the newest record wins
subsequent lookups.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from imageboost.cache.models import (
    ArtifactMetadata,
    CacheLookupResult,
    CompressedArtifact,
)
from imageboost.core.canonical import canonical
from imageboost.core.errors import StaleCacheMiss, StorageError
from imageboost.core.formats import content_type_for, extension_for, normalize_format
from imageboost.records.models import Record
from imageboost.storage.persistence import PersistenceClient

logger = logging.getLogger(__name__)

ARTIFACTS_COLLECTION = "compressed_images"
_BLOB_PREFIX = "compressed"


class ArtifactCacheStore:
    """Persist and look up compressed artifacts by canonical source URL."""

    def __init__(
        self,
        persistence: PersistenceClient,
        collection: str = ARTIFACTS_COLLECTION,
    ) -> None:
        self._blobs = persistence.blobs
        self._records = persistence.records
        self._collection = collection

    async def put(
        self,
        canonical_key: str,
        buffer: bytes,
        metadata: ArtifactMetadata,
    ) -> CompressedArtifact:
        """Store a compressed buffer and its metadata record.

        Raises:
            StorageError: If the buffer is empty, or the blob or record write fails.
        """
        if not buffer:
            raise StorageError("Image buffer is empty")

        fmt = normalize_format(metadata.format) or "webp"
        storage_path = f"{_BLOB_PREFIX}/{uuid.uuid4()}.{extension_for(fmt)}"
        token = str(uuid.uuid4())

        try:
            await self._blobs.put(
                storage_path,
                buffer,
                content_type_for(fmt),
                metadata={
                    "original_url": metadata.source_url,
                    "format": fmt,
                    "size": str(len(buffer)),
                    "strategy": metadata.strategy_used.value,
                    "stored_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except Exception as e:
            raise StorageError(f"Failed to store compressed image: {e}") from e

        compressed_url = self._blobs.public_url(storage_path, token)
        data: dict[str, Any] = {
            "canonical_key": canonical_key,
            "source_url": metadata.source_url,
            "storage_path": storage_path,
            "download_token": token,
            "compressed_url": compressed_url,
            "compressed_key": canonical(compressed_url),
            "byte_size": len(buffer),
            "format": fmt,
            "original_byte_size": metadata.original_byte_size,
            "strategy_used": metadata.strategy_used.value,
        }

        try:
            record = await self._records.insert(self._collection, data)
        except Exception as e:
            await self._discard_blob(storage_path)
            raise StorageError(f"Failed to save image metadata: {e}") from e

        logger.info(
            "Stored artifact %s for %s (%d bytes, %s)",
            record.id, canonical_key, len(buffer), fmt,
        )
        return _to_artifact(record)

    async def get(
        self, url: str, external_id: str | None = None
    ) -> CacheLookupResult:
        """Look up the current artifact for a URL.

        Precedence: external platform id, canonical key, previously recorded
        swapped-to URL, then the artifact's own URL. The first level with a
        record decides the outcome; a stale record there is healed and
        reported as a miss.
        """
        key = canonical(url)
        for matched_by, filters in _lookup_plan(key, external_id):
            try:
                record = await self._records.find_one(self._collection, filters)
            except Exception as e:
                logger.warning("Artifact lookup failed for %s: %s", key, e)
                return CacheLookupResult()
            if record is not None:
                return await self._verify(record, matched_by)
        return CacheLookupResult()

    async def record_swap(
        self,
        artifact: CompressedArtifact,
        new_image_id: str,
        new_src: str | None = None,
    ) -> CompressedArtifact:
        """Remember the origin image now serving this artifact."""
        changes = {
            "external_image_id": str(new_image_id),
            "swapped_url": new_src,
            "swapped_key": canonical(new_src) if new_src else None,
        }
        updated = await self._records.update(self._collection, artifact.id, changes)
        if updated is None:
            logger.warning("Artifact %s vanished before swap could be recorded", artifact.id)
            return artifact.model_copy(update=changes)
        return _to_artifact(updated)

    async def count(self) -> int:
        """Number of artifact records."""
        return await self._records.count(self._collection)

    async def _verify(self, record: Record, matched_by: str) -> CacheLookupResult:
        """Confirm the record's blob exists; delete the record if it does not."""
        try:
            artifact = _to_artifact(record)
            storage_path = artifact.storage_path or self._blobs.path_from_url(
                artifact.compressed_url
            )
            if not storage_path:
                raise StaleCacheMiss(record.id, None)
            if not await self._blobs.exists(storage_path):
                raise StaleCacheMiss(record.id, storage_path)
        except StaleCacheMiss as e:
            logger.warning("%s; deleting stale record", e)
            return await self._heal(record, matched_by)
        except Exception:
            logger.exception("Could not verify artifact %s; deleting record", record.id)
            return await self._heal(record, matched_by)

        if artifact.storage_path is None:
            # Written before paths were recorded: back-fill for future lookups
            await self._records.update(
                self._collection, record.id, {"storage_path": storage_path}
            )
            artifact = artifact.model_copy(update={"storage_path": storage_path})

        return CacheLookupResult(
            artifact=artifact, matched_by=matched_by, verified=True
        )

    async def _heal(self, record: Record, matched_by: str) -> CacheLookupResult:
        await self._records.delete(self._collection, record.id)
        return CacheLookupResult(matched_by=matched_by, healed=True)

    async def _discard_blob(self, storage_path: str) -> None:
        try:
            await self._blobs.delete(storage_path)
        except Exception:
            logger.warning("Could not remove orphaned blob %s", storage_path, exc_info=True)


def _lookup_plan(
    key: str, external_id: str | None
) -> list[tuple[str, dict[str, Any]]]:
    plan: list[tuple[str, dict[str, Any]]] = []
    if external_id:
        plan.append(("external_id", {"external_image_id": str(external_id)}))
    plan.append(("canonical_key", {"canonical_key": key}))
    plan.append(("swapped_url", {"swapped_key": key}))
    plan.append(("compressed_url", {"compressed_key": key}))
    return plan


def _to_artifact(record: Record) -> CompressedArtifact:
    return CompressedArtifact.from_record(record.id, record.created_at, record.data)
