# src/storage/local_blob_store.py — v2
"""Local filesystem blob store (default BLOB_BACKEND=local).

Object metadata is kept in a ``<blob>.meta.json`` sidecar next to each blob.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from imageboost.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)

_META_SUFFIX = ".meta.json"


class LocalBlobStore(BaseBlobStore):
    """Store blobs on the local filesystem."""

    def __init__(self, root: Path | str, public_base_url: str = "") -> None:
        """Initialize with a root directory.

        Args:
            root: Directory all blob paths are resolved against.
            public_base_url: Base of published URLs. Defaults to the root's file:// URI.
        """
        self._root = Path(root).expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        super().__init__(public_base_url or self._root.as_uri())

    def _resolve(self, path: str) -> Path:
        """Resolve a blob path under the root, refusing escapes."""
        resolved = (self._root / path).resolve()
        if self._root not in resolved.parents:
            raise ValueError(f"Blob path escapes store root: {path!r}")
        return resolved

    async def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Write a blob and its metadata sidecar."""
        p = self._resolve(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        sidecar = {"content_type": content_type, **(metadata or {})}
        p.with_name(p.name + _META_SUFFIX).write_text(
            json.dumps(sidecar, indent=2), encoding="utf-8"
        )
        logger.debug("Local blob write: %s (%d bytes)", p, len(data))

    async def get(self, path: str) -> bytes:
        """Read a blob from disk."""
        return self._resolve(path).read_bytes()

    async def exists(self, path: str) -> bool:
        """Check if the blob file exists."""
        return self._resolve(path).is_file()

    async def delete(self, path: str) -> None:
        """Remove the blob and its sidecar."""
        p = self._resolve(path)
        p.unlink(missing_ok=True)
        p.with_name(p.name + _META_SUFFIX).unlink(missing_ok=True)

    async def read_metadata(self, path: str) -> dict[str, str]:
        """Return the sidecar metadata of a blob (empty if none)."""
        sidecar = self._resolve(path)
        sidecar = sidecar.with_name(sidecar.name + _META_SUFFIX)
        if not sidecar.is_file():
            return {}
        return json.loads(sidecar.read_text(encoding="utf-8"))
