# src/core/errors.py — v1
"""Error taxonomy shared by the fetch, compression, storage and origin layers.

Per-item errors (FetchError, EncodeError, StorageError) are converted into
failed batch items by the orchestrator. OriginSwapError never escapes the
swap hook. StaleCacheMiss never escapes the cache store.
"""

from __future__ import annotations


class ImageBoostError(Exception):
    """Base class for all domain errors."""


class FetchError(ImageBoostError):
    """Source image could not be retrieved (non-2xx or transport failure)."""

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class EncodeError(ImageBoostError):
    """Decode, transcode or remote conversion failure."""


class StorageError(ImageBoostError):
    """Blob or metadata write failure."""


class StaleCacheMiss(ImageBoostError):
    """A metadata record references a blob that no longer exists."""

    def __init__(self, record_id: str, storage_path: str | None) -> None:
        super().__init__(
            f"Stale cache record {record_id}: blob {storage_path!r} is missing"
        )
        self.record_id = record_id
        self.storage_path = storage_path


class OriginSwapError(ImageBoostError):
    """Creating or deleting an image at the origin platform failed."""


class NotFoundError(ImageBoostError):
    """Revert target has no archived original."""


class BatchPreconditionError(ImageBoostError):
    """The batch request as a whole cannot be processed."""
