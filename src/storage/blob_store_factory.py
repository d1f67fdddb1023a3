# src/storage/blob_store_factory.py — v3
"""Factory: instantiate the blob store from configuration."""

from __future__ import annotations

from imageboost.config.settings import Settings
from imageboost.storage.base_blob_store import BaseBlobStore
from imageboost.storage.local_blob_store import LocalBlobStore


def create_blob_store(settings: Settings | None = None) -> BaseBlobStore:
    """Create the blob store selected by BLOB_BACKEND.

    Args:
        settings: Application settings. Defaults to a local store.

    Returns:
        BaseBlobStore instance.

    Raises:
        ValueError: If the backend is not supported or misconfigured.
    """
    if settings is None:
        return LocalBlobStore(root="~/.imageboost/blobs")

    if settings.blob_backend == "local":
        return LocalBlobStore(
            root=settings.blob_root,
            public_base_url=settings.blob_public_base_url,
        )

    if settings.blob_backend == "s3":
        from imageboost.storage.s3_blob_store import S3BlobStore
        if not settings.blob_s3_bucket:
            raise ValueError("BLOB_S3_BUCKET must be set when BLOB_BACKEND=s3")
        return S3BlobStore(
            bucket=settings.blob_s3_bucket,
            prefix=settings.blob_s3_prefix,
            region=settings.blob_s3_region or None,
            endpoint_url=settings.blob_s3_endpoint_url or None,
            public_base_url=settings.blob_public_base_url,
        )

    raise ValueError(f"Unsupported blob backend: {settings.blob_backend!r}")
