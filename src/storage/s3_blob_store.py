# src/storage/s3_blob_store.py — v2
"""S3-compatible blob store (BLOB_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, unquote, urlsplit

from imageboost.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)


class S3BlobStore(BaseBlobStore):
    """Store blobs in S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "imageboost/",
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str = "",
    ) -> None:
        """Initialize S3 blob store.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "imageboost/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            public_base_url: Base of published URLs (CDN or bucket website).
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 blob store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        super().__init__(public_base_url or _default_base_url(bucket, region, endpoint_url))

    def _full_key(self, path: str) -> str:
        """Build the full S3 key from a relative path."""
        return f"{self._prefix}{path}"

    async def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Upload a blob."""
        key = self._full_key(path)
        self._s3.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata={k: str(v) for k, v in (metadata or {}).items()},
        )
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, key, len(data))

    async def get(self, path: str) -> bytes:
        """Download a blob."""
        key = self._full_key(path)
        try:
            response = self._s3.get_object(Bucket=self._bucket, Key=key)
        except self._s3.exceptions.NoSuchKey as e:
            raise FileNotFoundError(key) from e
        return response["Body"].read()

    async def exists(self, path: str) -> bool:
        """Check if an S3 object exists."""
        key = self._full_key(path)
        try:
            self._s3.head_object(Bucket=self._bucket, Key=key)
            return True
        except self._s3.exceptions.ClientError:
            return False

    async def delete(self, path: str) -> None:
        """Delete an S3 object (idempotent on S3)."""
        self._s3.delete_object(Bucket=self._bucket, Key=self._full_key(path))

    def public_url(self, path: str, token: str) -> str:
        """Object URL under the public base, token kept as query parameter."""
        return f"{self._public_base_url}/{quote(self._full_key(path))}?token={token}"

    def path_from_url(self, url: str) -> str | None:
        """Recover the relative blob path from an object URL."""
        try:
            url_path = unquote(urlsplit(url).path)
        except ValueError:
            return None
        base_path = urlsplit(self._public_base_url).path.rstrip("/")
        if base_path and url_path.startswith(base_path):
            url_path = url_path[len(base_path):]
        key = url_path.lstrip("/")
        if not key.startswith(self._prefix):
            return None
        return key[len(self._prefix):] or None


def _default_base_url(
    bucket: str, region: str | None, endpoint_url: str | None
) -> str:
    """Virtual-hosted style URL, or path style for custom endpoints."""
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{bucket}"
    if region:
        return f"https://{bucket}.s3.{region}.amazonaws.com"
    return f"https://{bucket}.s3.amazonaws.com"
