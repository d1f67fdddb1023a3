# src/storage/base_blob_store.py — v2
"""Abstract blob store interface.

Blobs are addressed by an opaque path (``compressed/<uuid>.webp``) and are
published through token-bearing download URLs of the form
``<public_base>/o/<quoted path>?alt=media&token=<token>``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import quote, unquote, urlsplit

_OBJECT_MARKER = "/o/"


class BaseBlobStore(ABC):
    """Unified interface for blob storage backends."""

    def __init__(self, public_base_url: str) -> None:
        self._public_base_url = public_base_url.rstrip("/")

    @abstractmethod
    async def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Write a blob at the given path."""

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """Read a blob. Raises FileNotFoundError if absent."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a blob exists."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove a blob. Missing blobs are ignored."""

    def public_url(self, path: str, token: str) -> str:
        """Build the download URL for a stored blob."""
        return (
            f"{self._public_base_url}{_OBJECT_MARKER}{quote(path, safe='')}"
            f"?alt=media&token={token}"
        )

    def path_from_url(self, url: str) -> str | None:
        """Recover the blob path from a URL built by public_url().

        Returns None when the URL does not carry an object path.
        """
        try:
            url_path = urlsplit(url).path
        except ValueError:
            return None
        if _OBJECT_MARKER not in url_path:
            return None
        path = unquote(url_path.split(_OBJECT_MARKER, 1)[1])
        return path or None
