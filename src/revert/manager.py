# src/revert/manager.py — v1
"""Revert manager: restore the archived original of a compressed image."""

from __future__ import annotations

import logging

from imageboost.cache.artifact_store import ArtifactCacheStore
from imageboost.cache.models import OriginalArchiveEntry
from imageboost.cache.original_archive import OriginalArchive
from imageboost.core.canonical import canonical
from imageboost.core.errors import NotFoundError
from imageboost.origin.base_origin_client import BaseOriginClient
from imageboost.origin.swap import replace_origin_image
from imageboost.revert.models import RestoredResult

logger = logging.getLogger(__name__)


class RevertManager:
    """Looks up archived originals and points the origin platform back at them."""

    def __init__(
        self,
        archive: OriginalArchive,
        cache_store: ArtifactCacheStore | None = None,
        origin_client: BaseOriginClient | None = None,
    ) -> None:
        self._archive = archive
        self._cache = cache_store
        self._origin = origin_client

    async def revert(
        self,
        url: str,
        product_id: str | None = None,
        image_id: str | None = None,
    ) -> RestoredResult:
        """Restore the original for ``url``.

        ``url`` may be the original source URL, the compressed artifact URL
        or the URL the origin platform assigned after a swap.

        Raises:
            NotFoundError: If no original is archived for the URL.
        """
        original = await self._find_original(url)
        if original is None:
            raise NotFoundError(f"Original image not found for {canonical(url)}")

        swap = None
        if product_id and self._origin is not None:
            swap = await replace_origin_image(
                self._origin, product_id, original.stored_url, image_id
            )

        logger.info(
            "Reverted %s to archived original %s (%d bytes)",
            url, original.stored_path, original.byte_size,
        )
        return RestoredResult(
            requested_url=url,
            restored_url=original.stored_url,
            restored_size=original.byte_size,
            format=original.format,
            origin_swap=swap,
        )

    async def _find_original(self, url: str) -> OriginalArchiveEntry | None:
        original = await self._archive.find(url)
        if original is not None or self._cache is None:
            return original

        lookup = await self._cache.get(url)
        if lookup.artifact is None:
            return None
        logger.debug(
            "Resolved %s to source %s via %s",
            url, lookup.artifact.source_url, lookup.matched_by,
        )
        return await self._archive.find(lookup.artifact.source_url)
