# src/batch/orchestrator.py — v3
"""Batch orchestrator: sequential per-item compress pipeline.

Each URL moves through
    PENDING -> CACHE_CHECK -> HIT -> DONE
    PENDING -> CACHE_CHECK -> MISS -> FETCH -> COMPRESS -> STORE
            -> [ORIGIN_SWAP] -> DONE
and any step may end in FAILED. Items are processed strictly one after the
other, in submission order; one item's failure never affects the others.
"""

from __future__ import annotations

import logging
import traceback
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from imageboost.batch.models import BatchItemResult, BatchResult, ItemState, aggregate
from imageboost.cache.artifact_store import ArtifactCacheStore
from imageboost.cache.models import ArtifactMetadata, CompressedArtifact
from imageboost.cache.original_archive import OriginalArchive
from imageboost.compression.base_engine import BaseCompressionEngine
from imageboost.core.canonical import canonical
from imageboost.core.errors import BatchPreconditionError, EncodeError, FetchError
from imageboost.core.formats import format_from_content_type, format_from_url
from imageboost.core.models import CompressionOptions, OriginSwapResult, Strategy
from imageboost.fetch.http_fetcher import FetchedImage, HttpFetcher
from imageboost.logging.context import (
    clear_context,
    set_batch_context,
    set_item_context,
    set_step,
)
from imageboost.origin.base_origin_client import BaseOriginClient
from imageboost.origin.swap import replace_origin_image

logger = logging.getLogger(__name__)

ItemCallback = Callable[[BatchItemResult], Awaitable[None] | None]


class BatchOrchestrator:
    """Drives a batch of URLs through cache, fetch, encode, store and swap."""

    def __init__(
        self,
        cache_store: ArtifactCacheStore,
        fetcher: HttpFetcher,
        engine: BaseCompressionEngine,
        options: CompressionOptions | None = None,
        archive: OriginalArchive | None = None,
        origin_client: BaseOriginClient | None = None,
        include_error_details: bool = True,
        archive_on_every_compress: bool = False,
    ) -> None:
        self._cache = cache_store
        self._fetcher = fetcher
        self._engine = engine
        self._options = options or CompressionOptions()
        self._archive = archive
        self._origin = origin_client
        self._include_error_details = include_error_details
        self._archive_on_every_compress = archive_on_every_compress

    @property
    def strategy(self) -> Strategy:
        return self._engine.strategy

    async def iter_results(
        self,
        urls: Sequence[str],
        product_ids: Sequence[str | None] | None = None,
        image_ids: Sequence[str | None] | None = None,
    ) -> AsyncIterator[BatchItemResult]:
        """Yield one result per URL, in submission order.

        Raises:
            BatchPreconditionError: If ``urls`` is empty.
        """
        if not urls:
            raise BatchPreconditionError("No image URLs provided")

        product_ids = _aligned(product_ids, len(urls), "product_ids")
        image_ids = _aligned(image_ids, len(urls), "image_ids")

        batch_id = uuid.uuid4().hex[:12]
        set_batch_context(batch_id, self.strategy.value)
        logger.info("Starting batch %s: %d URL(s)", batch_id, len(urls))
        try:
            for index, url in enumerate(urls):
                result = await self._process(url, product_ids[index], image_ids[index])
                logger.info(
                    "Processed %d/%d: %s (%s)",
                    index + 1, len(urls), url, result.state.value,
                )
                yield result
        finally:
            clear_context()

    async def run(
        self,
        urls: Sequence[str],
        product_ids: Sequence[str | None] | None = None,
        image_ids: Sequence[str | None] | None = None,
        on_item: ItemCallback | None = None,
    ) -> BatchResult:
        """Process the whole batch, reporting each item before the next starts."""
        results: list[BatchItemResult] = []
        async for item in self.iter_results(urls, product_ids, image_ids):
            results.append(item)
            if on_item is not None:
                outcome = on_item(item)
                if outcome is not None:
                    await outcome

        batch = aggregate(results, self.strategy)
        logger.info(
            "Batch complete: %d ok, %d failed, %.2f%% saved",
            batch.total_successful, batch.total_errors, batch.total_savings,
        )
        return batch

    # ------------------------------------------------------------------
    # Per-item pipeline
    # ------------------------------------------------------------------

    async def _process(
        self, url: str, product_id: str | None, image_id: str | None
    ) -> BatchItemResult:
        key = canonical(url)
        state = ItemState.PENDING
        set_item_context(url, state.value)
        try:
            state = self._enter(ItemState.CACHE_CHECK)
            lookup = await self._cache.get(url, external_id=image_id)
            if lookup.hit and lookup.artifact is not None:
                self._enter(ItemState.HIT)
                return _from_cache(url, key, lookup.artifact)
            self._enter(ItemState.MISS)

            state = self._enter(ItemState.FETCH)
            fetched = await self._fetcher.fetch(url)
            if self._archive is not None and self._archive_on_every_compress:
                await _archive_original(self._archive, url, fetched)

            state = self._enter(ItemState.COMPRESS)
            encoded = await self._engine.encode(
                fetched.data, fetched.content_type, self._options, source_url=url
            )
            if not encoded.success or encoded.buffer is None:
                raise EncodeError(encoded.error or "Compression failed")
            if encoded.warning:
                logger.warning("%s: %s", url, encoded.warning)

            state = self._enter(ItemState.STORE)
            artifact = await self._cache.put(
                key,
                encoded.buffer,
                ArtifactMetadata(
                    source_url=url,
                    format=encoded.format or "webp",
                    original_byte_size=encoded.original_size,
                    strategy_used=self.strategy,
                ),
            )

            result = BatchItemResult(
                url=url,
                canonical_key=key,
                success=True,
                original_size=encoded.original_size,
                compressed_size=encoded.compressed_size,
                format=artifact.format,
                savings_fraction=encoded.savings,
                compressed_url=artifact.compressed_url,
                strategy=self.strategy,
                state=ItemState.STORE,
                warning=encoded.warning,
            )

            if product_id and self._origin is not None:
                state = self._enter(ItemState.ORIGIN_SWAP)
                result.origin_swap = await self._swap(
                    self._origin, url, fetched, artifact, product_id, image_id
                )

            self._enter(ItemState.DONE)
            result.state = ItemState.DONE
            return result
        except Exception as e:
            logger.warning("Failed to process %s during %s: %s", url, state.value, e)
            set_step(ItemState.FAILED.value)
            return BatchItemResult(
                url=url,
                canonical_key=key,
                success=False,
                strategy=self.strategy,
                state=ItemState.FAILED,
                error=str(e),
                error_details=self._error_details(e, state),
            )

    async def _swap(
        self,
        origin: BaseOriginClient,
        url: str,
        fetched: FetchedImage,
        artifact: CompressedArtifact,
        product_id: str,
        image_id: str | None,
    ) -> OriginSwapResult:
        """Archive the original, then replace the origin image. Best-effort."""
        if self._archive is not None:
            try:
                await _archive_original(self._archive, url, fetched)
            except Exception as e:
                logger.warning("Skipping origin swap for %s, archive failed: %s", url, e)
                return OriginSwapResult(
                    product_id=str(product_id),
                    old_image_id=image_id,
                    error=f"Original could not be archived: {e}",
                )

        swap = await replace_origin_image(
            origin, product_id, artifact.compressed_url, image_id
        )
        if swap.succeeded and swap.new_image_id:
            try:
                await self._cache.record_swap(
                    artifact, swap.new_image_id, swap.new_image_src
                )
            except Exception as e:
                logger.warning("Could not record swap for %s: %s", url, e)
        return swap

    def _enter(self, state: ItemState) -> ItemState:
        set_step(state.value)
        return state

    def _error_details(self, exc: Exception, state: ItemState) -> dict[str, Any] | None:
        if not self._include_error_details:
            return None
        details: dict[str, Any] = {
            "name": type(exc).__name__,
            "step": state.value,
            "traceback": "".join(traceback.format_exception(exc)),
        }
        if isinstance(exc, FetchError):
            details["status"] = exc.status
        return details


async def _archive_original(
    archive: OriginalArchive, url: str, fetched: FetchedImage
) -> None:
    fmt = (
        format_from_content_type(fetched.content_type)
        or format_from_url(url)
        or "jpeg"
    )
    await archive.archive(url, fetched.data, fmt, fetched.content_type)


def _from_cache(url: str, key: str, artifact: CompressedArtifact) -> BatchItemResult:
    return BatchItemResult(
        url=url,
        canonical_key=key,
        success=True,
        original_size=artifact.original_byte_size,
        compressed_size=artifact.byte_size,
        format=artifact.format or "webp",
        savings_fraction=artifact.savings_fraction,
        compressed_url=artifact.compressed_url,
        from_cache=True,
        strategy=artifact.strategy_used,
        state=ItemState.DONE,
    )


def _aligned(
    ids: Sequence[str | None] | None, length: int, name: str
) -> list[str | None]:
    """Return ids padded to ``length``, or all-None when the list is misaligned."""
    if not ids:
        return [None] * length
    if len(ids) != length:
        logger.warning(
            "Ignoring %s: %d given for %d URL(s)", name, len(ids), length
        )
        return [None] * length
    return [str(i) if i not in (None, "") else None for i in ids]
