# src/api/facade.py — v3
"""Public API facade — entry points for compress and revert.

Usage:
    from imageboost.api.facade import compress_images, revert_image
    result = await compress_images(CompressRequest(urls=[...]))

Whole-request failures come back as ErrorResponse; per-image failures are
reported inside the BatchResult.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from imageboost.api.models import CompressRequest, ErrorResponse, RevertRequest
from imageboost.batch.models import BatchItemResult, BatchResult
from imageboost.batch.orchestrator import BatchOrchestrator
from imageboost.cache.artifact_store import ArtifactCacheStore
from imageboost.cache.original_archive import OriginalArchive
from imageboost.compression.engine_factory import create_engine
from imageboost.config.settings import ConfigurationError, Settings
from imageboost.core.errors import BatchPreconditionError, NotFoundError
from imageboost.core.models import CompressionOptions, Strategy
from imageboost.fetch.http_fetcher import HttpFetcher
from imageboost.origin.models import OriginSession
from imageboost.revert.manager import RevertManager
from imageboost.revert.models import RestoredResult
from imageboost.storage.persistence import PersistenceClient, get_persistence

if TYPE_CHECKING:
    from imageboost.compression.base_engine import BaseCompressionEngine
    from imageboost.origin.base_origin_client import BaseOriginClient

logger = logging.getLogger(__name__)


async def compress_images(
    request: CompressRequest,
    settings: Settings | None = None,
    persistence: PersistenceClient | None = None,
    session: OriginSession | None = None,
    origin_client: BaseOriginClient | None = None,
    fetcher: HttpFetcher | None = None,
    engine: BaseCompressionEngine | None = None,
    on_item: Callable[[BatchItemResult], Awaitable[None] | None] | None = None,
) -> BatchResult | ErrorResponse:
    """Compress a batch of images and return per-item results plus totals.

    Args:
        request: URLs, strategy and optional positional origin ids.
        settings: Global settings. Loaded from .env if None.
        persistence: Persistence client. The process-wide one if None.
        session: Origin platform credentials. Origin swaps are only
            attempted when a session (or ``origin_client``) is available.
        origin_client: Pre-built origin client, overriding ``session``.
        fetcher: Source fetcher override.
        engine: Compression engine override (skips the strategy factory).
        on_item: Called with each item result before the next item starts.

    Returns:
        BatchResult, or ErrorResponse when the batch cannot start.
    """
    settings = settings or Settings()
    strategy = request.strategy or Strategy(settings.default_strategy)

    if not request.urls:
        return ErrorResponse(error="No image URLs provided", status_code=400)

    try:
        engine = engine or create_engine(strategy, settings)
    except ConfigurationError as e:
        logger.error("Cannot start batch: %s", e)
        return ErrorResponse(error=str(e), status_code=500)

    persistence = persistence or get_persistence(settings)
    orchestrator = BatchOrchestrator(
        cache_store=ArtifactCacheStore(persistence),
        fetcher=fetcher or _build_fetcher(settings),
        engine=engine,
        options=_options_from(settings),
        archive=OriginalArchive(persistence),
        origin_client=origin_client or _build_origin_client(session, settings),
        include_error_details=not settings.is_production,
        archive_on_every_compress=settings.archive_on_every_compress,
    )

    try:
        return await orchestrator.run(
            request.urls,
            product_ids=request.product_ids,
            image_ids=request.image_ids,
            on_item=on_item,
        )
    except BatchPreconditionError as e:
        return ErrorResponse(error=str(e), status_code=400)


async def revert_image(
    request: RevertRequest,
    settings: Settings | None = None,
    persistence: PersistenceClient | None = None,
    session: OriginSession | None = None,
    origin_client: BaseOriginClient | None = None,
) -> RestoredResult | ErrorResponse:
    """Restore the archived original for a URL.

    Returns:
        RestoredResult, or ErrorResponse(status_code=404) when nothing is
        archived for the URL.
    """
    if not request.url:
        return ErrorResponse(error="url is required", status_code=400)

    settings = settings or Settings()
    persistence = persistence or get_persistence(settings)
    manager = RevertManager(
        archive=OriginalArchive(persistence),
        cache_store=ArtifactCacheStore(persistence),
        origin_client=origin_client or _build_origin_client(session, settings),
    )
    try:
        return await manager.revert(
            request.url, product_id=request.product_id, image_id=request.image_id
        )
    except NotFoundError as e:
        logger.info("Revert refused: %s", e)
        return ErrorResponse(error="Original image not found", status_code=404)


def _options_from(settings: Settings) -> CompressionOptions:
    return CompressionOptions(
        quality=settings.compression_quality,
        max_width=settings.max_width,
        max_height=settings.max_height,
    )


def _build_fetcher(settings: Settings) -> HttpFetcher:
    return HttpFetcher(
        timeout=settings.http_timeout_seconds,
        user_agent=settings.http_user_agent,
    )


def _build_origin_client(
    session: OriginSession | None, settings: Settings
) -> BaseOriginClient | None:
    """Shopify client, only when both shop and access token are present."""
    if session is None or not session.shop or not session.access_token:
        return None
    from imageboost.origin.shopify_client import ShopifyClient

    return ShopifyClient(
        session,
        api_version=settings.shopify_api_version,
        timeout=settings.http_timeout_seconds,
    )
