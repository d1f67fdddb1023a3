# src/compression/engine_factory.py — v1
"""Factory: the single place that maps a Strategy to an engine."""

from __future__ import annotations

from imageboost.compression.base_engine import BaseCompressionEngine
from imageboost.config.settings import ConfigurationError, Settings
from imageboost.core.models import Strategy


def create_engine(
    strategy: Strategy | str,
    settings: Settings | None = None,
) -> BaseCompressionEngine:
    """Instantiate the engine for a strategy.

    Args:
        strategy: "local" or "remote".
        settings: Application settings. Defaults to built-in defaults.

    Returns:
        Configured BaseCompressionEngine implementation.

    Raises:
        ValueError: If the strategy is unknown.
        ConfigurationError: If the remote engine has no API key.
    """
    strategy = Strategy(strategy)

    if strategy is Strategy.LOCAL:
        from imageboost.compression.local_engine import LocalCompressionEngine
        if settings is None:
            return LocalCompressionEngine()
        return LocalCompressionEngine(
            default_format=settings.local_default_format,
            quality_threshold_bytes=settings.quality_threshold_bytes,
            small_image_quality=settings.small_image_quality,
        )

    from imageboost.compression.remote_engine import RemoteCompressionEngine
    if settings is None or not settings.tinify_api_key:
        raise ConfigurationError(
            "Server configuration error: TINIFY_API_KEY is not set"
        )
    return RemoteCompressionEngine(
        api_key=settings.tinify_api_key,
        api_url=settings.tinify_api_url,
        timeout=settings.http_timeout_seconds,
    )
