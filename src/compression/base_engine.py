# src/compression/base_engine.py — v2
"""Abstract compression engine.

Every engine honours one contract: ``encode()`` turns source bytes into an
EncodeResult and never raises. Engines hold no per-image state, so one
instance may serve any number of sequential or concurrent calls.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from imageboost.compression.models import EncodeResult
from imageboost.core.errors import EncodeError
from imageboost.core.formats import UNKNOWN_FORMAT
from imageboost.core.models import CompressionOptions, Strategy

logger = logging.getLogger(__name__)


class BaseCompressionEngine(ABC):
    """Unified interface for compression strategies."""

    @property
    @abstractmethod
    def strategy(self) -> Strategy:
        """Which strategy this engine implements."""

    async def encode(
        self,
        data: bytes,
        content_type_hint: str | None,
        options: CompressionOptions,
        source_url: str | None = None,
    ) -> EncodeResult:
        """Encode one image under the given constraints.

        Failures of any kind are reported as ``success=False`` with ``error``.
        """
        if not data:
            return self._failure(0, "Source image is empty")
        try:
            return await self._encode(data, content_type_hint, options, source_url)
        except EncodeError as e:
            logger.warning("[%s] Encode failed: %s", self.strategy.value, e)
            return self._failure(len(data), str(e))
        except Exception as e:
            logger.exception("[%s] Unexpected encode failure", self.strategy.value)
            return self._failure(len(data), f"{type(e).__name__}: {e}")

    @abstractmethod
    async def _encode(
        self,
        data: bytes,
        content_type_hint: str | None,
        options: CompressionOptions,
        source_url: str | None,
    ) -> EncodeResult:
        """Engine-specific encoding. May raise EncodeError."""

    def _finalize(
        self,
        original: bytes,
        encoded: bytes,
        fmt: str,
        source_format: str | None,
        warning: str | None = None,
    ) -> EncodeResult:
        """Build a successful result, never worse than the original.

        An encoding that is not smaller than the source is discarded and the
        source bytes are returned unchanged, with zero savings, labelled with
        the source format (UNKNOWN_FORMAT when it could not be determined).
        """
        original_size = len(original)
        if len(encoded) >= original_size:
            logger.info(
                "[%s] Encoded size %d >= original %d, keeping original",
                self.strategy.value, len(encoded), original_size,
            )
            return EncodeResult(
                success=True,
                strategy=self.strategy,
                buffer=original,
                original_size=original_size,
                compressed_size=original_size,
                format=source_format or UNKNOWN_FORMAT,
                source_format=source_format,
                warning=warning,
            )

        result = EncodeResult(
            success=True,
            strategy=self.strategy,
            buffer=encoded,
            original_size=original_size,
            compressed_size=len(encoded),
            format=fmt,
            source_format=source_format,
            warning=warning,
        )
        logger.info(
            "[%s] %d -> %d bytes (%.2f%% saved, %s)",
            self.strategy.value, original_size, result.compressed_size,
            result.savings * 100, fmt,
        )
        return result

    def _failure(self, original_size: int, error: str) -> EncodeResult:
        return EncodeResult(
            success=False,
            strategy=self.strategy,
            original_size=original_size,
            error=error,
        )
