# src/compression/models.py — v1
"""Compression engine models: EncodeResult."""

from __future__ import annotations

from pydantic import BaseModel

from imageboost.core.models import Strategy


class EncodeResult(BaseModel):
    """Outcome of encoding one source image."""

    success: bool
    strategy: Strategy
    buffer: bytes | None = None
    original_size: int = 0
    compressed_size: int = 0
    format: str | None = None
    source_format: str | None = None
    warning: str | None = None
    error: str | None = None

    @property
    def savings(self) -> float:
        """Fraction of bytes saved: 1 - compressed/original."""
        if not self.success or self.original_size <= 0:
            return 0.0
        return 1 - (self.compressed_size / self.original_size)
