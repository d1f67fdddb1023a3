# src/batch/models.py — v2
"""Batch processing models: ItemState, BatchItemResult, BatchResult."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from imageboost.core.models import OriginSwapResult, Strategy


class ItemState(str, Enum):
    """Lifecycle of one URL inside a batch."""

    PENDING = "pending"
    CACHE_CHECK = "cache_check"
    HIT = "hit"
    MISS = "miss"
    FETCH = "fetch"
    COMPRESS = "compress"
    STORE = "store"
    ORIGIN_SWAP = "origin_swap"
    DONE = "done"
    FAILED = "failed"


class BatchItemResult(BaseModel):
    """Outcome for one submitted URL. Failures never halt the batch."""

    url: str
    canonical_key: str
    success: bool
    original_size: int = 0
    compressed_size: int = 0
    format: str | None = None
    savings_fraction: float = 0.0
    compressed_url: str | None = None
    from_cache: bool = False
    strategy: Strategy
    state: ItemState
    warning: str | None = None
    origin_swap: OriginSwapResult | None = None
    error: str | None = None
    error_details: dict[str, Any] | None = None


class BatchResult(BaseModel):
    """Per-item results in submission order plus totals over successful items."""

    type: Literal["complete"] = "complete"
    results: list[BatchItemResult] = Field(default_factory=list)
    total_processed: int = 0
    total_successful: int = 0
    total_errors: int = 0
    total_original_size: int = 0
    total_compressed_size: int = 0
    total_savings: float = 0.0
    strategy_used: Strategy


def aggregate(results: list[BatchItemResult], strategy: Strategy) -> BatchResult:
    """Build the batch summary.

    Sizes and ``total_savings`` (a percentage rounded to two decimals) are
    computed over successful items only.
    """
    successful = [r for r in results if r.success]
    original = sum(r.original_size for r in successful)
    compressed = sum(r.compressed_size for r in successful)
    savings = round((1 - compressed / original) * 100, 2) if original > 0 else 0.0
    return BatchResult(
        results=list(results),
        total_processed=len(results),
        total_successful=len(successful),
        total_errors=len(results) - len(successful),
        total_original_size=original,
        total_compressed_size=compressed,
        total_savings=savings,
        strategy_used=strategy,
    )
