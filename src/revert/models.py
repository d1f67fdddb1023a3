# src/revert/models.py — v1
"""Revert models: RestoredResult."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from imageboost.core.models import OriginSwapResult


class RestoredResult(BaseModel):
    """The archived original that now stands in for a compressed image."""

    type: Literal["reverted"] = "reverted"
    requested_url: str
    restored_url: str
    restored_size: int
    format: str
    origin_swap: OriginSwapResult | None = None
