# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Strategy(str, Enum):
    """The two interchangeable compression strategies."""

    LOCAL = "local"
    REMOTE = "remote"


class CompressionOptions(BaseModel):
    """Size and quality constraints handed to an engine for one image."""

    quality: int = Field(default=40, ge=1, le=100)
    max_width: int = Field(default=1200, gt=0)
    max_height: int = Field(default=1200, gt=0)


class OriginSwapResult(BaseModel):
    """Outcome of a best-effort image replacement at the origin platform."""

    attempted: bool = True
    succeeded: bool = False
    product_id: str | None = None
    new_image_id: str | None = None
    new_image_src: str | None = None
    old_image_id: str | None = None
    error: str | None = None
