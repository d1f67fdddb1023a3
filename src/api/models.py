# src/api/models.py — v2
"""API-level models: CompressRequest, RevertRequest, ErrorResponse."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from imageboost.core.models import Strategy

# Strategy names accepted from older clients.
_STRATEGY_ALIASES = {"sharp": "local", "tinify": "remote"}


class CompressRequest(BaseModel):
    """A batch of source URLs to compress, optionally tied to origin images.

    ``product_ids`` and ``image_ids`` are positional: entry i belongs to
    ``urls[i]``. Lists whose length differs from ``urls`` are ignored.
    """

    urls: list[str] = Field(default_factory=list)
    strategy: Strategy | None = None
    product_ids: list[str | None] | None = None
    image_ids: list[str | None] | None = None

    @field_validator("strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, v: Any) -> Any:  # noqa: N805
        if isinstance(v, str):
            v = v.strip().lower()
            return _STRATEGY_ALIASES.get(v, v) or None
        return v

    @field_validator("product_ids", "image_ids", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:  # noqa: N805
        if isinstance(v, list):
            return [None if i in (None, "") else str(i) for i in v]
        return v


class RevertRequest(BaseModel):
    """Restore the archived original behind ``url``."""

    url: str
    product_id: str | None = None
    image_id: str | None = None

    @field_validator("product_id", "image_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:  # noqa: N805
        if v in (None, ""):
            return None
        return str(v)


class ErrorResponse(BaseModel):
    """Whole-request failure returned instead of a result."""

    error: str
    status_code: int = 400
    details: dict[str, Any] | None = None
