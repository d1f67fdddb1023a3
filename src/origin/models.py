# src/origin/models.py — v1
"""Origin platform models: OriginImage, OriginSession."""

from __future__ import annotations

from pydantic import BaseModel


class OriginImage(BaseModel):
    """An image attached to a product at the origin platform."""

    id: str
    src: str | None = None


class OriginSession(BaseModel):
    """Per-tenant credentials supplied by the caller's platform session."""

    shop: str
    access_token: str
