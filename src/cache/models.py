# src/cache/models.py — v2
"""Cache domain models: CompressedArtifact, ArtifactMetadata, CacheLookupResult,
OriginalArchiveEntry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from imageboost.core.models import Strategy


class ArtifactMetadata(BaseModel):
    """Caller-supplied facts about a compressed buffer being stored."""

    source_url: str
    format: str
    original_byte_size: int
    strategy_used: Strategy


class CompressedArtifact(BaseModel):
    """The current compressed artifact for one canonical key."""

    id: str
    canonical_key: str
    source_url: str
    storage_path: str | None = None
    download_token: str
    compressed_url: str
    compressed_key: str
    byte_size: int
    format: str
    original_byte_size: int
    strategy_used: Strategy
    created_at: datetime
    external_image_id: str | None = None
    swapped_url: str | None = None
    swapped_key: str | None = None

    @property
    def savings_fraction(self) -> float:
        """1 - compressed/original, or 0 when the original size is unknown."""
        if self.original_byte_size <= 0:
            return 0.0
        return 1 - (self.byte_size / self.original_byte_size)

    @classmethod
    def from_record(cls, record_id: str, created_at: datetime, data: dict[str, Any]) -> CompressedArtifact:
        return cls(id=record_id, created_at=created_at, **data)


class CacheLookupResult(BaseModel):
    """Result of an artifact lookup. Never persisted."""

    artifact: CompressedArtifact | None = None
    matched_by: (
        Literal["external_id", "canonical_key", "swapped_url", "compressed_url"]
        | None
    ) = None
    verified: bool = False
    healed: bool = False

    @property
    def hit(self) -> bool:
        return self.artifact is not None and self.verified


class OriginalArchiveEntry(BaseModel):
    """Pristine source bytes preserved for revert. Never mutated."""

    id: str
    canonical_key: str
    source_url: str
    stored_path: str
    stored_url: str
    byte_size: int
    format: str
    content_type: str
    created_at: datetime
