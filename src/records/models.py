# src/records/models.py — v1
"""Record store models: Record."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Record(BaseModel):
    """A structured record in a named collection.

    ``created_at`` is assigned by the store at insert time, never by callers.
    """

    id: str
    collection: str
    created_at: datetime
    data: dict[str, Any] = Field(default_factory=dict)

    def field(self, name: str) -> Any:
        """Return a data field, or a top-level attribute for id/created_at."""
        if name in ("id", "created_at"):
            return getattr(self, name)
        return self.data.get(name)
