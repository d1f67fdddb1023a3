# src/logging/context.py — v2
"""Contextual logging support — attach batch_id, item_url, strategy, step to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging — set per-batch and per-item.
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_strategy: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "strategy", default=None
)
_item_url: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_url", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    strategy: str | None = None
    item_url: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        strategy=_strategy.get(),
        item_url=_item_url.get(),
        step=_step.get(),
    )


def set_batch_context(batch_id: str, strategy: str) -> None:
    """Set batch-level context (called once per submitted batch)."""
    _batch_id.set(batch_id)
    _strategy.set(strategy)


def set_item_context(item_url: str, step: str | None = None) -> None:
    """Set item-level context (called per processed URL)."""
    _item_url.set(item_url)
    _step.set(step)


def set_step(step: str | None) -> None:
    """Update the current processing step of the active item."""
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _strategy.set(None)
    _item_url.set(None)
    _step.set(None)
