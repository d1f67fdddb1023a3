# src/__init__.py — v1
"""imageboost — image compression, artifact cache and revert engine."""

from imageboost.version import __version__

__all__ = ["__version__"]
