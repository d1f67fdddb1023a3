# src/core/canonical.py — v1
"""URL canonicalization — the stable cache key for a source image.

Two URLs that differ only in their query string (CDN version stamps, resize
hints, cache busters) address the same image and share one cache key.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit


def canonical(url: str) -> str:
    """Return ``url`` with its query component and fragment stripped.

    Pure and total: input that does not parse as a URL is cut at the first
    ``?`` or ``#`` instead.
    """
    text = str(url)
    try:
        parts = urlsplit(text)
    except ValueError:
        return text.split("#", 1)[0].split("?", 1)[0]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
