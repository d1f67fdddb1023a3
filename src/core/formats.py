# src/core/formats.py — v2
"""Image format names, MIME types and file extensions.

Format names are lowercase Pillow-style names (``jpeg``, ``png``, ``webp``);
``jpg`` is accepted on input and normalised to ``jpeg``.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlsplit

_ALIASES: dict[str, str] = {
    "jpg": "jpeg",
    "jpe": "jpeg",
    "tif": "tiff",
    "svg+xml": "svg",
    "x-icon": "ico",
    "vnd.microsoft.icon": "ico",
}

# Label for bytes whose image format could not be determined
UNKNOWN_FORMAT = "octet-stream"

# Formats whose extension differs from the format name
_EXTENSIONS: dict[str, str] = {
    "jpeg": "jpg",
    "tiff": "tif",
    "octet-stream": "bin",
}


def normalize_format(name: str | None) -> str | None:
    """Lowercase a format name and resolve aliases (``JPG`` -> ``jpeg``)."""
    if not name:
        return None
    key = name.strip().lower().lstrip(".")
    return _ALIASES.get(key, key) or None


def content_type_for(fmt: str) -> str:
    """MIME type for a format name."""
    normalized = normalize_format(fmt) or "octet-stream"
    if normalized == "octet-stream":
        return "application/octet-stream"
    if normalized == "svg":
        return "image/svg+xml"
    return f"image/{normalized}"


def extension_for(fmt: str) -> str:
    """File extension (without dot) used when storing a blob of this format."""
    normalized = normalize_format(fmt) or "bin"
    return _EXTENSIONS.get(normalized, normalized)


def format_from_content_type(content_type: str | None) -> str | None:
    """Format name from a Content-Type header (parameters ignored)."""
    if not content_type:
        return None
    base = content_type.split(";", 1)[0].strip().lower()
    if not base.startswith("image/"):
        return None
    return normalize_format(base[len("image/"):])


def format_from_url(url: str | None) -> str | None:
    """Format name from the file extension of a URL path."""
    if not url:
        return None
    try:
        suffix = PurePosixPath(urlsplit(url).path).suffix
    except ValueError:
        return None
    return normalize_format(suffix)


def infer_format(
    content_type: str | None, url: str | None = None, default: str = "webp"
) -> str:
    """Content-Type first, then URL extension, then ``default``."""
    return (
        format_from_content_type(content_type)
        or format_from_url(url)
        or default
    )


_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human-readable byte count, e.g. ``1536 -> "1.5 KB"``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"
