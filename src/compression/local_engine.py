# src/compression/local_engine.py — v1
"""Local compression engine (strategy "local") using Pillow.

Process:
1. Decode to get dimensions and native format
2. Resize proportionally into max_width x max_height (never upscale)
3. Re-encode in the native format when supported, otherwise the default format
4. Fall back to lossless PNG if that encoding fails
5. Keep the original bytes if the result is not smaller
"""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from imageboost.compression.base_engine import BaseCompressionEngine
from imageboost.compression.models import EncodeResult
from imageboost.core.errors import EncodeError
from imageboost.core.formats import format_from_content_type, normalize_format
from imageboost.core.models import CompressionOptions, Strategy

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({"jpeg", "png", "webp"})
FALLBACK_FORMAT = "png"


class LocalCompressionEngine(BaseCompressionEngine):
    """Resize and re-encode images in-process."""

    def __init__(
        self,
        default_format: str = "webp",
        quality_threshold_bytes: int = 0,
        small_image_quality: int | None = None,
    ) -> None:
        """Configure the engine.

        Args:
            default_format: Target for natives outside SUPPORTED_FORMATS.
            quality_threshold_bytes: Sources at or above this size use the
                requested quality; smaller ones use ``small_image_quality``.
            small_image_quality: Quality for sources below the threshold.
                None keeps the requested quality for every size.
        """
        default = normalize_format(default_format)
        if default not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported default format: {default_format!r}")
        self._default_format = default
        self._quality_threshold = quality_threshold_bytes
        self._small_image_quality = small_image_quality

    @property
    def strategy(self) -> Strategy:
        return Strategy.LOCAL

    async def _encode(
        self,
        data: bytes,
        content_type_hint: str | None,
        options: CompressionOptions,
        source_url: str | None,
    ) -> EncodeResult:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise EncodeError(f"Could not decode image: {e}") from e

        native = normalize_format(img.format) or format_from_content_type(content_type_hint)
        width, height = img.size
        logger.debug("Decoded %s image %dx%d (%s)", native, width, height, img.mode)

        img = _fit_within(img, options.max_width, options.max_height)

        target = native if native in SUPPORTED_FORMATS else self._default_format
        quality = self.select_quality(len(data), options)

        warning = None
        try:
            encoded = _save(img, target, quality)
        except (OSError, ValueError, KeyError) as e:
            logger.warning("%s encoding failed, trying PNG fallback: %s", target, e)
            warning = f"Used PNG fallback: {e}"
            target = FALLBACK_FORMAT
            try:
                encoded = _save(img, FALLBACK_FORMAT, quality)
            except (OSError, ValueError, KeyError) as fallback_error:
                raise EncodeError(f"PNG fallback failed: {fallback_error}") from fallback_error

        return self._finalize(data, encoded, target, native, warning)

    def select_quality(self, original_size: int, options: CompressionOptions) -> int:
        """Size-adaptive quality policy."""
        if (
            self._small_image_quality is not None
            and original_size < self._quality_threshold
        ):
            return self._small_image_quality
        return options.quality


def _fit_within(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Proportionally shrink to fit the box; never enlarge."""
    width, height = img.size
    ratio = min(max_width / width, max_height / height, 1.0)
    if ratio >= 1.0:
        return img
    new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
    logger.debug("Resizing %dx%d to %dx%d", width, height, *new_size)
    return img.resize(new_size, Image.Resampling.LANCZOS)


def _save(img: Image.Image, fmt: str, quality: int) -> bytes:
    """Encode an image into one of the supported formats."""
    output = io.BytesIO()
    if fmt == "jpeg":
        _to_rgb(img).save(
            output, format="JPEG", quality=quality, optimize=True, progressive=True
        )
    elif fmt == "webp":
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if _has_alpha(img) else "RGB")
        img.save(output, format="WEBP", quality=quality, method=6)
    elif fmt == "png":
        # Lossless; quality does not apply
        img.save(output, format="PNG", optimize=True, compress_level=9)
    else:
        raise ValueError(f"Unsupported output format: {fmt}")
    return output.getvalue()


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten transparency onto white for formats without alpha."""
    if img.mode in ("RGB", "L"):
        return img
    if _has_alpha(img):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return img.convert("RGB")
