# src/compression/remote_engine.py — v2
"""Remote compression engine (strategy "remote").

Talks to a Tinify-compatible optimization API over httpx:
  1. POST /shrink with the source bytes (basic auth ``api:<key>``)
  2. POST the returned output location with a convert request
  3. Read the optimized bytes from that response

Credential, quota and conversion failures are reported as EncodeError
messages on the result, never downgraded to a silent pass-through.
"""

from __future__ import annotations

import io
import logging

import httpx
from PIL import Image, UnidentifiedImageError

from imageboost.compression.base_engine import BaseCompressionEngine
from imageboost.compression.models import EncodeResult
from imageboost.core.errors import EncodeError
from imageboost.core.formats import (
    content_type_for,
    format_from_content_type,
    format_from_url,
    infer_format,
    normalize_format,
)
from imageboost.core.models import CompressionOptions, Strategy

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.tinify.com"
CONVERTIBLE_FORMATS = frozenset({"jpeg", "png", "webp", "avif"})
_FALLBACK_TARGET = "webp"


class RemoteCompressionEngine(BaseCompressionEngine):
    """Delegate optimization to an external service."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def strategy(self) -> Strategy:
        return Strategy.REMOTE

    async def _encode(
        self,
        data: bytes,
        content_type_hint: str | None,
        options: CompressionOptions,
        source_url: str | None,
    ) -> EncodeResult:
        if not self._api_key:
            raise EncodeError("Optimization service API key is not set")

        target = infer_format(content_type_hint, source_url, default=_FALLBACK_TARGET)
        if target not in CONVERTIBLE_FORMATS:
            logger.debug("Service cannot produce %s, converting to %s", target, _FALLBACK_TARGET)
            target = _FALLBACK_TARGET

        try:
            async with httpx.AsyncClient(
                auth=("api", self._api_key),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                shrink = await client.post(f"{self._api_url}/shrink", content=data)
                _raise_for_service_error(shrink, "shrink")

                count = shrink.headers.get("compression-count")
                if count is not None:
                    logger.info("Optimization service compression count: %s", count)

                location = shrink.headers.get("location")
                if not location:
                    raise EncodeError("Optimization service returned no output location")

                converted = await client.post(
                    location, json={"convert": {"type": content_type_for(target)}}
                )
                _raise_for_service_error(converted, "convert")
        except httpx.HTTPError as e:
            raise EncodeError(f"Optimization service unreachable: {e}") from e

        output_format = (
            format_from_content_type(converted.headers.get("content-type")) or target
        )
        source_format = (
            format_from_content_type(content_type_hint)
            or format_from_url(source_url)
            or _detect_format(data)
        )
        return self._finalize(data, converted.content, output_format, source_format)


def _detect_format(data: bytes) -> str | None:
    """Format read from the image header, or None if Pillow cannot tell."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return normalize_format(img.format)
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def _raise_for_service_error(response: httpx.Response, step: str) -> None:
    """Translate a non-2xx service response into EncodeError."""
    if response.is_success:
        return

    detail = response.text
    try:
        body = response.json()
        detail = f"{body.get('error', '')}: {body.get('message', '')}".strip(": ")
    except ValueError:
        pass

    status = response.status_code
    if status in (401, 403):
        raise EncodeError(f"Credentials rejected by optimization service ({status}): {detail}")
    if status == 429:
        raise EncodeError(f"Optimization service quota exhausted ({status}): {detail}")
    raise EncodeError(f"Optimization service {step} failed ({status}): {detail}")
