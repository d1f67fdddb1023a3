# src/fetch/http_fetcher.py — v1
"""HTTP image fetching.

One GET per call, no retries: the caller decides whether a failure is fatal
for its batch item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from imageboost.core.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; imageboost/0.4)"


@dataclass(frozen=True)
class FetchedImage:
    """Raw source bytes plus the response Content-Type (parameters stripped)."""

    data: bytes
    content_type: str | None
    status: int

    @property
    def size(self) -> int:
        return len(self.data)


def image_headers(url: str, user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    """Request headers for image fetching, with a Referer from the URL origin."""
    headers = {
        "User-Agent": user_agent,
        "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    parsed = urlsplit(url)
    if parsed.scheme and parsed.netloc:
        headers["Referer"] = f"{parsed.scheme}://{parsed.netloc}"
    return headers


class HttpFetcher:
    """Fetch source images over HTTP(S) with httpx."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    async def fetch(self, url: str) -> FetchedImage:
        """GET the URL and return its body.

        Raises:
            FetchError: On a non-2xx response (with status) or transport failure.
        """
        logger.debug("Fetching image from %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=image_headers(url, self._user_agent))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(None, f"Failed to fetch image: {e}") from e

        if not response.is_success:
            raise FetchError(
                response.status_code,
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}",
            )

        content_type = response.headers.get("content-type")
        if content_type:
            content_type = content_type.split(";", 1)[0].strip().lower()

        logger.debug("Fetched %d bytes (%s) from %s", len(response.content), content_type, url)
        return FetchedImage(
            data=response.content,
            content_type=content_type,
            status=response.status_code,
        )
