# tests/unit/fetch/test_http_fetcher.py — v1
"""Tests for fetch/http_fetcher.py — httpx.MockTransport, no network."""

from __future__ import annotations

import httpx
import pytest

from imageboost.core.errors import FetchError
from imageboost.fetch.http_fetcher import HttpFetcher, image_headers


def _fetcher(handler) -> HttpFetcher:
    return HttpFetcher(transport=httpx.MockTransport(handler))


class TestImageHeaders:
    def test_referer_from_origin(self):
        headers = image_headers("https://cdn.example.com/a/b.jpg?v=1")
        assert headers["Referer"] == "https://cdn.example.com"
        assert headers["Accept"].startswith("image/")

    def test_no_referer_for_relative(self):
        assert "Referer" not in image_headers("b.jpg")


class TestHttpFetcher:
    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(
                200, content=b"\xff\xd8jpeg", headers={"content-type": "Image/JPEG; charset=binary"},
            )

        image = await _fetcher(handler).fetch("https://cdn.example.com/a.jpg")
        assert image.data == b"\xff\xd8jpeg"
        assert image.size == 6
        assert image.content_type == "image/jpeg"
        assert image.status == 200
        assert "imageboost" in seen["ua"]

    @pytest.mark.asyncio
    async def test_follows_redirects(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old.jpg":
                return httpx.Response(301, headers={"location": "https://cdn.example.com/new.jpg"})
            return httpx.Response(200, content=b"new")

        image = await _fetcher(handler).fetch("https://cdn.example.com/old.jpg")
        assert image.data == b"new"
        assert image.content_type is None

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self):
        fetcher = _fetcher(lambda request: httpx.Response(404))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch("https://cdn.example.com/missing.jpg")
        assert exc_info.value.status == 404
        assert "404 Not Found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_has_no_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError) as exc_info:
            await _fetcher(handler).fetch("https://unreachable.test/a.jpg")
        assert exc_info.value.status is None

