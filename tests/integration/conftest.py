# tests/integration/conftest.py — v9
"""Shared fixtures for end-to-end facade flows.

Everything runs against local persistence backends; the image host and the
Shopify Admin API are served by httpx.MockTransport handlers.
"""

from __future__ import annotations

import itertools
import json

import httpx
import pytest

from imageboost.fetch.http_fetcher import HttpFetcher
from imageboost.origin.models import OriginSession
from imageboost.origin.shopify_client import ShopifyClient


class ImageHost:
    """A fake CDN: serves registered paths, 404 for everything else."""

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, str]] = {}
        self.requests: list[str] = []

    def add(self, path: str, data: bytes, content_type: str) -> str:
        self.files[path] = (data, content_type)
        return f"https://cdn.shop.test{path}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        if request.url.path not in self.files:
            return httpx.Response(404)
        data, content_type = self.files[request.url.path]
        return httpx.Response(200, content=data, headers={"content-type": content_type})


class ShopifyRecorder:
    """Records Admin API image calls and answers like Shopify does."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self._ids = itertools.count(5001)
        self.html_on_create = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        if request.method == "POST":
            if self.html_on_create:
                return httpx.Response(200, text="<html>ok</html>")
            src = json.loads(request.content)["image"]["src"]
            image_id = next(self._ids)
            return httpx.Response(
                200,
                json={"image": {"id": image_id, "src": f"https://cdn.shop.test/s/files/swapped-{image_id}.webp?v=1"}},
            )
        return httpx.Response(200, json={})


@pytest.fixture
def image_host() -> ImageHost:
    return ImageHost()


@pytest.fixture
def shopify() -> ShopifyRecorder:
    return ShopifyRecorder()


@pytest.fixture
def fetcher(image_host: ImageHost) -> HttpFetcher:
    return HttpFetcher(transport=httpx.MockTransport(image_host.handler))


@pytest.fixture
def shopify_client(shopify: ShopifyRecorder) -> ShopifyClient:
    return ShopifyClient(
        OriginSession(shop="demo.myshopify.com", access_token="shpat_test"),
        transport=httpx.MockTransport(shopify.handler),
    )
