# tests/unit/origin/test_shopify_client.py — v1
"""Tests for origin/shopify_client.py — mocked Admin REST API."""

from __future__ import annotations

import json

import httpx
import pytest

from imageboost.core.errors import OriginSwapError
from imageboost.origin.models import OriginSession
from imageboost.origin.shopify_client import ShopifyClient

SESSION = OriginSession(shop="demo.myshopify.com", access_token="shpat_123")


def _client(handler) -> ShopifyClient:
    return ShopifyClient(SESSION, transport=httpx.MockTransport(handler))


class TestShopifyClient:
    def test_requires_token(self):
        with pytest.raises(ValueError, match="access token"):
            ShopifyClient(OriginSession(shop="demo.myshopify.com", access_token=""))

    @pytest.mark.asyncio
    async def test_create_image(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"image": {"id": 123456, "src": "https://cdn.shopify.com/new.webp"}}
            )

        image = await _client(handler).create_image("42", "https://files.test/o/a.webp?token=t")

        assert image.id == "123456"
        assert image.src == "https://cdn.shopify.com/new.webp"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://demo.myshopify.com/admin/api/2025-01/products/42/images.json"
        )
        assert request.headers["x-shopify-access-token"] == "shpat_123"
        assert json.loads(request.content) == {
            "image": {"src": "https://files.test/o/a.webp?token=t"}
        }

    @pytest.mark.asyncio
    async def test_create_rejected(self):
        client = _client(lambda request: httpx.Response(422, json={"errors": {"image": ["bad"]}}))
        with pytest.raises(OriginSwapError, match="Create image failed: 422"):
            await client.create_image("42", "https://files.test/a.webp")

    @pytest.mark.asyncio
    async def test_create_without_id(self):
        client = _client(lambda request: httpx.Response(200, json={"image": {}}))
        with pytest.raises(OriginSwapError, match="no image id"):
            await client.create_image("42", "https://files.test/a.webp")

    @pytest.mark.asyncio
    async def test_delete_image(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await _client(handler).delete_image("42", "777")
        assert seen[0].method == "DELETE"
        assert seen[0].url.path == "/admin/api/2025-01/products/42/images/777.json"

    @pytest.mark.asyncio
    async def test_delete_already_gone(self):
        await _client(lambda request: httpx.Response(404)).delete_image("42", "777")

    @pytest.mark.asyncio
    async def test_delete_failure(self):
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(OriginSwapError, match="Delete image failed: 500"):
            await client.delete_image("42", "777")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure", request=request)

        with pytest.raises(OriginSwapError, match="unreachable"):
            await _client(handler).create_image("42", "https://files.test/a.webp")

    @pytest.mark.asyncio
    async def test_create_non_json_body(self):
        client = _client(lambda request: httpx.Response(200, text="<html>ok</html>"))
        with pytest.raises(OriginSwapError, match="not JSON"):
            await client.create_image("42", "https://files.test/a.webp")

    @pytest.mark.asyncio
    async def test_create_list_body(self):
        client = _client(lambda request: httpx.Response(200, json=[{"id": 1}]))
        with pytest.raises(OriginSwapError, match="not a JSON object"):
            await client.create_image("42", "https://files.test/a.webp")

    def test_api_version(self):
        client = ShopifyClient(SESSION, api_version="2024-10")
        assert client._base_url == "https://demo.myshopify.com/admin/api/2024-10"
