# src/origin/shopify_client.py — v2
"""Shopify REST Admin API client for product images.

Every call is authenticated with the tenant's access token; the client
cannot be constructed without one.
"""

from __future__ import annotations

import logging

import httpx

from imageboost.core.errors import OriginSwapError
from imageboost.origin.base_origin_client import BaseOriginClient
from imageboost.origin.models import OriginImage, OriginSession

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2025-01"


class ShopifyClient(BaseOriginClient):
    """Product image operations for one shop."""

    def __init__(
        self,
        session: OriginSession,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not session.shop or not session.access_token:
            raise ValueError("Shopify client requires a shop and an access token")
        self._base_url = f"https://{session.shop}/admin/api/{api_version}"
        self._headers = {
            "X-Shopify-Access-Token": session.access_token,
            "Accept": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    async def create_image(self, product_id: str, source_url: str) -> OriginImage:
        """POST /products/{id}/images.json with the image src."""
        url = f"{self._base_url}/products/{product_id}/images.json"
        response = await self._request(
            "POST", url, json={"image": {"src": source_url}}
        )
        if not response.is_success:
            raise OriginSwapError(
                f"Create image failed: {response.status_code} - {response.text}"
            )
        image = _image_from(response)
        if image.get("id") is None:
            raise OriginSwapError("Create image response carried no image id")
        logger.info("Created image %s on product %s", image["id"], product_id)
        return OriginImage(id=str(image["id"]), src=image.get("src"))

    async def delete_image(self, product_id: str, image_id: str) -> None:
        """DELETE /products/{id}/images/{image_id}.json (404 counts as deleted)."""
        url = f"{self._base_url}/products/{product_id}/images/{image_id}.json"
        response = await self._request("DELETE", url)
        if response.status_code == 404:
            logger.info("Image %s already absent from product %s", image_id, product_id)
            return
        if not response.is_success:
            raise OriginSwapError(
                f"Delete image failed: {response.status_code} - {response.text}"
            )
        logger.info("Deleted image %s from product %s", image_id, product_id)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise OriginSwapError(f"Origin platform unreachable: {e}") from e


def _image_from(response: httpx.Response) -> dict:
    """The ``image`` object of a create response, or {} if absent."""
    try:
        body = response.json()
    except ValueError as e:
        raise OriginSwapError(f"Create image response was not JSON: {e}") from e
    if not isinstance(body, dict):
        raise OriginSwapError("Create image response was not a JSON object")
    image = body.get("image") or {}
    if not isinstance(image, dict):
        raise OriginSwapError("Create image response carried a malformed image")
    return image
