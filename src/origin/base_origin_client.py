# src/origin/base_origin_client.py — v1
"""Abstract origin platform client."""

from __future__ import annotations

from abc import ABC, abstractmethod

from imageboost.origin.models import OriginImage


class BaseOriginClient(ABC):
    """Create and delete product images at the commerce platform."""

    @abstractmethod
    async def create_image(self, product_id: str, source_url: str) -> OriginImage:
        """Attach a new image, fetched by the platform from ``source_url``.

        Raises:
            OriginSwapError: If the platform rejects the request.
        """

    @abstractmethod
    async def delete_image(self, product_id: str, image_id: str) -> None:
        """Remove an image from a product.

        Raises:
            OriginSwapError: If the platform rejects the request.
        """
