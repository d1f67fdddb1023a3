# tests/unit/revert/test_manager.py — v1
"""Tests for revert/manager.py — archive lookup and origin restore."""

from __future__ import annotations

import pytest
import pytest_asyncio

from imageboost.cache.artifact_store import ArtifactCacheStore
from imageboost.cache.models import ArtifactMetadata
from imageboost.cache.original_archive import OriginalArchive
from imageboost.core.canonical import canonical
from imageboost.core.errors import NotFoundError
from imageboost.core.models import Strategy
from imageboost.revert.manager import RevertManager

SOURCE = "https://cdn.shopify.com/s/files/1/products/shoe.jpg?v=5"


@pytest.fixture
def archive(persistence) -> OriginalArchive:
    return OriginalArchive(persistence)


@pytest.fixture
def cache(persistence) -> ArtifactCacheStore:
    return ArtifactCacheStore(persistence)


@pytest_asyncio.fixture
async def archived(archive):
    return await archive.archive(SOURCE, b"o" * 300, "jpeg", "image/jpeg")


class TestRevert:
    @pytest.mark.asyncio
    async def test_restores_by_source_url(self, archive, cache, archived):
        manager = RevertManager(archive, cache)
        result = await manager.revert("https://cdn.shopify.com/s/files/1/products/shoe.jpg")
        assert result.type == "reverted"
        assert result.restored_size == 300
        assert result.restored_url == archived.stored_url
        assert result.format == "jpeg"
        assert result.origin_swap is None

    @pytest.mark.asyncio
    async def test_restores_by_compressed_url(self, archive, cache, archived):
        artifact = await cache.put(canonical(SOURCE), b"c" * 100, ArtifactMetadata(
            source_url=SOURCE, format="webp", original_byte_size=300,
            strategy_used=Strategy.LOCAL,
        ))
        result = await RevertManager(archive, cache).revert(artifact.compressed_url)
        assert result.requested_url == artifact.compressed_url
        assert result.restored_url == archived.stored_url

    @pytest.mark.asyncio
    async def test_not_found(self, archive, cache):
        with pytest.raises(NotFoundError):
            await RevertManager(archive, cache).revert("https://x.test/never.jpg")

    @pytest.mark.asyncio
    async def test_create_before_delete(self, archive, cache, archived, origin_client):
        manager = RevertManager(archive, cache, origin_client)
        result = await manager.revert(SOURCE, product_id="42", image_id="9001")
        assert origin_client.calls == [
            ("create", "42", archived.stored_url),
            ("delete", "42", "9001"),
        ]
        assert result.origin_swap.succeeded is True

    @pytest.mark.asyncio
    async def test_origin_failure_reported(self, archive, cache, archived, origin_client):
        origin_client.fail_create = True
        result = await RevertManager(archive, cache, origin_client).revert(
            SOURCE, product_id="42", image_id="9001"
        )
        assert result.restored_size == 300
        assert result.origin_swap.succeeded is False
        assert [c[0] for c in origin_client.calls] == ["create"]

    @pytest.mark.asyncio
    async def test_unexpected_origin_error_reported(self, archive, cache, archived, origin_client):
        origin_client.create_error = RuntimeError("connection reset")
        result = await RevertManager(archive, cache, origin_client).revert(
            SOURCE, product_id="42", image_id="9001"
        )
        assert result.restored_url == archived.stored_url
        assert result.origin_swap.succeeded is False
        assert "RuntimeError" in result.origin_swap.error

    @pytest.mark.asyncio
    async def test_no_client_no_swap(self, archive, archived):
        result = await RevertManager(archive).revert(SOURCE, product_id="42")
        assert result.origin_swap is None
