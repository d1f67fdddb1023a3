# tests/unit/origin/test_swap.py — v1
"""Tests for origin/swap.py — create before delete, failures reported."""

from __future__ import annotations

import pytest

from imageboost.origin.swap import replace_origin_image


class TestReplaceOriginImage:
    @pytest.mark.asyncio
    async def test_create_then_delete(self, origin_client):
        result = await replace_origin_image(origin_client, "42", "https://files.test/a.webp", "777")
        assert [call[0] for call in origin_client.calls] == ["create", "delete"]
        assert origin_client.calls[1] == ("delete", "42", "777")
        assert result.attempted is True
        assert result.succeeded is True
        assert result.new_image_id == "9001"
        assert result.new_image_src.startswith("https://cdn.shop.test/")
        assert result.old_image_id == "777"

    @pytest.mark.asyncio
    async def test_no_old_image(self, origin_client):
        result = await replace_origin_image(origin_client, "42", "https://files.test/a.webp")
        assert [call[0] for call in origin_client.calls] == ["create"]
        assert result.succeeded is True

    @pytest.mark.asyncio
    async def test_failed_create_never_deletes(self, origin_client):
        origin_client.fail_create = True
        result = await replace_origin_image(origin_client, "42", "https://files.test/a.webp", "777")
        assert [call[0] for call in origin_client.calls] == ["create"]
        assert result.succeeded is False
        assert "422" in result.error

    @pytest.mark.asyncio
    async def test_failed_delete_reported(self, origin_client):
        origin_client.fail_delete = True
        result = await replace_origin_image(origin_client, 42, "https://files.test/a.webp", 777)
        assert result.succeeded is False
        assert result.new_image_id == "9001"
        assert result.product_id == "42"
        assert "Delete image failed" in result.error

    @pytest.mark.asyncio
    async def test_unexpected_error_reported(self, origin_client):
        origin_client.create_error = RuntimeError("socket closed mid-response")
        result = await replace_origin_image(origin_client, "42", "https://files.test/a.webp", "777")
        assert result.succeeded is False
        assert result.error == "RuntimeError: socket closed mid-response"
        assert [call[0] for call in origin_client.calls] == ["create"]
