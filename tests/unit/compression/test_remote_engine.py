# tests/unit/compression/test_remote_engine.py — v2
"""Tests for compression/remote_engine.py — mocked optimization API."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from imageboost.compression.remote_engine import RemoteCompressionEngine
from imageboost.core.models import CompressionOptions, Strategy

API = "https://api.tinify.test"
SOURCE = b"\xff\xd8" + b"j" * 998


def _engine(handler, api_key: str = "secret") -> RemoteCompressionEngine:
    return RemoteCompressionEngine(
        api_key=api_key, api_url=API, transport=httpx.MockTransport(handler)
    )


def _service(output: bytes = b"RIFF" + b"w" * 396, output_type: str = "image/webp", calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if request.url.path == "/shrink":
            return httpx.Response(
                201,
                headers={"location": f"{API}/output/abc123", "compression-count": "7"},
                json={"input": {"size": len(request.content)}},
            )
        if request.url.path == "/output/abc123":
            return httpx.Response(200, content=output, headers={"content-type": output_type})
        return httpx.Response(404)

    return handler


class TestRemoteEngine:
    @pytest.mark.asyncio
    async def test_shrink_then_convert(self):
        calls: list[httpx.Request] = []
        engine = _engine(_service(calls=calls))
        result = await engine.encode(
            SOURCE, "image/jpeg", CompressionOptions(), source_url="https://x.test/a.jpg"
        )

        assert result.success is True
        assert result.strategy is Strategy.REMOTE
        assert result.original_size == 1000
        assert result.compressed_size == 400
        assert result.savings == pytest.approx(0.6)
        assert result.format == "webp"
        assert result.source_format == "jpeg"

        shrink, convert = calls
        expected_auth = "Basic " + base64.b64encode(b"api:secret").decode()
        assert shrink.headers["authorization"] == expected_auth
        assert shrink.content == SOURCE
        assert json.loads(convert.content) == {"convert": {"type": "image/jpeg"}}

    @pytest.mark.asyncio
    async def test_target_from_url_when_no_content_type(self):
        calls: list[httpx.Request] = []
        engine = _engine(_service(output_type="image/png", calls=calls))
        await engine.encode(SOURCE, None, CompressionOptions(), source_url="https://x.test/a.png?v=1")
        assert json.loads(calls[1].content) == {"convert": {"type": "image/png"}}

    @pytest.mark.asyncio
    async def test_unconvertible_target_becomes_webp(self):
        calls: list[httpx.Request] = []
        engine = _engine(_service(calls=calls))
        await engine.encode(SOURCE, "image/gif", CompressionOptions())
        assert json.loads(calls[1].content) == {"convert": {"type": "image/webp"}}

    @pytest.mark.asyncio
    async def test_larger_output_keeps_original(self):
        engine = _engine(_service(output=b"x" * 5000))
        result = await engine.encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is True
        assert result.buffer == SOURCE
        assert result.savings == 0
        assert result.format == "jpeg"

    @pytest.mark.asyncio
    async def test_kept_original_labelled_from_image_header(self, image_factory):
        source = image_factory("JPEG", (32, 32))
        engine = _engine(_service(output=b"x" * (len(source) + 100)))
        result = await engine.encode(
            source, "application/octet-stream", CompressionOptions(),
            source_url="https://x.test/download/123",
        )
        assert result.buffer == source
        assert result.format == "jpeg"
        assert result.source_format == "jpeg"

    @pytest.mark.asyncio
    async def test_kept_original_of_unknown_format(self):
        source = b"\x00" * 1000
        engine = _engine(_service(output=b"x" * 5000))
        result = await engine.encode(
            source, "application/octet-stream", CompressionOptions(),
            source_url="https://x.test/download/123",
        )
        assert result.buffer == source
        assert result.format == "octet-stream"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_credentials_rejected(self, status):
        engine = _engine(lambda request: httpx.Response(
            status, json={"error": "Unauthorized", "message": "Credentials are invalid."}
        ))
        result = await engine.encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "Credentials rejected" in result.error
        assert "Credentials are invalid." in result.error

    @pytest.mark.asyncio
    async def test_quota_exhausted(self):
        engine = _engine(lambda request: httpx.Response(429, text="Too many requests"))
        result = await engine.encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "quota exhausted" in result.error

    @pytest.mark.asyncio
    async def test_convert_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/shrink":
                return httpx.Response(201, headers={"location": f"{API}/output/x"})
            return httpx.Response(415, json={"error": "Unsupported", "message": "bad type"})

        result = await _engine(handler).encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "convert failed (415)" in result.error

    @pytest.mark.asyncio
    async def test_missing_location(self):
        engine = _engine(lambda request: httpx.Response(201))
        result = await engine.encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "no output location" in result.error

    @pytest.mark.asyncio
    async def test_unreachable_service(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        result = await _engine(handler).encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "unreachable" in result.error

    @pytest.mark.asyncio
    async def test_missing_key(self):
        engine = _engine(_service(), api_key="")
        result = await engine.encode(SOURCE, "image/jpeg", CompressionOptions())
        assert result.success is False
        assert "API key" in result.error
