# tests/conftest.py — v3
"""Shared test fixtures for all unit and integration tests.

Provides local persistence in temp directories, Pillow-generated images and
in-memory stand-ins for the fetcher, compression engine and origin client.
No network access: HTTP collaborators are stubbed or mocked.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from imageboost.compression.base_engine import BaseCompressionEngine
from imageboost.compression.models import EncodeResult
from imageboost.config.settings import Settings
from imageboost.core.errors import FetchError, OriginSwapError
from imageboost.core.models import CompressionOptions, Strategy
from imageboost.fetch.http_fetcher import FetchedImage
from imageboost.origin.base_origin_client import BaseOriginClient
from imageboost.origin.models import OriginImage
from imageboost.records.json_record_store import JsonRecordStore
from imageboost.storage.local_blob_store import LocalBlobStore
from imageboost.storage.persistence import PersistenceClient, close_persistence


# === Image helpers ===


def make_image(
    fmt: str = "PNG",
    size: tuple[int, int] = (64, 64),
    mode: str = "RGB",
    noisy: bool = False,
) -> bytes:
    """Encode a small synthetic image.

    ``noisy=True`` fills the bands with gaussian noise, which compresses poorly, so
    lossless sources are large enough for lossy re-encoding to win.
    """
    if noisy:
        bands = [Image.effect_noise(size, 80) for _ in range(3)]
        if mode == "RGBA":
            bands.append(Image.new("L", size, 255))
        img = Image.merge(mode, bands)
    else:
        img = Image.new(mode, size, (200, 30, 30, 128)[: len(mode)])
    out = io.BytesIO()
    if fmt == "JPEG":
        img.save(out, format=fmt, quality=95)
    else:
        img.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG", (64, 64), noisy=True)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG", (64, 64))


# === Settings and persistence ===


@pytest.fixture(autouse=True)
def _reset_shared_persistence():
    """Each test starts without a process-wide persistence client."""
    yield
    close_persistence()


@pytest.fixture
def tmp_blob_dir(tmp_path: Path) -> Path:
    blobs = tmp_path / "blobs"
    blobs.mkdir()
    return blobs


@pytest.fixture
def tmp_record_dir(tmp_path: Path) -> Path:
    records = tmp_path / "records"
    records.mkdir()
    return records


@pytest.fixture
def settings(tmp_blob_dir: Path, tmp_record_dir: Path) -> Settings:
    """Settings isolated from any .env, persisting under tmp_path."""
    return Settings(
        _env_file=None,
        default_strategy="local",
        tinify_api_key="",
        blob_root=tmp_blob_dir,
        record_root=tmp_record_dir,
    )


@pytest.fixture
def persistence(tmp_blob_dir: Path, tmp_record_dir: Path) -> PersistenceClient:
    return PersistenceClient(
        blobs=LocalBlobStore(tmp_blob_dir, public_base_url="https://files.test/v0/b/bucket"),
        records=JsonRecordStore(tmp_record_dir),
    )


# === Collaborator stand-ins ===


class StubFetcher:
    """Serves bytes from a dict; unknown URLs fail like a 404."""

    def __init__(
        self,
        images: dict[str, bytes] | None = None,
        content_type: str = "image/jpeg",
    ) -> None:
        self.images = dict(images or {})
        self.content_type = content_type
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchedImage:
        self.calls.append(url)
        if url not in self.images:
            raise FetchError(404, "Failed to fetch image: 404 Not Found")
        return FetchedImage(data=self.images[url], content_type=self.content_type, status=200)


class HalvingEngine(BaseCompressionEngine):
    """Deterministic engine: output is the first half of the input."""

    def __init__(self, strategy: Strategy = Strategy.LOCAL) -> None:
        self._strategy = strategy
        self.calls = 0

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    async def _encode(
        self,
        data: bytes,
        content_type_hint: str | None,
        options: CompressionOptions,
        source_url: str | None,
    ) -> EncodeResult:
        self.calls += 1
        return self._finalize(data, data[: len(data) // 2], "webp", "jpeg")


class RecordingOriginClient(BaseOriginClient):
    """Records create/delete calls in order."""

    def __init__(self, fail_create: bool = False, fail_delete: bool = False) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.fail_create = fail_create
        self.fail_delete = fail_delete
        self.create_error: Exception | None = None

    async def create_image(self, product_id: str, source_url: str) -> OriginImage:
        self.calls.append(("create", product_id, source_url))
        if self.create_error is not None:
            raise self.create_error
        if self.fail_create:
            raise OriginSwapError("Create image failed: 422 - image invalid")
        n = sum(1 for call in self.calls if call[0] == "create")
        return OriginImage(id=f"9{n:03d}", src=f"https://cdn.shop.test/products/new-{n}.webp?v=1")

    async def delete_image(self, product_id: str, image_id: str) -> None:
        self.calls.append(("delete", product_id, image_id))
        if self.fail_delete:
            raise OriginSwapError("Delete image failed: 500 - oops")


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def halving_engine() -> HalvingEngine:
    return HalvingEngine()


@pytest.fixture
def origin_client() -> RecordingOriginClient:
    return RecordingOriginClient()


@pytest.fixture
def image_factory():
    """The make_image helper, for tests that need custom images."""
    return make_image
