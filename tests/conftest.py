"""Shared fixtures for the cache proxy tests."""
import io
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from config import Settings
from http_cat_cache.main import create_app
from http_cat_cache.origin_client import OriginClient, OriginFetchError
from http_cat_cache.storage import LocalBlobStore


class StubOriginClient(OriginClient):
    """Origin client that returns canned bytes and records every call."""

    def __init__(self, content: Optional[bytes] = None, error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, status_code: str) -> bytes:
        self.calls.append(status_code)
        if self.error is not None:
            raise self.error
        if self.content is None:
            raise OriginFetchError(f"Origin returned 404 for {status_code}", status_code=404)
        return self.content


def create_test_jpeg(width: int = 10, height: int = 10, seed: int = 0) -> bytes:
    """Create a small JPEG image whose colour depends on seed."""
    color = ((seed * 50) % 256, (seed * 100) % 256, (seed * 150) % 256)
    img = Image.new("RGB", (width, height), color=color)

    img_bytes = io.BytesIO()
    img.save(img_bytes, format="JPEG")
    return img_bytes.getvalue()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing the cache at a temporary directory."""
    return Settings(
        host="127.0.0.1",
        port=8080,
        cache_dir=tmp_path / "cache",
        origin_url="http://origin.test",
        log_level="DEBUG",
    )


@pytest.fixture
def blob_store(settings):
    return LocalBlobStore(settings)


@pytest.fixture
def origin():
    """Origin stub that always misses; tests set ``content`` to make it hit."""
    return StubOriginClient()


@pytest.fixture
def app(settings, blob_store, origin):
    return create_app(settings, blob_store=blob_store, origin_client=origin)


@pytest.fixture
def client(app):
    return TestClient(app)
