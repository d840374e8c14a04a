"""FastAPI dependency injection configuration."""

from fastapi import Request

from http_cat_cache.origin_client import OriginClient
from http_cat_cache.storage.base import BlobStore


def get_blob_store(request: Request) -> BlobStore:
    """Get the blob store attached to the application.

    The store is created once by ``create_app`` so that the cache root is
    checked at startup rather than on the first request.
    """
    return request.app.state.blob_store


def get_origin_client(request: Request) -> OriginClient:
    """Get the origin client attached to the application."""
    return request.app.state.origin_client
