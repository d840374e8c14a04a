"""Storage module for cached images."""

from .base import BlobStore, EntryNotFoundError, StorageError
from .local import LocalBlobStore

__all__ = ["BlobStore", "EntryNotFoundError", "LocalBlobStore", "StorageError"]
