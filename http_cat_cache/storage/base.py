"""Blob store interface for cached images."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class BlobStore(Protocol):
    """Abstract interface for the image cache.

    Entries are keyed by a validated 3-digit status code and hold the raw
    image bytes exactly as they were fetched or uploaded. Implementations
    must report a missing entry with ``EntryNotFoundError`` and any other
    failure with ``StorageError`` so callers never inspect OS error codes.
    """

    def read(self, status_code: str) -> bytes:
        """Read the cached image for a status code.

        Args:
            status_code: Validated 3-digit status code.

        Returns:
            bytes: Raw image content.

        Raises:
            EntryNotFoundError: If no entry exists for the status code.
            StorageError: If the entry cannot be read.
        """
        ...

    def write(self, status_code: str, content: bytes) -> None:
        """Create or fully replace the cached image for a status code.

        Args:
            status_code: Validated 3-digit status code.
            content: Raw image bytes to store.

        Raises:
            StorageError: If the image cannot be saved.
        """
        ...

    def delete(self, status_code: str) -> None:
        """Remove the cached image for a status code.

        Raises:
            EntryNotFoundError: If no entry exists for the status code.
            StorageError: If the entry cannot be removed.
        """
        ...

    def exists(self, status_code: str) -> bool:
        """Check whether an entry exists for a status code."""
        ...


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class EntryNotFoundError(LookupError):
    """Raised when the cache holds no entry for a status code."""

    def __init__(self, status_code: str):
        self.status_code = status_code
        super().__init__(f"No cached entry for status code {status_code}")
