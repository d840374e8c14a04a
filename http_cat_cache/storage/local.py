"""Local filesystem implementation of BlobStore."""
import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from config import Settings
from http_cat_cache.validation import is_status_code

from .base import BlobStore, EntryNotFoundError, StorageError

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".jpeg"


def _default_file_mode() -> int:
    """Mode a plain open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class LocalBlobStore(BlobStore):
    """Local filesystem blob store.

    Stores each cached image as ``<cache_dir>/<status_code>.jpeg``. Writes go
    to a temporary file in the same directory and are renamed into place, so
    readers only ever see a complete file.
    """

    def __init__(self, settings: Settings):
        """Initialize the store and make sure its root directory is usable.

        Args:
            settings: Application settings providing ``cache_dir``.

        Raises:
            StorageError: If the cache directory cannot be created or written.
        """
        self.storage_root = Path(settings.cache_dir)
        self.file_mode = _default_file_mode()
        self.ensure_root()
        logger.info(f"Initialized LocalBlobStore with root: {self.storage_root}")

    def ensure_root(self) -> None:
        """Create the cache directory if needed and check it is writable."""
        if self.storage_root.is_dir():
            logger.info(f"Using existing cache directory: {self.storage_root}")
        else:
            try:
                self.storage_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create cache directory: {e}")
                raise StorageError(f"Failed to create cache directory: {e}") from e
            logger.info(f"Created cache directory: {self.storage_root}")

        if not os.access(self.storage_root, os.W_OK | os.X_OK):
            logger.error(f"Cache directory is not writable: {self.storage_root}")
            raise StorageError(f"Cache directory is not writable: {self.storage_root}")

    def path_for(self, status_code: str) -> Path:
        """Return the file path backing a status code entry."""
        if not is_status_code(status_code):
            raise ValueError(f"Invalid status code: {status_code!r}")
        return self.storage_root / f"{status_code}{IMAGE_EXTENSION}"

    def read(self, status_code: str) -> bytes:
        file_path = self.path_for(status_code)
        try:
            content = file_path.read_bytes()
        except FileNotFoundError as e:
            raise EntryNotFoundError(status_code) from e
        except OSError as e:
            logger.error(f"Failed to read cache entry {file_path}: {e}")
            raise StorageError(f"Failed to read cache entry: {e}") from e
        logger.debug(f"Read {len(content)} bytes from: {file_path}")
        return content

    def write(self, status_code: str, content: bytes) -> None:
        file_path = self.path_for(status_code)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{status_code}.",
                suffix=".tmp",
                dir=self.storage_root,
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            # mkstemp creates 0600 files
            os.chmod(tmp_name, self.file_mode)
            os.replace(tmp_name, file_path)
        except OSError as e:
            if tmp_name is not None:
                with suppress(OSError):
                    os.unlink(tmp_name)
            logger.error(f"Failed to write cache entry {file_path}: {e}")
            raise StorageError(f"Failed to write cache entry: {e}") from e
        logger.debug(f"Wrote {len(content)} bytes to: {file_path}")

    def delete(self, status_code: str) -> None:
        file_path = self.path_for(status_code)
        try:
            file_path.unlink()
        except FileNotFoundError as e:
            raise EntryNotFoundError(status_code) from e
        except OSError as e:
            logger.error(f"Failed to delete cache entry {file_path}: {e}")
            raise StorageError(f"Failed to delete cache entry: {e}") from e
        logger.debug(f"Deleted: {file_path}")

    def exists(self, status_code: str) -> bool:
        return self.path_for(status_code).is_file()
