"""Client for the upstream image origin."""
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from config import Settings

logger = logging.getLogger(__name__)


class OriginFetchError(Exception):
    """Raised when the origin cannot supply an image.

    Covers transport errors, timeouts and any non-2xx upstream status. The
    router treats every cause the same way; ``status_code`` is kept for logs.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class OriginClient(ABC):
    """Abstract base class for origin clients."""

    @abstractmethod
    async def fetch(self, status_code: str) -> bytes:
        """Fetch the image for a status code from the origin.

        Args:
            status_code: Validated 3-digit status code.

        Returns:
            Raw image bytes.

        Raises:
            OriginFetchError: If the origin cannot supply the image.
        """
        pass


class HttpOriginClient(OriginClient):
    """Origin client issuing a single HTTP GET per fetch."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the origin client.

        Args:
            settings: Application settings containing origin configuration
            transport: Optional httpx transport, used in place of the network
        """
        if not settings.origin_url:
            raise ValueError("ORIGIN_URL must be set")

        self.settings = settings
        self.timeout = settings.origin_timeout
        self._transport = transport

    async def fetch(self, status_code: str) -> bytes:
        url = self.settings.origin_url_for(status_code)
        logger.debug(f"Fetching from origin: {url}")
        start_time = time.time()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)

                if not response.is_success:
                    raise OriginFetchError(
                        f"Origin returned {response.status_code} for {url}",
                        status_code=response.status_code,
                    )

                content = response.content
        except httpx.HTTPError as e:
            raise OriginFetchError(f"Request to {url} failed: {e!r}") from e

        elapsed_time = time.time() - start_time
        logger.info(
            f"Origin fetch completed in {elapsed_time:.2f}s, "
            f"received {len(content)} bytes for {status_code}"
        )
        return content


def create_origin_client(settings: Settings) -> OriginClient:
    """Factory function to create the origin client from settings."""
    logger.info(f"Creating HttpOriginClient for {settings.origin_url}")
    return HttpOriginClient(settings)
