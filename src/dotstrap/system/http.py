"""HTTP client for fetching installer scripts."""

import aiohttp

from dotstrap.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60


class DownloadError(Exception):
    """Raised when a document cannot be downloaded.

    Attributes:
        url: The URL that was requested
        status: HTTP status code, or 0 if no response was received
    """

    def __init__(self, url: str, status: int, message: str) -> None:
        self.url = url
        self.status = status
        super().__init__(f"Failed to download {url}: {message}")


class HttpClient:
    """Minimal client for downloading text documents."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        """Initialize the client.

        Args:
            timeout: Total request timeout in seconds
        """
        self.timeout = timeout

    async def fetch_text(self, url: str) -> str:
        """Download a document and return its body as text.

        Args:
            url: URL to fetch

        Returns:
            Response body

        Raises:
            DownloadError: If the request fails or returns a non-200 status
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise DownloadError(url, response.status, f"HTTP {response.status}")
                    body = await response.text()
        except aiohttp.ClientError as e:
            raise DownloadError(url, 0, str(e)) from e
        except TimeoutError as e:
            raise DownloadError(url, 0, "request timed out") from e

        logger.debug("Downloaded document", url=url, size=len(body))
        return body
