"""
Async HTTP downloader that streams resolved media to local files.

No retries: a failed download fails the request.
"""

import logging
from pathlib import Path

import httpx

from .errors import DownloadFailed

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

_DEFAULT_HEADERS = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.instagram.com/",
}


class MediaDownloader:
    """Streams a remote file to disk with httpx.AsyncClient."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout
        self._transport = transport
        headers = dict(_DEFAULT_HEADERS)
        if user_agent:
            headers["User-Agent"] = user_agent
        self._headers = headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            follow_redirects=True,
            headers=self._headers,
            transport=self._transport,
        )

    async def download(self, url: str, destination: Path) -> Path:
        """Download url to destination and return the path.

        Raises:
            DownloadFailed: on network errors or a non-2xx response.
        """
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    if response.status_code >= 400:
                        raise DownloadFailed(
                            f"Failed to download video: upstream returned {response.status_code}"
                        )
                    with destination.open("wb") as fh:
                        async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                            fh.write(chunk)
        except httpx.HTTPError as e:
            raise DownloadFailed(f"Failed to download video: {e}") from e

        logger.debug("Downloaded %s (%d bytes)", destination.name, destination.stat().st_size)
        return destination
