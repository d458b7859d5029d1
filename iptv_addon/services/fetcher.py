"""
Playlist and guide fetching service.
Downloads source text with a bounded timeout and retry/backoff on transient failures.
"""
import asyncio
import gzip
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

from iptv_addon.config import get_settings
from iptv_addon.errors import FetchError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class SourceFetcher:
    """Fetch remote playlist/guide text."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.timeout = settings.fetch_timeout_seconds if timeout is None else timeout
        self.max_retries = settings.fetch_max_retries if max_retries is None else max_retries
        self.backoff = settings.fetch_backoff_seconds if backoff is None else backoff
        self.user_agent = settings.user_agent
        self._transport = transport

    async def fetch_text(self, url: str) -> str:
        """
        Fetch a URL and return its body as text.

        Gzip-compressed bodies (e.g. guide.xml.gz) are decompressed.
        Retries transport errors, timeouts and 5xx responses with
        exponential backoff; raises a single FetchError once exhausted.
        """
        if urlparse(url).scheme not in ("http", "https"):
            raise FetchError(f"Unsupported URL: {url}")

        headers = {"Accept": "*/*", "User-Agent": self.user_agent}
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    follow_redirects=True,
                    transport=self._transport,
                ) as client:
                    logger.info(f"Fetching {url} (attempt {attempt + 1})")
                    response = await client.get(url, headers=headers)
                    response.raise_for_status()
                    return self._decode(response)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status < 500:
                    raise FetchError(f"HTTP error {status} fetching {url}") from e
                last_error = f"HTTP error {status}"
            except httpx.TimeoutException:
                last_error = "timed out"
            except httpx.TransportError as e:
                last_error = str(e) or e.__class__.__name__

            if attempt < self.max_retries:
                delay = self.backoff * (2 ** attempt)
                logger.warning(f"Fetch of {url} failed ({last_error}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

        logger.error(f"Giving up on {url} after {self.max_retries + 1} attempts: {last_error}")
        raise FetchError(f"Failed to fetch {url}: {last_error}")

    def _decode(self, response: httpx.Response) -> str:
        content = response.content
        if content[:2] == GZIP_MAGIC:
            try:
                content = gzip.decompress(content)
            except (OSError, EOFError) as e:
                raise FetchError(f"Corrupt gzip payload from {response.url}") from e
            return content.decode("utf-8", errors="replace")
        return response.text


# Singleton
_fetcher: Optional[SourceFetcher] = None


def get_fetcher() -> SourceFetcher:
    """Get or create fetcher singleton."""
    global _fetcher
    if _fetcher is None:
        _fetcher = SourceFetcher()
    return _fetcher
