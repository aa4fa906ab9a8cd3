"""Async URL fetching for HTML input."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Optional
from urllib.parse import urlparse

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from ..models.config import FetchOptions

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def is_valid_url(value: str) -> bool:
    """True for absolute http(s) URLs."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class HtmlFetcher:
    """
    Fetches HTML documents over HTTP.

    Features:
    - Redirect control (follow or not, with a hop limit)
    - Content size limit to prevent memory exhaustion
    - Encoding detection for responses without a usable charset

    Example:
        async with HtmlFetcher(FetchOptions(timeout=10)) as fetcher:
            html = await fetcher.fetch("https://example.com")
    """

    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB

    def __init__(self, options: Optional[FetchOptions] = None) -> None:
        self._options = options or FetchOptions()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HtmlFetcher:
        """Enter async context and create session."""
        headers = {"User-Agent": self._options.user_agent, **DEFAULT_HEADERS, **self._options.headers}
        self._session = aiohttp.ClientSession(headers=headers)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _decode_content(self, content: bytes, charset: Optional[str]) -> str:
        """
        Decode content with encoding detection.

        Fallback chain:
        1. Content-Type header charset
        2. charset-normalizer detection
        3. UTF-8 with replacement
        """
        if charset:
            try:
                return content.decode(charset)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {charset}")

        best_match = detect_encoding(content).best()
        if best_match is not None:
            logger.debug(f"Detected encoding: {best_match.encoding}")
            return str(best_match)

        return content.decode("utf-8", errors="replace")

    async def fetch(self, url: str) -> str:
        """
        Fetch a URL and return its decoded body.

        Args:
            url: The URL to fetch

        Returns:
            Response body as text

        Raises:
            aiohttp.ClientResponseError: On non-2xx status
            aiohttp.ClientError: On network errors
            TimeoutError: If the request exceeds the configured timeout
            ValueError: On content size exceeded
        """
        if self._session is None:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        timeout = self._options.timeout
        try:
            async with self._session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=self._options.follow_redirects,
                max_redirects=self._options.max_redirects,
            ) as response:
                response.raise_for_status()

                content = b""
                async for chunk in response.content.iter_chunked(8192):
                    content += chunk
                    if len(content) > self.MAX_CONTENT_SIZE:
                        raise ValueError(f"Content size limit exceeded: >{self.MAX_CONTENT_SIZE} bytes")

                logger.debug(f"Fetched {url}: {response.status}, {len(content)} bytes")
                return self._decode_content(content, response.charset)
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Request timeout after {timeout}s: {url}") from e


async def fetch_url(url: str, options: Optional[FetchOptions] = None) -> str:
    """
    Fetch HTML from a URL.

    Example:
        html = await fetch_url("https://example.com", FetchOptions(timeout=5))
    """
    async with HtmlFetcher(options) as fetcher:
        return await fetcher.fetch(url)
