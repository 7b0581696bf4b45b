"""
Document fetcher with a bounded per-request timeout and no retries.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError
from bs4 import BeautifulSoup


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class WebFetcher:
    """
    Fetches documents as text. A failed fetch is reported in the returned
    FetchResult and is never retried.
    """

    TEXT_TYPES = (
        'text/plain',
        'text/html',
        'text/xml',
        'application/xml',
        'application/xhtml+xml',
    )

    def __init__(self, user_agent: str, request_timeout: float = 5.0,
                 max_connections: int = 10, max_content_size: int = 10 * 1024 * 1024,
                 strip_html: bool = True):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self.max_content_size = max_content_size
        self.strip_html = strip_html

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'timeouts': 0,
            'total_bytes_downloaded': 0
        }

    @classmethod
    def from_config(cls, fetcher_config, max_connections: int = 10) -> 'WebFetcher':
        return cls(
            user_agent=fetcher_config.user_agent,
            request_timeout=fetcher_config.request_timeout,
            max_connections=max_connections,
            max_content_size=fetcher_config.max_content_size,
            strip_html=fetcher_config.strip_html
        )

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_connections,
                    ttl_dns_cache=300
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single document.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with the document text, or with error set on failure
        """
        if self.session is None:
            raise RuntimeError("WebFetcher.start() must be called before fetch()")

        start_time = time.monotonic()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                content_type = response.headers.get('content-type', '').lower()

                if response.status >= 400:
                    return self._failure(url, f"HTTP {response.status}", start_time,
                                         status_code=response.status)

                if content_type and not self._is_text_content(content_type):
                    return self._failure(url, f"Non-text content type: {content_type}",
                                         start_time, status_code=response.status)

                content = await self._read_content_safely(response)
                if content is None:
                    return self._failure(url, "Content too large", start_time,
                                         status_code=response.status)

                if self.strip_html and 'html' in content_type:
                    content = self._html_to_text(content)

                self.stats['successful_requests'] += 1
                fetch_time = time.monotonic() - start_time
                self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")

                return FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    content_type=content_type,
                    fetch_time=fetch_time
                )

        except asyncio.TimeoutError:
            self.stats['timeouts'] += 1
            return self._failure(url, "Request timeout", start_time)

        except ClientError as e:
            return self._failure(url, f"Client error: {e}", start_time)

    def _failure(self, url: str, error: str, start_time: float,
                 status_code: int = 0) -> FetchResult:
        self.stats['failed_requests'] += 1
        self.logger.warning(f"Failed to fetch {url}: {error}")
        return FetchResult(
            url=url,
            status_code=status_code,
            error=error,
            fetch_time=time.monotonic() - start_time
        )

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is text-based."""
        return any(text_type in content_type for text_type in self.TEXT_TYPES)

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content with a size limit.

        Returns:
            Content string or None if it exceeds max_content_size
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            content_bytes.extend(chunk)
            if len(content_bytes) > self.max_content_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        self.stats['total_bytes_downloaded'] += len(content_bytes)
        return self._decode(bytes(content_bytes), response.charset)

    @staticmethod
    def _decode(content_bytes: bytes, charset: Optional[str]) -> str:
        for encoding in (charset or 'utf-8', 'utf-8', 'cp1252'):
            try:
                return content_bytes.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                continue
        # latin-1 maps every byte
        return content_bytes.decode('latin-1')

    @staticmethod
    def _html_to_text(html: str) -> str:
        soup = BeautifulSoup(html, 'html.parser')
        for element in soup(['script', 'style', 'noscript']):
            element.decompose()
        return soup.get_text(separator=' ')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
