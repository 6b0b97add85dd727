"""
URL fetching through an ordered list of relay endpoints.

Chapter sites usually block direct access (CORS, geo-blocking, bot checks), so
every request goes through a public relay. Relays come and go; any failure just
moves on to the next one.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import quote

import httpx

from novel_translator.config import RELAY_LIST, FETCH_TIMEOUT, GBK_CHARSETS
from novel_translator.core.exceptions import FetchFailure
from novel_translator.utils.unified_logger import debug, LogType

_CHARSET_DECLARATION = re.compile(
    r'charset\s*=\s*["\']?\s*(' + '|'.join(GBK_CHARSETS) + r')\b',
    re.IGNORECASE
)

# Browser-like headers; several relays forward them to the origin
DEFAULT_HEADERS = {
    "User-Agent": ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                   "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


@dataclass
class FetchResult:
    """Bytes returned by a relay and their decoded text."""
    content: bytes
    text: str
    relay: str
    encoding: str


def validate_url(url: str) -> str:
    """
    Trim and check that url is absolute with a network scheme.

    Raises:
        FetchFailure: If the URL is malformed
    """
    clean_url = (url or '').strip()
    if not re.match(r'^https?://\S+$', clean_url, re.IGNORECASE):
        raise FetchFailure("Invalid URL: expected an absolute http(s) link.", url=clean_url or None)
    return clean_url


def build_relay_url(relay: str, url: str) -> str:
    """Embed the target URL into a relay endpoint."""
    return f"{relay}{quote(url, safe='')}"


def decode_markup(content: bytes, content_type: str = '') -> tuple:
    """
    Decode fetched bytes.

    UTF-8 by default; a GBK/GB2312 charset declared in the Content-Type header
    or in the markup itself forces a re-decode of the same bytes.

    Returns:
        (text, encoding) tuple
    """
    text = content.decode('utf-8', errors='replace')
    if _CHARSET_DECLARATION.search(content_type or '') or _CHARSET_DECLARATION.search(text):
        # gb18030 is a superset of both GBK and GB2312
        return content.decode('gb18030', errors='replace'), 'gbk'
    return text, 'utf-8'


class ProxyFetcher:
    """
    Fetches pages through relays, trying them strictly in order.

    Example:
        >>> fetcher = ProxyFetcher()
        >>> result = await fetcher.fetch("https://example.com/book/1.html")
        >>> result.text[:15]
        '<!DOCTYPE html>'
    """

    def __init__(self,
                 relays: Sequence[str] = RELAY_LIST,
                 client: Optional[httpx.AsyncClient] = None,
                 timeout: float = FETCH_TIMEOUT):
        """
        Args:
            relays: Relay prefixes, in priority order
            client: Optional pre-configured client (tests pass a MockTransport one)
            timeout: Per-request timeout in seconds
        """
        if not relays:
            raise ValueError("At least one relay is required")
        self.relays = list(relays)
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                headers=DEFAULT_HEADERS,
                follow_redirects=True
            )
        return self._client

    async def close(self):
        """Close the HTTP client if we created it"""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a page through the first relay that answers with a 2xx.

        Args:
            url: Absolute http(s) URL of the page

        Returns:
            FetchResult with raw bytes and decoded text

        Raises:
            FetchFailure: Malformed URL, or every relay failed. The failure
                carries the last relay's reason as text only.
        """
        clean_url = validate_url(url)
        client = await self._get_client()
        last_reason = "No relay configured."

        for relay in self.relays:
            relay_url = build_relay_url(relay, clean_url)
            try:
                response = await client.get(relay_url)
            except httpx.HTTPError as e:
                last_reason = f"Relay {relay} failed: {type(e).__name__}"
                debug(last_reason, LogType.CRAWL, {'url': clean_url})
                continue

            if not response.is_success:
                last_reason = f"Relay {relay} answered HTTP {response.status_code}"
                debug(last_reason, LogType.CRAWL, {'url': clean_url})
                continue

            text, encoding = decode_markup(response.content, response.headers.get('content-type', ''))
            debug(f"Fetched {len(response.content)} bytes via {relay} ({encoding})",
                  LogType.CRAWL, {'url': clean_url})
            return FetchResult(content=response.content, text=text, relay=relay, encoding=encoding)

        raise FetchFailure(last_reason, url=clean_url)
