"""
Fetch-one-chapter composition: relay fetch, extraction, next-link discovery
and title normalization.
"""

from dataclasses import dataclass
from typing import Optional

from novel_translator.core.events import EventBus, create_crawl_event
from novel_translator.core.exceptions import CrawlFailure, FetchFailure
from novel_translator.utils.unified_logger import info, warning, LogType
from .content_extractor import extract
from .document import parse_markup
from .link_discoverer import find_next
from .proxy_fetcher import ProxyFetcher
from .title_normalizer import normalize_title


@dataclass
class CrawlResult:
    """One crawled chapter."""
    title: str
    content: str
    next_url: Optional[str]


class CrawlOrchestrator:
    """
    Crawls exactly one chapter per call.

    Sequential crawling is driven by the caller re-invoking crawl_one() with
    the returned next_url, which keeps each call bounded and observable.
    """

    def __init__(self, fetcher: Optional[ProxyFetcher] = None,
                 event_bus: Optional[EventBus] = None):
        self.fetcher = fetcher or ProxyFetcher()
        self.event_bus = event_bus

    async def close(self):
        await self.fetcher.close()

    async def crawl_one(self, url: str) -> CrawlResult:
        """
        Fetch and extract one chapter page.

        Args:
            url: Absolute URL of the chapter page

        Returns:
            CrawlResult with normalized title, cleaned body and next link

        Raises:
            CrawlFailure: If the page could not be fetched through any relay
        """
        clean_url = (url or '').strip()
        try:
            fetched = await self.fetcher.fetch(clean_url)
        except FetchFailure as e:
            message = (f"Could not fetch {clean_url or 'the page'}: {e.reason} "
                       f"Try again later or use a different source URL.")
            warning(message, LogType.CRAWL, {'url': clean_url})
            self._publish(create_crawl_event(clean_url, success=False, error=e.reason))
            raise CrawlFailure(message, url=clean_url, reason=e.reason) from e

        document = parse_markup(fetched.text)
        extracted = extract(document)
        next_url = find_next(document, clean_url)
        title = normalize_title(extracted.title_candidate)

        info(f"Crawled '{title}' ({len(extracted.body_text)} chars)", LogType.CRAWL,
             {'url': clean_url, 'next_url': next_url, 'relay': fetched.relay})
        self._publish(create_crawl_event(clean_url, success=True, title=title, next_url=next_url))
        return CrawlResult(title=title, content=extracted.body_text, next_url=next_url)

    def _publish(self, event):
        if self.event_bus:
            self.event_bus.publish(event)
