"""
Chapter acquisition: relay fetch, content extraction, next-link discovery
"""
from .content_extractor import ExtractedContent, extract, extract_markup
from .document import parse_markup
from .link_discoverer import find_next
from .orchestrator import CrawlOrchestrator, CrawlResult
from .proxy_fetcher import FetchResult, ProxyFetcher
from .session import append_crawled_chapter, crawl_sequence
from .title_normalizer import normalize_title

__all__ = [
    'ExtractedContent',
    'extract',
    'extract_markup',
    'parse_markup',
    'find_next',
    'CrawlOrchestrator',
    'CrawlResult',
    'FetchResult',
    'ProxyFetcher',
    'append_crawled_chapter',
    'crawl_sequence',
    'normalize_title',
]
