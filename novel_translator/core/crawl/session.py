"""
Turning crawl results into project chapters, and following next-chapter links.
"""

from typing import List, Optional

from novel_translator.core.exceptions import CrawlFailure
from novel_translator.core.project_store import ProjectStore
from novel_translator.models import Chapter
from novel_translator.utils.unified_logger import info, LogType
from .orchestrator import CrawlOrchestrator, CrawlResult


def append_crawled_chapter(store: ProjectStore, result: CrawlResult, requested_url: str) -> Chapter:
    """
    Add a crawled chapter after the current last chapter.

    The resume point becomes the discovered next link, or the requested URL
    when the page had none.

    Returns:
        The new IDLE chapter
    """
    created: List[Chapter] = []

    def reducer(project):
        chapter = Chapter.create(
            name=result.title,
            content=result.content,
            order_index=project.next_order_index(),
        )
        created.append(chapter)
        return project.add_chapters([chapter]).update(
            last_crawl_url=result.next_url or requested_url
        )

    store.apply(reducer)
    return created[0]


async def crawl_sequence(orchestrator: CrawlOrchestrator,
                         store: ProjectStore,
                         start_url: str,
                         count: int = 1) -> List[Chapter]:
    """
    Crawl up to count chapters, following next-chapter links.

    Stops early when a page has no next link or links back to a page already
    visited. Chapters crawled before a failure are kept; the failure is then
    re-raised so the caller can report it.

    Args:
        orchestrator: Crawls one page per call
        store: Project the chapters are appended to
        start_url: First chapter URL
        count: Maximum number of chapters

    Returns:
        Chapters added, in crawl order

    Raises:
        CrawlFailure: If a page could not be fetched
    """
    added: List[Chapter] = []
    visited = set()
    url: Optional[str] = start_url.strip() if start_url else start_url

    while url and len(added) < count:
        visited.add(url)
        try:
            result = await orchestrator.crawl_one(url)
        except CrawlFailure:
            info(f"Crawl stopped after {len(added)} chapter(s)", LogType.CRAWL, {'url': url})
            raise

        added.append(append_crawled_chapter(store, result, url))

        if result.next_url in visited:
            info("Next link points to an already visited page, stopping", LogType.CRAWL,
                 {'url': result.next_url})
            break
        url = result.next_url

    return added
