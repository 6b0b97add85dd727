"""
Translation work queue.

Chapters are translated in small batches by a single drain task per start().
The drain loop dispatches while the queue is non-empty and fewer than
max_concurrency batches are in flight, then sleeps until a batch finishes or
new ids are enqueued.
"""

import asyncio
from collections import deque
from typing import Callable, Iterable, List, Optional, Sequence

from novel_translator.config import MAX_CONCURRENCY, BATCH_FILE_LIMIT, TITLE_CANDIDATE_MAX_LENGTH
from novel_translator.core.crawl.title_normalizer import normalize_title
from novel_translator.core.events import (
    Event, EventBus, EventType, create_batch_event, create_chapter_status_event
)
from novel_translator.core.project_store import ProjectStore
from novel_translator.models import Chapter, ChapterStatus
from novel_translator.utils.unified_logger import debug, error, info, log, LogLevel, LogType
from .batch_translator import BatchResult, BatchTranslator

ErrorCallback = Callable[[Exception, List[str]], None]


def derive_chapter_name(translated: str, current_name: str) -> str:
    """
    Take the first translated line as the new display name.

    Lines of TITLE_CANDIDATE_MAX_LENGTH characters or more are body text, not
    a heading, and the current name is kept.
    """
    first_line = translated.split('\n')[0]
    if len(first_line) < TITLE_CANDIDATE_MAX_LENGTH:
        return normalize_title(first_line) or current_name
    return current_name


class TranslationScheduler:
    """
    FIFO batch scheduler over the chapters of one project.

    start(), enqueue(), retry() and stop() must be called from within a
    running event loop; run_until_idle() awaits the work they trigger.

    Example:
        >>> scheduler = TranslationScheduler(store, BatchTranslator(provider))
        >>> scheduler.start()
        4
        >>> await scheduler.run_until_idle()
    """

    def __init__(self, store: ProjectStore, translator: BatchTranslator,
                 max_concurrency: int = MAX_CONCURRENCY,
                 batch_size: int = BATCH_FILE_LIMIT,
                 event_bus: Optional[EventBus] = None,
                 error_callback: Optional[ErrorCallback] = None):
        """
        Args:
            store: Holder of the project whose chapters are translated
            translator: Performs one model call per batch
            max_concurrency: Maximum batches in flight
            batch_size: Maximum chapters per batch
            event_bus: Receives batch and chapter status events
            error_callback: Called with (exception, chapter_ids) when a batch call fails
        """
        if max_concurrency < 1 or batch_size < 1:
            raise ValueError("max_concurrency and batch_size must be at least 1")
        self.store = store
        self.translator = translator
        self.max_concurrency = max_concurrency
        self.batch_size = batch_size
        self.event_bus = event_bus
        self.error_callback = error_callback

        self._queue = deque()
        self._queued = set()
        self._in_flight = 0
        self._running = False
        self._wake = asyncio.Event()
        self._drain_task: Optional[asyncio.Task] = None
        self._batch_tasks = set()

    # === State ===

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def pending(self) -> List[str]:
        """Queued chapter ids, in dispatch order."""
        return list(self._queue)

    # === Control ===

    def start(self, retry_all: bool = False) -> int:
        """
        Queue every chapter waiting for translation and begin draining.

        Args:
            retry_all: Queue every chapter, completed ones included

        Returns:
            Number of ids newly added to the queue
        """
        project = self.store.get()
        ids = [
            chapter.id for chapter in project.sorted_chapters()
            if retry_all or chapter.status in (ChapterStatus.IDLE, ChapterStatus.ERROR)
        ]
        self._running = True
        added = self.enqueue(ids)
        info(f"Translation started: {added} chapter(s) queued", LogType.PROGRESS)
        return added

    def enqueue(self, chapter_ids: Iterable[str]) -> int:
        """Append ids not already queued; wakes the drain loop if running."""
        added = 0
        for chapter_id in chapter_ids:
            if chapter_id not in self._queued:
                self._queue.append(chapter_id)
                self._queued.add(chapter_id)
                added += 1
        if self._running and self._queue:
            self._ensure_draining()
        return added

    def retry(self, chapter_id: str) -> bool:
        """
        Send one finished or failed chapter back to the queue.

        Returns:
            False if the chapter does not exist or is being translated
        """
        chapter = self.store.get().get_chapter(chapter_id)
        if chapter is None or chapter.status == ChapterStatus.PROCESSING:
            return False

        self.store.apply(lambda p: p.replace_chapters({chapter_id: p.get_chapter(chapter_id).reset_for_retry()}))
        self._publish_status(self.store.get().get_chapter(chapter_id))

        # Only this chapter is queued; other idle or failed chapters wait for start()
        self._running = True
        self.enqueue([chapter_id])
        return True

    def stop(self) -> None:
        """
        Drop pending work and stop dispatching.

        Batches already in flight are not cancelled; their results are still
        applied when they arrive.
        """
        dropped = len(self._queue)
        self._running = False
        self._queue.clear()
        self._queued.clear()
        self._wake.set()
        info(f"Translation stopped, {dropped} pending chapter(s) dropped", LogType.PROGRESS)

    async def run_until_idle(self) -> None:
        """Wait until the queue is drained and no batch is in flight."""
        while True:
            pending = list(self._batch_tasks)
            if self._drain_task is not None:
                pending.append(self._drain_task)
            if not pending:
                return
            await asyncio.gather(*pending)

    # === Drain loop ===

    def _ensure_draining(self):
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        else:
            self._wake.set()

    async def _drain(self):
        try:
            while self._running:
                while self._running and self._queue and self._in_flight < self.max_concurrency:
                    batch_ids = self._take_batch()
                    if batch_ids:
                        self._dispatch(batch_ids)

                if not self._queue and self._in_flight == 0:
                    break
                self._wake.clear()
                await self._wake.wait()
        finally:
            self._drain_task = None

        if self._running:
            self._report_progress()
            self._publish(Event(type=EventType.QUEUE_DRAINED, source="scheduler"))

    def _take_batch(self) -> List[str]:
        """Dequeue up to batch_size ids that still exist in the project."""
        project = self.store.get()
        batch_ids = []
        while self._queue and len(batch_ids) < self.batch_size:
            chapter_id = self._queue.popleft()
            self._queued.discard(chapter_id)
            if project.get_chapter(chapter_id) is None:
                debug(f"Skipping deleted chapter {chapter_id}", LogType.CHAPTER_STATUS)
                continue
            batch_ids.append(chapter_id)
        return batch_ids

    def _dispatch(self, batch_ids: List[str]):
        updated = self.store.apply(lambda p: p.replace_chapters({
            chapter_id: p.get_chapter(chapter_id).mark_processing() for chapter_id in batch_ids
        }))
        for chapter_id in batch_ids:
            self._publish_status(updated.get_chapter(chapter_id))

        self._in_flight += 1
        self._publish(create_batch_event(EventType.BATCH_STARTED, batch_ids))
        task = asyncio.get_running_loop().create_task(self._process_batch(batch_ids))
        self._batch_tasks.add(task)
        task.add_done_callback(self._batch_tasks.discard)

    async def _process_batch(self, batch_ids: List[str]):
        try:
            project = self.store.get()
            chapters = [c for c in (project.get_chapter(i) for i in batch_ids) if c is not None]
            try:
                result = await self.translator.translate_batch(chapters, project)
            except Exception as e:
                self._apply_failure(batch_ids, e)
            else:
                self._apply_results(batch_ids, result)
        finally:
            self._in_flight -= 1
            self._wake.set()

    def _apply_results(self, batch_ids: Sequence[str], result: BatchResult):
        def reducer(project):
            updated = {}
            for chapter_id in batch_ids:
                chapter = project.get_chapter(chapter_id)
                if chapter is None:
                    continue
                translated = result.results.get(chapter_id)
                if translated:
                    name = derive_chapter_name(translated, chapter.name)
                    updated[chapter_id] = chapter.mark_completed(translated, result.model, name=name)
                else:
                    updated[chapter_id] = chapter.mark_error()
            return project.replace_chapters(updated)

        project = self.store.apply(reducer)
        missing = [i for i in batch_ids if i not in result.results]
        if missing:
            log(LogLevel.WARNING, f"{len(missing)} chapter(s) missing from the model answer",
                LogType.ERROR_DETAIL, {'chapter_ids': missing})

        for chapter_id in batch_ids:
            self._publish_status(project.get_chapter(chapter_id))
        self._publish(create_batch_event(
            EventType.BATCH_COMPLETED, batch_ids,
            model=result.model, completed=len(batch_ids) - len(missing), missing=missing
        ))
        self._report_progress()

    def _apply_failure(self, batch_ids: Sequence[str], exc: Exception):
        def reducer(project):
            return project.replace_chapters({
                chapter_id: project.get_chapter(chapter_id).mark_error()
                for chapter_id in batch_ids if project.get_chapter(chapter_id) is not None
            })

        project = self.store.apply(reducer)
        error(f"Batch translation failed: {exc}", LogType.ERROR_DETAIL,
              {'chapter_ids': list(batch_ids), 'details': type(exc).__name__})

        for chapter_id in batch_ids:
            self._publish_status(project.get_chapter(chapter_id))
        self._publish(create_batch_event(EventType.BATCH_FAILED, batch_ids, error=str(exc)))
        if self.error_callback:
            self.error_callback(exc, list(batch_ids))

    # === Reporting ===

    def _report_progress(self):
        chapters = self.store.get().chapters
        completed = sum(1 for c in chapters if c.status == ChapterStatus.COMPLETED)
        failed = sum(1 for c in chapters if c.status == ChapterStatus.ERROR)
        log(LogLevel.INFO, "Progress", LogType.PROGRESS,
            {'completed': completed, 'total': len(chapters), 'failed': failed})

    def _publish_status(self, chapter: Optional[Chapter]):
        if chapter is None:
            return
        self._publish(create_chapter_status_event(
            chapter.id, chapter.status.value, name=chapter.name, model=chapter.used_model
        ))

    def _publish(self, event: Event):
        if self.event_bus:
            self.event_bus.publish(event)
