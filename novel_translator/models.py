"""
Chapter and project records.

A Chapter is one unit of source text plus its translation lifecycle state.
Records are immutable: every transition returns a new instance, and a Project
is only ever replaced as a whole, so a stale reference can never observe a
half-applied update.
"""

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from novel_translator.config import DEFAULT_PROMPT, DEFAULT_DICTIONARY


def generate_id() -> str:
    """Opaque unique identifier for chapters and projects."""
    return uuid.uuid4().hex


class ChapterStatus(Enum):
    """Translation lifecycle of a chapter."""
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class Chapter:
    """
    One chapter of a project.

    Attributes:
        id: Opaque identifier, unique within the project
        order_index: Canonical position; unique but not necessarily contiguous
        name: Display title, may be replaced by the translated heading
        content: Source text, never modified after creation
        translated_content: Set only while status is COMPLETED
        status: Lifecycle state
        retry_count: Number of explicit retries requested by the user
        original_char_count: Length of the source text
        used_model: Model that produced the translation
    """
    id: str
    order_index: int
    name: str
    content: str
    translated_content: Optional[str] = None
    status: ChapterStatus = ChapterStatus.IDLE
    retry_count: int = 0
    original_char_count: int = 0
    used_model: Optional[str] = None

    def __post_init__(self):
        if (self.translated_content is not None) != (self.status == ChapterStatus.COMPLETED):
            raise ValueError(
                f"Chapter {self.id}: translated_content must be set exactly when status is COMPLETED "
                f"(status={self.status.value})"
            )

    @classmethod
    def create(cls, name: str, content: str, order_index: int,
               chapter_id: Optional[str] = None) -> 'Chapter':
        """Build a fresh IDLE chapter."""
        return cls(
            id=chapter_id or generate_id(),
            order_index=order_index,
            name=name,
            content=content,
            original_char_count=len(content),
        )

    def mark_processing(self) -> 'Chapter':
        return replace(self, status=ChapterStatus.PROCESSING, translated_content=None)

    def mark_completed(self, translated_content: str, model: str,
                       name: Optional[str] = None) -> 'Chapter':
        if not translated_content:
            raise ValueError(f"Chapter {self.id}: cannot complete with empty translation")
        return replace(
            self,
            status=ChapterStatus.COMPLETED,
            translated_content=translated_content,
            used_model=model,
            name=name if name is not None else self.name,
        )

    def mark_error(self) -> 'Chapter':
        return replace(self, status=ChapterStatus.ERROR, translated_content=None)

    def reset_for_retry(self) -> 'Chapter':
        """Send a finished or failed chapter back to the queue state."""
        return replace(
            self,
            status=ChapterStatus.IDLE,
            translated_content=None,
            retry_count=self.retry_count + 1,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the record schema shared with UI, storage and packagers.

        Returns:
            Dictionary with camelCase keys
        """
        data = {
            'id': self.id,
            'orderIndex': self.order_index,
            'name': self.name,
            'content': self.content,
            'translatedContent': self.translated_content,
            'status': self.status.value,
            'retryCount': self.retry_count,
            'originalCharCount': self.original_char_count,
        }
        if self.used_model is not None:
            data['usedModel'] = self.used_model
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Chapter':
        """
        Deserialize from the record schema.

        Args:
            data: Dictionary produced by to_dict() or an external collaborator

        Returns:
            Chapter instance
        """
        content = data.get('content', '')
        return cls(
            id=data['id'],
            order_index=int(data['orderIndex']),
            name=data.get('name', ''),
            content=content,
            translated_content=data.get('translatedContent'),
            status=ChapterStatus(data.get('status', ChapterStatus.IDLE.value)),
            retry_count=int(data.get('retryCount', 0)),
            original_char_count=int(data.get('originalCharCount', len(content))),
            used_model=data.get('usedModel'),
        )

    def __repr__(self) -> str:
        return f"Chapter(id={self.id}, order={self.order_index}, name='{self.name}', status={self.status.value})"


@dataclass(frozen=True)
class StoryInfo:
    """Story metadata used to fill the prompt template."""
    title: str
    author: str = ""
    languages: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    mc_personality: Tuple[str, ...] = ()
    world_setting: Tuple[str, ...] = ()
    sect_flow: Tuple[str, ...] = ()
    context_notes: str = ""


@dataclass(frozen=True)
class Project:
    """
    A story being translated.

    Only mutated through update() and the chapter helpers, each of which
    returns a new Project stamped with a fresh last_modified time.
    """
    id: str
    info: StoryInfo
    chapters: Tuple[Chapter, ...] = ()
    prompt_template: str = DEFAULT_PROMPT
    dictionary: str = DEFAULT_DICTIONARY
    global_context: str = ""
    last_crawl_url: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    last_modified: float = field(default_factory=time.time)

    def __post_init__(self):
        ids = [c.id for c in self.chapters]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Project {self.id}: duplicate chapter ids")

    @classmethod
    def create(cls, info: StoryInfo, **kwargs) -> 'Project':
        return cls(id=generate_id(), info=info, **kwargs)

    def update(self, **changes) -> 'Project':
        """Whole-project update; stamps last_modified."""
        if 'chapters' in changes:
            changes['chapters'] = tuple(changes['chapters'])
        changes.setdefault('last_modified', time.time())
        return replace(self, **changes)

    def sorted_chapters(self) -> List[Chapter]:
        return sorted(self.chapters, key=lambda c: c.order_index)

    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        return None

    def next_order_index(self) -> int:
        """Position after the current maximum (not the chapter count)."""
        if not self.chapters:
            return 0
        return max(c.order_index for c in self.chapters) + 1

    def add_chapters(self, chapters: Iterable[Chapter]) -> 'Project':
        return self.update(chapters=self.chapters + tuple(chapters))

    def replace_chapters(self, updated: Mapping[str, Chapter]) -> 'Project':
        """Swap in new versions of chapters by id; unknown ids are ignored."""
        return self.update(chapters=[updated.get(c.id, c) for c in self.chapters])

    def remove_chapter(self, chapter_id: str) -> 'Project':
        return self.update(chapters=[c for c in self.chapters if c.id != chapter_id])
