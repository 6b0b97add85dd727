"""
Plain-text export of translated chapters.
"""

from pathlib import Path
from typing import Iterable, List

import aiofiles

from novel_translator.models import Chapter, ChapterStatus
from novel_translator.utils.file_utils import get_unique_output_path
from novel_translator.utils.unified_logger import info, LogType


def completed_chapters(chapters: Iterable[Chapter]) -> List[Chapter]:
    """Completed chapters with text, in reading order."""
    return sorted(
        (c for c in chapters if c.status == ChapterStatus.COMPLETED and c.translated_content),
        key=lambda c: c.order_index
    )


def create_merged_text(chapters: Iterable[Chapter]) -> str:
    """
    Merge completed chapters into one document.

    Each chapter becomes "### <name>", a blank line, then its translation.
    Chapters are separated by a blank line.
    """
    return '\n\n'.join(
        f"### {chapter.name}\n\n{chapter.translated_content}"
        for chapter in completed_chapters(chapters)
    )


async def write_merged_text(output_path: str, chapters: Iterable[Chapter]) -> str:
    """
    Write the merged translation to disk without overwriting existing files.

    Returns:
        Path actually written
    """
    chapters = list(chapters)
    target = get_unique_output_path(output_path)
    Path(target).parent.mkdir(parents=True, exist_ok=True)

    async with aiofiles.open(target, 'w', encoding='utf-8') as f:
        await f.write(create_merged_text(chapters))

    info(f"Wrote {len(completed_chapters(chapters))} chapter(s) to {target}", LogType.FILE_OPERATION)
    return target
