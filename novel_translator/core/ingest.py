"""
Chapter ingestion from uploaded .txt files and .zip archives of .txt files.
"""

import io
import os
import zipfile
from typing import List, Sequence

import aiofiles

from novel_translator.core.crawl.title_normalizer import normalize_title
from novel_translator.models import Chapter
from novel_translator.utils.file_utils import natural_sort_key
from novel_translator.utils.unified_logger import info, error, LogType

TEXT_EXTENSION = '.txt'
ARCHIVE_EXTENSION = '.zip'


def chapter_name_from_filename(filename: str) -> str:
    """Basename without the .txt extension, passed through the title normalizer."""
    base = os.path.basename(filename.replace('\\', '/').rstrip('/'))
    if base.lower().endswith(TEXT_EXTENSION):
        base = base[:-len(TEXT_EXTENSION)]
    return normalize_title(base)


def decode_text(data: bytes) -> str:
    return data.decode('utf-8-sig', errors='replace')


def chapters_from_text_file(name: str, content: str, order_index: int) -> Chapter:
    """Build an IDLE chapter from one text file."""
    return Chapter.create(
        name=chapter_name_from_filename(name),
        content=content,
        order_index=order_index,
    )


def chapters_from_archive(data: bytes, start_order: int) -> List[Chapter]:
    """
    Extract chapters from a zip archive.

    Only .txt entries are read; directories and other files are skipped.
    Entries are taken in natural order of their paths so that "2.txt" comes
    before "10.txt".

    Raises:
        zipfile.BadZipFile: If data is not a zip archive
    """
    chapters = []
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        entries = [
            entry for entry in archive.infolist()
            if not entry.is_dir() and entry.filename.lower().endswith(TEXT_EXTENSION)
        ]
        entries.sort(key=lambda entry: natural_sort_key(entry.filename))
        for entry in entries:
            content = decode_text(archive.read(entry))
            chapters.append(chapters_from_text_file(entry.filename, content, start_order + len(chapters)))
    return chapters


async def load_chapters(paths: Sequence[str], start_order: int = 0) -> List[Chapter]:
    """
    Read chapters from files on disk.

    Order indices continue sequentially from start_order across all files.
    A file that cannot be read is reported and skipped; the others are kept.

    Args:
        paths: .txt and .zip files, in the order they were given
        start_order: Order index of the first new chapter

    Returns:
        New IDLE chapters
    """
    chapters: List[Chapter] = []
    for path in paths:
        try:
            async with aiofiles.open(path, 'rb') as f:
                data = await f.read()

            if path.lower().endswith(ARCHIVE_EXTENSION):
                extracted = chapters_from_archive(data, start_order + len(chapters))
                info(f"Loaded {len(extracted)} chapter(s) from archive", LogType.FILE_OPERATION,
                     {'path': path})
                chapters.extend(extracted)
            else:
                chapters.append(
                    chapters_from_text_file(path, decode_text(data), start_order + len(chapters))
                )
        except (OSError, zipfile.BadZipFile) as e:
            error(f"Could not read file {path}: {e}", LogType.ERROR_DETAIL, {'details': type(e).__name__})

    info(f"Added {len(chapters)} chapter(s)", LogType.FILE_OPERATION)
    return chapters
