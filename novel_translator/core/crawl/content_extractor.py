"""
Main-text extraction from chapter pages.

Serialized-fiction sites wrap the chapter in one of a handful of well-known
containers. We probe those in order and keep the first one with enough text to
be a chapter rather than a navigation or ad fragment.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from novel_translator.config import (
    CONTENT_SELECTORS, MIN_CONTENT_LENGTH, MIN_LINE_LENGTH, DEFAULT_CHAPTER_TITLE
)
from .document import MarkupDocument, MarkupNode, parse_markup

# Separators that usually split "Chapter title_Book name-Site name" page titles
TITLE_SEPARATORS = ('_', '-')


@dataclass
class ExtractedContent:
    """Result of extracting one page."""
    title_candidate: str
    body_text: str


def resolve_title(document: MarkupDocument) -> str:
    """
    Pick the raw chapter title of a page.

    Order: first <h1> text, then the document title cut at the first
    separator, then a generic placeholder.
    """
    heading = document.select_first('h1')
    if heading is not None:
        heading_text = heading.text().strip()
        if heading_text:
            return heading_text

    title = document.title() or ''
    for separator in TITLE_SEPARATORS:
        title = title.split(separator)[0]
    title = title.strip()
    return title or DEFAULT_CHAPTER_TITLE


def find_content_node(document: MarkupDocument,
                      selectors: Sequence[str] = CONTENT_SELECTORS,
                      min_length: int = MIN_CONTENT_LENGTH) -> MarkupNode:
    """
    Locate the element holding the chapter body.

    Args:
        document: Parsed page
        selectors: Probed in order; only the first match of each is considered
        min_length: A candidate needs strictly more visible characters than this

    Returns:
        The first qualifying element, or the document body
    """
    for selector in selectors:
        candidate = document.select_first(selector)
        if candidate is not None and len(candidate.raw_text().strip()) > min_length:
            return candidate
    return document.body()


def clean_lines(text: str, min_line_length: int = MIN_LINE_LENGTH) -> str:
    """
    Trim every line, drop short ones and separate the rest by a blank line.

    Lines of min_line_length characters or fewer are stray markup artifacts,
    page numbers or whitespace.
    """
    lines: List[str] = [line.strip() for line in text.split('\n')]
    kept = [line for line in lines if len(line) > min_line_length]
    return '\n\n'.join(kept).strip()


def extract(document: MarkupDocument) -> ExtractedContent:
    """
    Extract the title candidate and cleaned body text of a parsed page.

    Never fails: a page without a recognizable container falls back to the
    whole body.
    """
    node = find_content_node(document)
    return ExtractedContent(
        title_candidate=resolve_title(document),
        body_text=clean_lines(node.text()),
    )


def extract_markup(markup: str, document: Optional[MarkupDocument] = None) -> ExtractedContent:
    """Parse markup (unless a parsed document is given) and extract it."""
    return extract(document if document is not None else parse_markup(markup))
