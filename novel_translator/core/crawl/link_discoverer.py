"""
"Next chapter" link discovery.
"""

import unicodedata
from typing import Optional, Sequence
from urllib.parse import urljoin

from novel_translator.config import NEXT_CHAPTER_KEYWORDS, MAX_NEXT_LINK_TEXT_LENGTH
from .document import MarkupDocument


def display_width(text: str) -> int:
    """Width in terminal columns: wide and fullwidth characters count twice."""
    return sum(2 if unicodedata.east_asian_width(ch) in ('W', 'F') else 1 for ch in text)


def is_next_link_text(text: str,
                      keywords: Sequence[str] = NEXT_CHAPTER_KEYWORDS,
                      max_length: int = MAX_NEXT_LINK_TEXT_LENGTH) -> bool:
    """
    Check whether anchor text reads as a "next chapter" link.

    Exact keyword matches always qualify. Containing a keyword only qualifies
    for short texts, so "下一章精彩内容更多" style teasers are ignored. Length is
    measured in display columns, so CJK text counts double.
    """
    normalized = text.lower().strip()
    if not normalized:
        return False
    for keyword in keywords:
        if normalized == keyword:
            return True
        if keyword in normalized and display_width(normalized) < max_length:
            return True
    return False


def find_next(document: MarkupDocument, base_url: str) -> Optional[str]:
    """
    Find the absolute URL of the next chapter.

    Args:
        document: Parsed chapter page
        base_url: URL the page was requested from, used to resolve relative links

    Returns:
        Absolute URL of the first qualifying anchor, or None
    """
    for anchor in document.anchors():
        if not is_next_link_text(anchor.text()):
            continue
        href = (anchor.get('href') or '').strip()
        if not href or href.lower().startswith('javascript'):
            continue
        return urljoin(base_url, href)
    return None
