"""
Chapter heading normalization.

Rewrites source-language chapter markers (第3章, 第三回, Chapter 3) into the
canonical "Chương N" display form. Everything after the marker is left alone.
"""

import re

CANONICAL_CHAPTER_PREFIX = "Chương"

# Ten single-symbol numerals; longer numerals (二十, 十一) are kept verbatim
NUMERAL_WORDS = {
    '一': '1', '二': '2', '三': '3', '四': '4', '五': '5',
    '六': '6', '七': '7', '八': '8', '九': '9', '十': '10'
}

_DIGIT_MARKER = re.compile(r'第\s*([0-9]+)\s*[章話节回]')
_ASCII_MARKER = re.compile(r'Chapter\s*([0-9]+)', re.IGNORECASE)
_NUMERAL_WORD_MARKER = re.compile(r'第\s*([一二三四五六七八九十]+)\s*[章話节回]')


def _numeral_word_to_title(match: re.Match) -> str:
    numeral = match.group(1)
    return f"{CANONICAL_CHAPTER_PREFIX} {NUMERAL_WORDS.get(numeral, numeral)}"


def normalize_title(raw_title: str) -> str:
    """
    Convert a raw chapter heading into a display title.

    Never fails and is idempotent: an already-normalized title passes through.

    Args:
        raw_title: Heading as found in the page, file name or translation

    Returns:
        Display title

    Example:
        >>> normalize_title("第3章 风起")
        'Chương 3 风起'
    """
    if not raw_title:
        return ""

    clean = raw_title.strip()
    clean = _DIGIT_MARKER.sub(lambda m: f"{CANONICAL_CHAPTER_PREFIX} {m.group(1)}", clean)
    clean = _ASCII_MARKER.sub(lambda m: f"{CANONICAL_CHAPTER_PREFIX} {m.group(1)}", clean)
    clean = _NUMERAL_WORD_MARKER.sub(_numeral_word_to_title, clean)
    return clean
