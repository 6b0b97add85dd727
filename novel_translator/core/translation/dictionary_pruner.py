"""
Glossary pruning.

The project dictionary grows for the whole life of a long novel. Sending only
the entries whose term appears in the batch keeps the prompt proportional to
what the model actually needs.
"""

from typing import Dict

ENTRY_SEPARATOR = '='
COMMENT_PREFIX = '#'


def parse_dictionary(dictionary: str) -> Dict[str, str]:
    """
    Parse a newline-delimited key=value glossary.

    Blank lines, comment lines and lines without a separator are skipped. Only
    the first separator splits, so values may contain '='. A later duplicate
    key overwrites the earlier definition.

    Args:
        dictionary: Raw glossary text

    Returns:
        Mapping term -> full trimmed glossary line, in insertion order
    """
    entries: Dict[str, str] = {}
    if not dictionary:
        return entries

    for line in dictionary.split('\n'):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(COMMENT_PREFIX):
            continue
        key, separator, _value = trimmed.partition(ENTRY_SEPARATOR)
        if not separator:
            continue
        key = key.strip()
        if key:
            entries[key] = trimmed
    return entries


def prune_dictionary(dictionary: str, text: str) -> str:
    """
    Keep only the glossary entries whose term occurs in text.

    Args:
        dictionary: Raw glossary text
        text: Concatenated source text of the batch

    Returns:
        Retained glossary lines joined by newlines, or "" if none

    Example:
        >>> prune_dictionary("林风=Lin Feng\\n#comment\\nbadline\\n剑=Sword", "林风拔出剑")
        '林风=Lin Feng\\n剑=Sword'
    """
    if not dictionary or not text:
        return ''
    entries = parse_dictionary(dictionary)
    return '\n'.join(line for key, line in entries.items() if key in text)
