"""
Marker-pair protocol for sending several chapters in one model call.

Each chapter travels between a start marker and an end marker that both embed
the chapter id. The model may reorder, pad or truncate its answer; a chapter is
recovered as long as its own marker pair survived.
"""

import re
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from novel_translator.config import FILE_START_MARKER, FILE_END_MARKER
from novel_translator.core.exceptions import BatchDecodeEmpty


def start_marker(chapter_id: str) -> str:
    return FILE_START_MARKER.format(id=chapter_id)


def end_marker(chapter_id: str) -> str:
    return FILE_END_MARKER.format(id=chapter_id)


def encode_batch(items: Iterable[Tuple[str, str]]) -> str:
    """
    Wrap every (chapter_id, text) pair in its marker pair.

    Args:
        items: (chapter id, source text) pairs, in batch order

    Returns:
        Payload block ready to be appended to the prompt
    """
    return ''.join(
        f"\n{start_marker(chapter_id)}\n{text}\n{end_marker(chapter_id)}\n"
        for chapter_id, text in items
    )


def _compile_pair_regex(chapter_id: str) -> re.Pattern:
    escaped = re.escape(chapter_id)
    return re.compile(
        rf"\[\[\[FILE_ID:\s*{escaped}\s*\]\]\](.*?)\[\[\[FILE_END:\s*{escaped}\s*\]\]\]",
        re.IGNORECASE | re.DOTALL
    )


def decode_batch(response: str, chapter_ids: Sequence[str]) -> Dict[str, str]:
    """
    Recover per-chapter text from a model response.

    For each id only the first marker pair counts. Ids without a complete
    pair, or with nothing between the markers, are left out of the result:
    that is a partial success, not an error.

    Args:
        response: Raw model output
        chapter_ids: Ids that were sent in the batch

    Returns:
        Mapping chapter id -> trimmed translated text
    """
    results: Dict[str, str] = {}
    if not response:
        return results

    for chapter_id in chapter_ids:
        match = _compile_pair_regex(chapter_id).search(response)
        if match:
            text = match.group(1).strip()
            if text:
                results[chapter_id] = text
    return results


def decode_batch_strict(response: str, chapter_ids: Sequence[str]) -> Dict[str, str]:
    """
    Like decode_batch, but an empty result fails the whole batch.

    Raises:
        BatchDecodeEmpty: If no chapter could be recovered
    """
    results = decode_batch(response, chapter_ids)
    if not results:
        raise BatchDecodeEmpty(
            "Model response contained no recoverable chapter markers.",
            chapter_ids=list(chapter_ids)
        )
    return results


def missing_ids(results: Mapping[str, str], chapter_ids: Sequence[str]) -> list:
    """Ids requested in the batch but absent from the decoded results."""
    return [chapter_id for chapter_id in chapter_ids if chapter_id not in results]
