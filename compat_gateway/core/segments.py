"""Grouping of word-level timestamps into subtitle segments.

WHY: The speech backend returns one timestamp per word but no sentence or
cue structure. Subtitle formats and ``segment`` timestamp granularity need
readable, time-bounded groups of words.

HOW: A single pass over the words accumulates text and extends the current
segment's end time. The segment is closed when the current word ends a
sentence (``.``, ``!``, ``?``) or when it reaches the per-segment word cap.
The final segment is closed at the end of the array.

RULES:
- Every word lands in exactly one segment; none dropped or duplicated
- Segment ids are sequential from 0
- start/end come from the first/last word of the segment
- Text is the words joined by single spaces
- Empty or malformed input returns [] and never raises
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from compat_gateway.core.ir import Segment, WordTimestamp

logger = logging.getLogger(__name__)

SENTENCE_ENDINGS = (".", "!", "?")
MAX_WORDS_PER_SEGMENT = 10


def parse_words(raw_words: Any) -> list[WordTimestamp]:
    """Parse backend word dicts into WordTimestamp objects.

    Raises:
        TypeError, KeyError, ValueError: on malformed input.
    """
    if not isinstance(raw_words, (list, tuple)):
        raise TypeError("words must be a list, got {}".format(type(raw_words).__name__))
    return [
        w if isinstance(w, WordTimestamp) else WordTimestamp.from_dict(w)
        for w in raw_words
    ]


def build_segments(
    words: Iterable[WordTimestamp | dict[str, Any]] | None,
    max_words: int = MAX_WORDS_PER_SEGMENT,
) -> list[Segment]:
    """Group ordered word timestamps into segments.

    Args:
        words: WordTimestamp objects or raw ``{word, start, end}`` dicts,
               ordered by start time.
        max_words: Word count at which a segment is closed.

    Returns:
        Segments partitioning the input words, or [] when the input is
        empty or malformed.
    """
    if not words:
        return []
    try:
        if not isinstance(words, (list, tuple)):
            words = list(words)
        parsed = parse_words(words)
    except (TypeError, KeyError, ValueError) as exc:
        logger.warning("Ignoring malformed word timestamps: %s", exc)
        return []

    segments: list[Segment] = []
    current: list[WordTimestamp] = []

    for word in parsed:
        current.append(word)
        if word.word.endswith(SENTENCE_ENDINGS) or len(current) >= max_words:
            segments.append(_close_segment(len(segments), current))
            current = []

    if current:
        segments.append(_close_segment(len(segments), current))

    return segments


def _close_segment(segment_id: int, words: list[WordTimestamp]) -> Segment:
    return Segment(
        id=segment_id,
        start=words[0].start,
        end=words[-1].end,
        text=" ".join(w.word for w in words),
        word_count=len(words),
    )
