"""Suppression of a leading reasoning preamble in streamed text.

WHY: Reasoning models emit their chain of thought before the answer and
close it with a delimiter such as ``</think>``. Completion clients expect
only the answer.

HOW: Text fragments are appended to ``state.held_text`` until the
concatenation contains the delimiter. At that point everything up to and
past the delimiter is dropped, the remainder is released, and the filter
latches open for the rest of the response. The delimiter may be split
across any number of fragments.

RULES:
- One-way latch per response: once past the boundary, text passes unchanged
- Nothing is released before the delimiter has been seen
- finish() releases withheld text only when flush_unclosed is set; otherwise
  a response that never closes its preamble produces no text
"""

from __future__ import annotations

import logging

from compat_gateway.core.ir import StreamState

logger = logging.getLogger(__name__)


class ContentFilter:
    """Withholds streamed text until a closing delimiter has been seen."""

    def __init__(
        self,
        state: StreamState,
        delimiter: str = "</think>",
        flush_unclosed: bool = True,
    ) -> None:
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string")
        self._state = state
        self._delimiter = delimiter
        self._flush_unclosed = flush_unclosed

    @property
    def transparent(self) -> bool:
        return self._state.past_filter_boundary

    def push(self, text: str) -> str:
        """Feed one fragment; return the text that may be emitted now."""
        state = self._state
        if state.past_filter_boundary:
            return text

        state.held_text += text
        idx = state.held_text.find(self._delimiter)
        if idx == -1:
            return ""

        released = state.held_text[idx + len(self._delimiter):]
        state.held_text = ""
        state.past_filter_boundary = True
        return released

    def finish(self) -> str:
        """Return withheld text at end of stream, per the flush policy."""
        state = self._state
        if state.past_filter_boundary or not state.held_text:
            return ""

        held = state.held_text
        state.held_text = ""
        if self._flush_unclosed:
            logger.info(
                "Delimiter %r never seen in response %s; releasing %d held chars",
                self._delimiter, state.id, len(held),
            )
            return held

        logger.warning(
            "Delimiter %r never seen in response %s; dropping %d held chars",
            self._delimiter, state.id, len(held),
        )
        return ""
