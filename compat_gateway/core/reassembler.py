"""Reassembly of unaligned byte chunks into logical lines.

WHY: The backend streams its event frames as raw byte chunks whose
boundaries have nothing to do with line boundaries: a chunk may hold half
a line, several lines, or even half of a multi-byte UTF-8 character. The
event parser needs whole lines.

HOW: Each chunk is decoded with an incremental UTF-8 decoder (which holds
back incomplete multi-byte sequences) and appended to the state buffer.
Every complete line, terminator included, is split off; the trailing
partial line stays buffered for the next chunk.

RULES:
- Bytes are never dropped or reordered
- The same byte stream yields the same lines however it is chunked
- Between chunks the buffer holds at most one incomplete line
- flush() returns a non-empty unterminated remainder as a final line
- Chunks must be bytes; text is only produced by the decoder
"""

from __future__ import annotations

import codecs
from collections.abc import Iterable

from compat_gateway.core.ir import StreamState

_LINE_TERMINATOR = "\n"


class ChunkReassembler:
    """Splits an arriving byte stream into ``\\n``-terminated lines."""

    def __init__(self, state: StreamState) -> None:
        self._state = state
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> list[str]:
        """Append one chunk and return the lines it completed, in order."""
        if not isinstance(chunk, (bytes, bytearray)):
            raise TypeError("chunk must be bytes, got {}".format(type(chunk).__name__))
        self._state.buffer += self._decoder.decode(chunk)
        return self._split_complete_lines()

    def flush(self) -> list[str]:
        """Return whatever is left at end of input as a final line."""
        self._state.buffer += self._decoder.decode(b"", final=True)
        lines = self._split_complete_lines()
        if self._state.buffer:
            lines.append(self._state.buffer)
            self._state.buffer = ""
        return lines

    def _split_complete_lines(self) -> list[str]:
        buffer = self._state.buffer
        lines: list[str] = []
        start = 0
        while True:
            idx = buffer.find(_LINE_TERMINATOR, start)
            if idx == -1:
                break
            lines.append(buffer[start:idx + 1])
            start = idx + 1
        self._state.buffer = buffer[start:]
        return lines


def reassemble_lines(chunks: Iterable[bytes], state: StreamState) -> list[str]:
    """Reassemble a complete, already-received chunk sequence into lines."""
    reassembler = ChunkReassembler(state)
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(reassembler.feed(chunk))
    lines.extend(reassembler.flush())
    return lines
