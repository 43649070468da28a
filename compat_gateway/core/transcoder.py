"""Streaming transcoder: backend byte chunks in, OpenAI SSE frames out.

WHY: The gateway's streaming endpoints must turn the backend's event
stream into a compliant OpenAI stream without reordering, without
buffering the whole response, and without ever leaving the client with an
unterminated stream.

HOW: StreamTranscoder chains ChunkReassembler → parse_line → ContentFilter
→ SchemaTranslator over one StreamState. frames() is an async generator:
it pulls the next backend chunk only when the consumer asks for the next
frame, so a slow client stalls the backend read instead of growing a
buffer.

RULES:
- Frames come out in the order of the chunks that produced them
- Malformed lines are skipped by the parser; the stream continues
- A backend failure mid-stream yields one error frame and the sentinel
- Input that ends without [DONE] still gets a finish frame and the sentinel
- Nothing is yielded after the sentinel; remaining chunks are not read
- The chunk iterator is closed on every exit path (including client
  disconnect), releasing the backend connection
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator

from compat_gateway.core.content_filter import ContentFilter
from compat_gateway.core.events import Delta, Done, parse_line
from compat_gateway.core.ir import StreamState
from compat_gateway.core.reassembler import ChunkReassembler
from compat_gateway.core.translator import SchemaTranslator

logger = logging.getLogger(__name__)


class StreamTranscoder:
    """Transcodes one backend stream for one response."""

    def __init__(
        self,
        state: StreamState,
        content_filter: ContentFilter | None = None,
    ) -> None:
        self.state = state
        self._reassembler = ChunkReassembler(state)
        self._translator = SchemaTranslator(state)
        self._filter = content_filter

    async def frames(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        """Yield serialized SSE frames for the given backend chunks."""
        try:
            try:
                async for chunk in chunks:
                    for line in self._reassembler.feed(chunk):
                        for out in self._handle_line(line):
                            yield out
                    if self._translator.finished:
                        return
                for line in self._reassembler.flush():
                    for out in self._handle_line(line):
                        yield out
            except Exception as exc:
                logger.exception("Backend stream failed for response %s", self.state.id)
                for out in self._translator.error(_describe(exc)):
                    yield out
                return

            if not self._translator.finished:
                logger.warning(
                    "Backend stream for response %s ended without [DONE]", self.state.id
                )
                for out in self._finish():
                    yield out
        finally:
            await _close(chunks)

    def _handle_line(self, line: str) -> list[str]:
        if self._translator.finished:
            return []
        event = parse_line(line)
        if isinstance(event, Done):
            return self._finish()
        if isinstance(event, Delta):
            return self._emit(event.text)
        return []

    def _emit(self, text: str) -> list[str]:
        if self._filter is not None:
            text = self._filter.push(text)
        return [frame.to_sse() for frame in self._translator.content(text)]

    def _finish(self) -> list[str]:
        out: list[str] = []
        if self._filter is not None:
            tail = self._filter.finish()
            out.extend(frame.to_sse() for frame in self._translator.content(tail))
        out.extend(self._translator.done())
        return out


def transcode_stream(
    chunks: AsyncIterable[bytes],
    state: StreamState,
    content_filter: ContentFilter | None = None,
) -> AsyncIterator[str]:
    """Convenience wrapper: a lazy, single-pass SSE frame sequence."""
    return StreamTranscoder(state, content_filter).frames(chunks)


def _describe(exc: Exception) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or exc.__class__.__name__


async def _close(chunks: AsyncIterable[bytes]) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()
