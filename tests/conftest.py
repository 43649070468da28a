"""Shared test fixtures for the compat_gateway test suite.

WHY: Several test modules drive the streaming transcoder, parse the SSE
text it produces, or stand in for the inference backend. Centralizing
those helpers here keeps every test module on the same sample data.

HOW: Pytest fixtures provide the sample word timestamps, the sample
backend stream, a helper that runs the async transcoder to completion, an
SSE parser, and a fake backend client class that records its calls.

RULES:
- Sample stream and words match the documented gateway scenarios exactly
- The fake backend never touches the network
- Each fixture returns fresh objects (no shared mutable state)
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from compat_gateway.core.content_filter import ContentFilter
from compat_gateway.core.ir import StreamKind, new_stream_state
from compat_gateway.core.transcoder import transcode_stream
from compat_gateway.errors import BackendError


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

HELLO_WORLD_WORDS: List[Dict[str, Any]] = [
    {"word": "Hello,", "start": 0, "end": 0.5},
    {"word": "world!", "start": 0.6, "end": 1.2},
]

SAMPLE_STREAM_CHUNKS: List[bytes] = [
    b'data: {"response":"Hi"}\n\n',
    b'data: {"response":" there"}\n\n',
    b"data: [DONE]\n\n",
]


async def _iterate(chunks, fail_with=None):
    for chunk in chunks:
        yield chunk
    if fail_with is not None:
        raise fail_with


def parse_sse_payloads(frames: List[str]) -> List[Any]:
    """Decode serialized SSE frames; the sentinel decodes to "[DONE]"."""
    payloads = []
    for frame in frames:
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        body = frame[len("data: "):-2]
        payloads.append(body if body == "[DONE]" else json.loads(body))
    return payloads


@pytest.fixture
def hello_world_words():
    """The two-word sample from the subtitle scenario."""
    return [dict(w) for w in HELLO_WORLD_WORDS]


@pytest.fixture
def sample_stream_chunks():
    """Backend stream: "Hi", " there", then [DONE]."""
    return list(SAMPLE_STREAM_CHUNKS)


@pytest.fixture
def sse_payloads():
    return parse_sse_payloads


@pytest.fixture
def run_transcoder():
    """Run the transcoder over a chunk list and return the emitted frames.

    Usage: run_transcoder(chunks, kind=..., strip_reasoning=..., fail_with=...)
    """

    def _run(
        chunks: List[bytes],
        kind: StreamKind = StreamKind.CHAT,
        model: str = "@cf/test/model",
        strip_reasoning: bool = False,
        flush_unclosed: bool = True,
        fail_with: Optional[Exception] = None,
    ) -> List[str]:
        state = new_stream_state(model, kind)
        content_filter = None
        if strip_reasoning:
            content_filter = ContentFilter(state, "</think>", flush_unclosed)

        async def _collect():
            return [
                frame async for frame in
                transcode_stream(_iterate(chunks, fail_with), state, content_filter)
            ]

        return asyncio.run(_collect())

    return _run


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeBackendClient:
    """Stands in for BackendClient; records calls and replays canned output.

    RULES:
    - result: returned by run()
    - chunks: yielded by the iterator open_stream() returns
    - open_error: raised by run()/open_stream() before any output
    - stream_error: raised by the stream iterator after all chunks
    """

    def __init__(
        self,
        result: Any = None,
        chunks: Optional[List[bytes]] = None,
        open_error: Optional[Exception] = None,
        stream_error: Optional[Exception] = None,
    ) -> None:
        self.result = result
        self.chunks = chunks or []
        self.open_error = open_error
        self.stream_error = stream_error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def __aenter__(self) -> "FakeBackendClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.closed = True

    async def run(self, model: str, inputs: Dict[str, Any]) -> Any:
        self.calls.append({"model": model, "inputs": inputs, "stream": False})
        if self.open_error is not None:
            raise self.open_error
        return self.result

    async def open_stream(self, model: str, inputs: Dict[str, Any]):
        self.calls.append({"model": model, "inputs": inputs, "stream": True})
        if self.open_error is not None:
            raise self.open_error
        return _iterate(self.chunks, self.stream_error)


@pytest.fixture
def fake_backend_cls():
    return FakeBackendClient


@pytest.fixture
def backend_failure():
    return BackendError("Backend returned HTTP 500: boom", backend_status=500)
