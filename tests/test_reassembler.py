"""Unit tests for the chunk reassembler.

WHY: Backend chunks are cut at arbitrary byte offsets. If reassembly
depended on where the cuts fall, frames would be lost or corrupted only
under particular network conditions.

HOW: The same byte stream is fed through every fixed chunk size and a set
of seeded random splits; all must produce the reference line sequence.
Buffer and flush behavior is checked directly.
"""

import random

import pytest

from compat_gateway.core.ir import new_stream_state
from compat_gateway.core.reassembler import ChunkReassembler, reassemble_lines

STREAM = (
    'data: {"response":"Hé"}\n\n'
    'data: {"response":" — ünïcode ✓"}\n\n'
    "data: [DONE]\n\n"
).encode("utf-8")

EXPECTED_LINES = [
    'data: {"response":"Hé"}\n',
    "\n",
    'data: {"response":" — ünïcode ✓"}\n',
    "\n",
    "data: [DONE]\n",
    "\n",
]


def _split_fixed(data, size):
    return [data[i:i + size] for i in range(0, len(data), size)]


def _split_random(data, seed):
    rng = random.Random(seed)
    chunks = []
    i = 0
    while i < len(data):
        step = rng.randint(1, 12)
        chunks.append(data[i:i + step])
        i += step
    return chunks


class TestChunkBoundaryInvariance:
    """Any chunking of one byte stream yields the same lines."""

    def test_single_chunk(self):
        assert reassemble_lines([STREAM], new_stream_state("m")) == EXPECTED_LINES

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16, 64])
    def test_fixed_chunk_sizes(self, size):
        lines = reassemble_lines(_split_fixed(STREAM, size), new_stream_state("m"))
        assert lines == EXPECTED_LINES

    @pytest.mark.parametrize("seed", range(10))
    def test_random_splits(self, seed):
        lines = reassemble_lines(_split_random(STREAM, seed), new_stream_state("m"))
        assert lines == EXPECTED_LINES

    def test_multibyte_character_split_across_chunks(self):
        data = "data: ✓\n".encode("utf-8")
        cut = data.index(b"\xe2") + 1  # inside the 3-byte check mark
        lines = reassemble_lines([data[:cut], data[cut:]], new_stream_state("m"))
        assert lines == ["data: ✓\n"]


class TestBuffering:
    """Partial lines stay buffered until their terminator arrives."""

    def test_partial_line_is_held(self):
        state = new_stream_state("m")
        reassembler = ChunkReassembler(state)
        assert reassembler.feed(b"data: {\"resp") == []
        assert state.buffer == 'data: {"resp'

    def test_buffer_holds_at_most_one_incomplete_line(self):
        state = new_stream_state("m")
        reassembler = ChunkReassembler(state)
        lines = reassembler.feed(b"one\ntwo\nthr")
        assert lines == ["one\n", "two\n"]
        assert state.buffer == "thr"
        assert "\n" not in state.buffer

    def test_completion_emits_line_with_terminator(self):
        reassembler = ChunkReassembler(new_stream_state("m"))
        reassembler.feed(b"abc")
        assert reassembler.feed(b"def\nghi") == ["abcdef\n"]

    def test_rejects_text_chunks(self):
        reassembler = ChunkReassembler(new_stream_state("m"))
        reassembler.feed(b"data: \xe2\x9c")
        with pytest.raises(TypeError):
            reassembler.feed("x\n")
        assert reassembler.feed(b"\x93\n") == ["data: \u2713\n"]


class TestFlush:
    """End of input flushes an unterminated remainder as a final line."""

    def test_flush_returns_remainder(self):
        state = new_stream_state("m")
        reassembler = ChunkReassembler(state)
        reassembler.feed(b"data: [DONE]")
        assert reassembler.flush() == ["data: [DONE]"]
        assert state.buffer == ""

    def test_flush_on_empty_buffer_returns_nothing(self):
        reassembler = ChunkReassembler(new_stream_state("m"))
        reassembler.feed(b"line\n")
        assert reassembler.flush() == []

    def test_no_bytes_dropped(self):
        lines = reassemble_lines(_split_random(STREAM, 42), new_stream_state("m"))
        assert "".join(lines).encode("utf-8") == STREAM
