"""Data structures shared by the transcoder, segment builder, and formatters.

WHY: The streaming path and the timing path each pass a handful of small
records between components. Typed dataclasses make the hand-offs explicit
and keep per-response state in one visible object instead of closure
variables.

HOW: Two families of dataclasses:
  Streaming: StreamKind, StreamState, OutputFrame
  Timing:    WordTimestamp, Segment, SubtitleFormat, SubtitleDocument

RULES:
- StreamState is created once per response and owned by the task serving it
- id/created/model on every OutputFrame come from the owning StreamState
- All times are float seconds
- Segment/SubtitleDocument are built once and never mutated afterwards
"""

from __future__ import annotations

import enum
import json
import time
import uuid
from dataclasses import dataclass
from typing import Any


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class StreamKind(str, enum.Enum):
    """Target schema of a streamed response.

    RULES:
    - chat: ``chat.completion.chunk`` objects with ``delta`` choices and a
      leading role announcement
    - completion: ``text_completion`` objects with ``text`` choices
    """

    CHAT = "chat"
    COMPLETION = "completion"

    @property
    def object_name(self) -> str:
        if self is StreamKind.CHAT:
            return "chat.completion.chunk"
        return "text_completion"

    @property
    def id_prefix(self) -> str:
        if self is StreamKind.CHAT:
            return "chatcmpl-"
        return "cmpl-"


@dataclass
class StreamState:
    """Mutable framing state for one streamed response.

    WHY: The reassembler, content filter, and translator all carry state
    across chunks. Keeping it in one explicit record, created per response,
    rules out leakage between concurrent requests.

    RULES:
    - buffer: at most one incomplete trailing line between chunks
    - held_text: text withheld by the content filter before its delimiter
    - past_filter_boundary: one-way latch, never reset
    - role_sent: the role announcement has been emitted
    - finished: no OutputFrame may be produced once this is True
    """

    id: str
    kind: StreamKind
    created: int
    model: str
    buffer: str = ""
    held_text: str = ""
    past_filter_boundary: bool = False
    role_sent: bool = False
    finished: bool = False

    @property
    def object(self) -> str:
        return self.kind.object_name


def new_response_id(kind: StreamKind) -> str:
    return kind.id_prefix + uuid.uuid4().hex


def new_stream_state(model: str, kind: StreamKind = StreamKind.CHAT) -> StreamState:
    """Create the state record for a new streamed response."""
    return StreamState(
        id=new_response_id(kind),
        kind=kind,
        created=int(time.time()),
        model=model,
    )


@dataclass
class OutputFrame:
    """One ``data:`` frame of the outgoing event stream."""

    id: str
    object: str
    created: int
    model: str
    choices: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": self.choices,
        }

    def to_sse(self) -> str:
        return sse_data(self.to_dict())


def sse_data(payload: dict[str, Any]) -> str:
    """Serialize a payload as one SSE data frame."""
    return "data: {}\n\n".format(json.dumps(payload, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordTimestamp:
    """A single recognized word with its start and end time in seconds."""

    word: str
    start: float
    end: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WordTimestamp:
        """Parse a word timestamp from a backend dict.

        RULES:
        - word must be a string; start/end must be numeric
        - Raises TypeError/KeyError/ValueError on malformed input
        """
        word = data["word"]
        if not isinstance(word, str):
            raise TypeError("word must be a string, got {}".format(type(word).__name__))
        start = float(data["start"])
        end = float(data["end"])
        if end < start:
            raise ValueError("word {!r} ends before it starts".format(word))
        return cls(word=word, start=start, end=end)

    def to_dict(self) -> dict[str, Any]:
        return {"word": self.word, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class Segment:
    """A time-bounded run of consecutive words, one subtitle cue.

    RULES:
    - start/end are inherited from the first/last member word
    - word_count is the number of member words (not serialized)
    """

    id: int
    start: float
    end: float
    text: str
    word_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "start": self.start, "end": self.end, "text": self.text}


class SubtitleFormat(str, enum.Enum):
    SRT = "srt"
    VTT = "vtt"


@dataclass(frozen=True)
class SubtitleDocument:
    """Ordered segments plus the subtitle format to render them in."""

    segments: tuple[Segment, ...]
    format: SubtitleFormat
