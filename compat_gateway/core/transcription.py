"""Shaping of speech-recognition results into transcription responses.

WHY: The speech backend returns ``{text, words: [{word, start, end}], ...}``
while clients ask for one of five OpenAI response formats: JSON with
optional word or segment timestamps, verbose JSON, plain text, SRT, or
WebVTT.

HOW: The result's text is taken as-is when it is a string; its words are
parsed once, grouped into segments on demand, and rendered through the
subtitle formatter registry for the subtitle formats.

RULES:
- json: ``{"text"}`` plus ``words`` for word granularity or ``segments``
  for segment granularity, only when there are words
- verbose_json: task, language, duration, text, words, segments
- text: the plain text as ``text/plain``
- srt/vtt: rendered subtitles; plain text when there are no words
- Malformed word data degrades to "no words", never to an error
- A missing or non-string text field yields "" (never the raw result)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from compat_gateway.core.ir import SubtitleDocument, SubtitleFormat, WordTimestamp
from compat_gateway.core.segments import build_segments, parse_words
from compat_gateway.formatters import render_subtitles

logger = logging.getLogger(__name__)


class ResponseFormat(str, enum.Enum):
    JSON = "json"
    VERBOSE_JSON = "verbose_json"
    TEXT = "text"
    SRT = "srt"
    VTT = "vtt"


class TimestampGranularity(str, enum.Enum):
    WORD = "word"
    SEGMENT = "segment"


@dataclass
class TranscriptionOutput:
    """A rendered transcription body and its content type."""

    content: dict[str, Any] | str
    media_type: str


def extract_words(result: Any) -> list[WordTimestamp]:
    """Parse the result's word timestamps; [] when absent or malformed."""
    if not isinstance(result, dict) or not result.get("words"):
        return []
    try:
        return parse_words(result["words"])
    except (TypeError, KeyError, ValueError) as exc:
        logger.warning("Ignoring malformed word timestamps in transcription: %s", exc)
        return []


def format_transcription(
    result: Any,
    response_format: ResponseFormat | str = ResponseFormat.JSON,
    timestamp_granularities: TimestampGranularity | str | None = None,
    language: str | None = None,
) -> TranscriptionOutput:
    """Build the client-facing transcription body for a backend result.

    Args:
        result: The backend's speech-recognition result object.
        response_format: One of the ResponseFormat values.
        timestamp_granularities: ``word`` or ``segment`` (json format only).
        language: Language hint from the request, used by verbose_json when
                  the backend reports none.

    Returns:
        TranscriptionOutput with a dict (JSON formats) or str body.
    """
    response_format = ResponseFormat(response_format)
    granularity = TimestampGranularity(timestamp_granularities) if timestamp_granularities else None
    text = _result_text(result)
    words = extract_words(result)

    if response_format is ResponseFormat.JSON:
        body: dict[str, Any] = {"text": text}
        if granularity is TimestampGranularity.WORD and words:
            body["words"] = [w.to_dict() for w in words]
        if granularity is TimestampGranularity.SEGMENT and words:
            body["segments"] = [s.to_dict() for s in build_segments(words)]
        return TranscriptionOutput(body, "application/json")

    if response_format is ResponseFormat.VERBOSE_JSON:
        info = result if isinstance(result, dict) else {}
        body = {
            "task": "transcribe",
            "language": info.get("language") or language or "en",
            "duration": info.get("duration") or (words[-1].end if words else 0),
            "text": text,
            "words": [w.to_dict() for w in words],
            "segments": [s.to_dict() for s in build_segments(words)],
        }
        return TranscriptionOutput(body, "application/json")

    if response_format is ResponseFormat.TEXT:
        return TranscriptionOutput(text, "text/plain")

    segments = build_segments(words)
    if not segments:
        return TranscriptionOutput(text, "text/plain")

    document = SubtitleDocument(
        segments=tuple(segments),
        format=SubtitleFormat(response_format.value),
    )
    rendered = render_subtitles(document)
    return TranscriptionOutput(rendered.content, rendered.media_type)


def _result_text(result: Any) -> str:
    """The recognized text, or "" when the result carries no text string."""
    if isinstance(result, dict) and isinstance(result.get("text"), str):
        return result["text"]
    return ""
