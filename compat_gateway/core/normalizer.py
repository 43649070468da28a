"""Extraction of canonical text from non-streamed backend responses.

WHY: Depending on the model family, the backend returns a finished
generation in one of several shapes: a plain ``response`` string, a
nested ``{"response": {"text": ...}}`` object, or an OpenAI Responses-style
``output`` array of messages with typed content parts. Every endpoint needs
one string out of whatever arrived, and must never fail doing so.

HOW: classify_response() maps the raw object onto an explicit tagged union
(DirectText | NestedContent | OutputMessages | Unrecognized), trying the
shapes in a fixed priority order. Each variant knows how to produce its
text; Unrecognized serializes the whole object as the fallback.
normalize_response() is the total entry point.

RULES:
- Priority: direct text field → nested text/content → output messages
  → fallback
- normalize_response() always returns a str and never raises
- None normalizes to ""; a bare string is returned unchanged
- strip_reasoning() drops everything through the first reasoning delimiter,
  the same cut the streaming ContentFilter makes
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

_DIRECT_KEYS = ("response", "text")
_NESTED_KEYS = ("response", "result")
_NESTED_TEXT_KEYS = ("text", "content")
_OUTPUT_TEXT_TYPE = "output_text"


@dataclass(frozen=True)
class DirectText:
    """``{"response": "..."}`` or ``{"text": "..."}``."""

    value: str

    def text(self) -> str:
        return self.value


@dataclass(frozen=True)
class NestedContent:
    """``{"response": {"text" | "content": "..."}}``."""

    value: str

    def text(self) -> str:
        return self.value


@dataclass(frozen=True)
class OutputMessages:
    """``{"output": [{"type": "message", "content": [{"type": "output_text", ...}]}]}``."""

    parts: tuple[str, ...]

    def text(self) -> str:
        return "".join(self.parts)


@dataclass(frozen=True)
class Unrecognized:
    """Any other shape; rendered as its JSON (or ``str``) representation."""

    raw: Any

    def text(self) -> str:
        if self.raw is None:
            return ""
        if isinstance(self.raw, str):
            return self.raw
        try:
            return json.dumps(self.raw, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return _safe_str(self.raw)


BackendResponse = Union[DirectText, NestedContent, OutputMessages, Unrecognized]


def classify_response(obj: Any) -> BackendResponse:
    """Identify which known shape a full backend response has."""
    if not isinstance(obj, dict):
        return Unrecognized(obj)

    for key in _DIRECT_KEYS:
        value = obj.get(key)
        if isinstance(value, str):
            return DirectText(value)

    for key in _NESTED_KEYS:
        nested = obj.get(key)
        if isinstance(nested, dict):
            for sub_key in _NESTED_TEXT_KEYS:
                value = nested.get(sub_key)
                if isinstance(value, str):
                    return NestedContent(value)

    output = obj.get("output")
    if isinstance(output, list):
        parts = _output_text_parts(output)
        if parts is not None:
            return OutputMessages(tuple(parts))

    return Unrecognized(obj)


def normalize_response(obj: Any) -> str:
    """Return the canonical text of a full backend response. Never raises."""
    try:
        return classify_response(obj).text()
    except Exception:
        logger.exception("Unexpected failure normalizing backend response")
        return _safe_str(obj)


def strip_reasoning(text: str, delimiter: str = "</think>") -> str:
    """Remove a reasoning preamble closed by ``delimiter``, if present."""
    if not delimiter or delimiter not in text:
        return text
    return text.split(delimiter, 1)[1]


# ---------------------------------------------------------------------------
# Output-array helpers (module-private)
# ---------------------------------------------------------------------------


def _output_text_parts(output: list[Any]) -> list[str] | None:
    """Collect output_text parts from an ``output`` array.

    RULES:
    - The assistant message's output_text parts win
    - Otherwise top-level output_text items
    - Otherwise the first message that carries any output_text parts
    - None when the array holds no text at all
    """
    messages = [item for item in output if isinstance(item, dict)]

    for item in messages:
        if item.get("type", "message") == "message" and item.get("role") == "assistant":
            parts = _content_parts(item.get("content"))
            if parts:
                return parts

    top_level = [
        item["text"] for item in messages
        if item.get("type") == _OUTPUT_TEXT_TYPE and isinstance(item.get("text"), str)
    ]
    if top_level:
        return top_level

    for item in messages:
        parts = _content_parts(item.get("content"))
        if parts:
            return parts

    return None


def _content_parts(content: Any) -> list[str]:
    if isinstance(content, str):
        return [content]
    if not isinstance(content, list):
        return []
    return [
        part["text"] for part in content
        if isinstance(part, dict)
        and part.get("type") == _OUTPUT_TEXT_TYPE
        and isinstance(part.get("text"), str)
    ]


def _safe_str(obj: Any) -> str:
    try:
        return str(obj)
    except Exception:
        return ""
