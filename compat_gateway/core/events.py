"""Classification of stream lines into data, termination, or noise events.

WHY: After reassembly each line is one of: a ``data:`` frame carrying a
JSON fragment of generated text, the literal ``[DONE]`` sentinel, or
something the gateway does not care about (blank separators, ``event:`` or
``id:`` fields, keep-alive comments). The translator only wants the first
two, already decoded.

HOW: parse_line() strips the data prefix, checks for the sentinel, then
decodes the JSON payload and pulls the text fragment out of it. The three
outcomes are modelled as the Delta / Done / Ignored variants of Event.

RULES:
- A line that fails to parse is logged and classified Ignored; it never
  aborts the stream
- Lines without the ``data:`` prefix are Ignored
- Text is taken from ``response``, then ``text``, then the OpenAI-shaped
  ``choices[0].delta.content`` / ``choices[0].text``
- A decoded payload with no text field yields Delta("")
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class Delta:
    """An incremental fragment of generated text."""

    text: str


@dataclass(frozen=True)
class Done:
    """The backend's end-of-stream sentinel."""


@dataclass(frozen=True)
class Ignored:
    """A line carrying nothing the translator needs."""

    reason: str = ""


Event = Union[Delta, Done, Ignored]


def parse_line(line: str) -> Event:
    """Classify one logical line and decode its payload.

    Args:
        line: A reassembled line, with or without its terminator.

    Returns:
        Delta with the text fragment, Done for the sentinel, or Ignored.
    """
    stripped = line.strip()
    if not stripped.startswith(DATA_PREFIX):
        return Ignored("no data prefix")

    payload = stripped[len(DATA_PREFIX):].strip()
    if not payload:
        return Ignored("empty payload")
    if payload == DONE_SENTINEL:
        return Done()

    try:
        data = json.loads(payload)
    except (ValueError, RecursionError):
        logger.warning("Skipping malformed stream line: %.200s", payload)
        return Ignored("malformed json")

    if not isinstance(data, dict):
        logger.warning("Skipping non-object stream payload: %.200s", payload)
        return Ignored("not an object")

    return Delta(extract_fragment(data))


def extract_fragment(data: dict[str, Any]) -> str:
    """Pull the generated text out of one decoded stream payload."""
    for key in ("response", "text"):
        value = data.get(key)
        if isinstance(value, str):
            return value

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        choice = choices[0]
        delta = choice.get("delta")
        if isinstance(delta, dict) and isinstance(delta.get("content"), str):
            return delta["content"]
        if isinstance(choice.get("text"), str):
            return choice["text"]

    return ""
