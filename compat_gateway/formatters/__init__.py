"""Subtitle formatter registry.

WHY: The transcription endpoint needs a single lookup to find the right
renderer for a ``response_format``. A central dict makes adding a format a
one-line change.

HOW: FORMATTERS maps SubtitleFormat values to formatter *classes*.
render_subtitles() instantiates the one matching a document's format tag.

RULES:
- Keys are the ``response_format`` strings clients send
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from compat_gateway.core.ir import SubtitleDocument, SubtitleFormat
from compat_gateway.formatters.base import BaseFormatter, FormatterOutput
from compat_gateway.formatters.srt import SRTFormatter
from compat_gateway.formatters.vtt import WebVTTFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    SubtitleFormat.SRT.value: SRTFormatter,
    SubtitleFormat.VTT.value: WebVTTFormatter,
}


def render_subtitles(document: SubtitleDocument) -> FormatterOutput:
    """Render a subtitle document with the formatter for its format tag."""
    formatter = FORMATTERS[SubtitleFormat(document.format).value]()
    return formatter.format(document)


__all__ = ["FORMATTERS", "BaseFormatter", "FormatterOutput", "render_subtitles"]
