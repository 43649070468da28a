"""WebVTT subtitle formatter.

RULES:
- Starts with the ``WEBVTT`` header line followed by a blank line
- One cue per segment: ``start --> end``, text, blank line (no cue ids)
- Timestamps use a period millisecond separator (``00:00:01.200``)
- Media type ``text/vtt``
"""

from __future__ import annotations

from compat_gateway.config import SUBTITLE_MEDIA_TYPES
from compat_gateway.core.ir import SubtitleDocument
from compat_gateway.formatters.base import BaseFormatter, FormatterOutput
from compat_gateway.formatters.timecode import format_timestamp

WEBVTT_HEADER = "WEBVTT\n\n"


class WebVTTFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "WebVTT"

    def format(self, document: SubtitleDocument) -> FormatterOutput:
        parts = [WEBVTT_HEADER]
        for segment in document.segments:
            parts.append("{} --> {}\n{}\n\n".format(
                format_timestamp(segment.start, "."),
                format_timestamp(segment.end, "."),
                segment.text,
            ))
        return FormatterOutput(
            suffix=".vtt",
            content="".join(parts),
            media_type=SUBTITLE_MEDIA_TYPES["vtt"],
        )
