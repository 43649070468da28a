"""SubRip (SRT) subtitle formatter.

RULES:
- One block per segment: 1-based index, ``start --> end``, text, blank line
- Timestamps use a comma millisecond separator (``00:00:01,200``)
- Media type ``text/plain``
"""

from __future__ import annotations

from compat_gateway.config import SUBTITLE_MEDIA_TYPES
from compat_gateway.core.ir import SubtitleDocument
from compat_gateway.formatters.base import BaseFormatter, FormatterOutput
from compat_gateway.formatters.timecode import format_timestamp


class SRTFormatter(BaseFormatter):
    @property
    def name(self) -> str:
        return "SubRip"

    def format(self, document: SubtitleDocument) -> FormatterOutput:
        blocks = []
        for index, segment in enumerate(document.segments, start=1):
            blocks.append("{}\n{} --> {}\n{}\n\n".format(
                index,
                format_timestamp(segment.start, ","),
                format_timestamp(segment.end, ","),
                segment.text,
            ))
        return FormatterOutput(
            suffix=".srt",
            content="".join(blocks),
            media_type=SUBTITLE_MEDIA_TYPES["srt"],
        )
