"""Subtitle timestamp formatting.

WHY: SRT and WebVTT share the ``HH:MM:SS<sep>mmm`` shape and differ only in
the millisecond separator. Floating-point seconds such as 1.2 must render
as ``...01,200``, not ``...01,199``.

HOW: Seconds are converted once to whole milliseconds (rounded), then split
with integer arithmetic.

RULES:
- Hours are zero-padded to at least two digits and never wrap
- Negative input clamps to zero
"""

from __future__ import annotations


def format_timestamp(seconds: float, separator: str = ",") -> str:
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, secs, separator, millis)
