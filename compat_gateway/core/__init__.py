"""Core transcoding, normalization, and segmentation modules.

WHY: The core package holds the parts of the gateway with real protocol
and numeric logic (the streaming transcoder and the segment builder)
kept free of HTTP concerns so they can be tested in isolation.

HOW: ir.py defines the records, reassembler.py / events.py /
content_filter.py / translator.py form the streaming chain that
transcoder.py drives, normalizer.py handles full responses, and
segments.py / transcription.py handle the timing path.

RULES:
- No module here imports FastAPI or httpx
- No module-level mutable state; per-response state lives in StreamState
"""
