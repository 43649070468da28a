"""Abstract base formatter and output container.

WHY: Every subtitle format consumes the same SubtitleDocument but produces
different text. This base class enforces a consistent interface so the
transcription endpoint can render any registered format generically.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type so the HTTP layer can set the content type without knowing the format.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` is deterministic: the same document yields identical text
- ``suffix`` includes the dot, e.g. ``".srt"``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from compat_gateway.core.ir import SubtitleDocument


@dataclass
class FormatterOutput:
    """One rendered subtitle file.

    Attributes:
        suffix: File suffix for downloads, e.g. ``".vtt"``.
        content: The rendered subtitle text.
        media_type: MIME type for the content, e.g. ``"text/vtt"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all subtitle formatters.

    To add a new subtitle format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SubRip'."""

    @abstractmethod
    def format(self, document: SubtitleDocument) -> FormatterOutput:
        """Render the document's segments as subtitle text."""
