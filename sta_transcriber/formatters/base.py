"""Abstract base formatter, formatter input, and output container.

WHY: Every output format consumes the same transcript text and metadata
but produces different file content. This base class enforces a
consistent interface so the exporter and CLI can work with any formatter
generically.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method. TranscriptSource bundles the transcript with
the metadata some formats print. FormatterOutput is a plain dataclass
holding the rendered text, its MIME type, and its file extension.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` is pure: same input, same output (JSON takes an
  injectable clock for its timestamp)
- ``extension`` has no leading dot, e.g. ``"srt"``
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sta_transcriber.core.job import TranscriptResult


class ExportFormat(str, enum.Enum):
    """Closed set of output formats a user can pick."""

    TEXT = "text"
    SRT = "srt"
    VTT = "vtt"
    JSON = "json"


@dataclass(frozen=True)
class TranscriptSource:
    """Transcript text plus the metadata formatters may print.

    Attributes:
        text: The transcript as returned by the service.
        file_name: Original audio file name (shown in JSON and PDF).
        language_code: Detected language, if any.
        confidence: Overall confidence 0.0–1.0, if any.
        transcription_time: Processing time in seconds, if measured.
    """

    text: str
    file_name: str = "audio"
    language_code: Optional[str] = None
    confidence: Optional[float] = None
    transcription_time: Optional[float] = None

    @classmethod
    def from_result(cls, result: TranscriptResult, file_name: str) -> TranscriptSource:
        return cls(
            text=result.text,
            file_name=file_name,
            language_code=result.language_code,
            confidence=result.confidence,
            transcription_time=result.duration_seconds,
        )


@dataclass(frozen=True)
class FormatterOutput:
    """One rendered representation of a transcript.

    Attributes:
        content: The rendered text (SRT, VTT, JSON, paginated text).
        media_type: MIME type for the content, e.g. ``"application/json"``.
        extension: File extension without the dot, e.g. ``"json"``.
    """

    content: str
    media_type: str
    extension: str


class BaseFormatter(ABC):
    """Abstract base for all transcript formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SubRip (SRT)'."""

    @abstractmethod
    def format(self, source: TranscriptSource) -> FormatterOutput:
        """Render the transcript.

        Args:
            source: Transcript text and metadata.

        Returns:
            The rendered FormatterOutput.
        """
