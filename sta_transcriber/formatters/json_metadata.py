"""Structured JSON metadata formatter.

WHY: Downstream tools (archives, spreadsheets, scripts) want the
transcript together with its metadata in one machine-readable file.

HOW: Builds a dict with a fixed key order and serializes it with
``json.dumps(indent=2)``. The generation timestamp comes from an
injectable clock so tests can pin it.

RULES:
- Keys, in order: fileName, languageCode, confidence, transcriptionTime,
  text, timestamp
- languageCode, confidence, transcriptionTime are null when unknown
- timestamp is ISO-8601 UTC with milliseconds and a "Z" suffix
- Non-ASCII text is written as-is (UTF-8), not \\u-escaped
- Output extension: "json", media type: "application/json"
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Dict

from sta_transcriber.formatters.base import BaseFormatter, FormatterOutput, TranscriptSource


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_iso_timestamp(moment: datetime) -> str:
    """Render ``moment`` like 2024-05-01T12:30:00.123Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_metadata(source: TranscriptSource, moment: datetime) -> Dict[str, Any]:
    return {
        "fileName": source.file_name,
        "languageCode": source.language_code,
        "confidence": source.confidence,
        "transcriptionTime": source.transcription_time,
        "text": source.text,
        "timestamp": format_iso_timestamp(moment),
    }


class JSONMetadataFormatter(BaseFormatter):
    """Formatter that emits the transcript and metadata as pretty JSON."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or _utc_now

    @property
    def name(self) -> str:
        return "JSON"

    def format(self, source: TranscriptSource) -> FormatterOutput:
        content = json.dumps(
            build_metadata(source, self._now()),
            indent=2,
            ensure_ascii=False,
        )
        return FormatterOutput(
            content=content,
            media_type="application/json",
            extension="json",
        )
