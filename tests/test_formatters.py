"""Tests for the transcript formatters.

WHY: Formatters are pure functions of the transcript, so their contracts
(page sizes, cue timing, timestamp syntax, JSON key order) can be pinned
exactly. Subtitle players reject files with a single malformed line.

HOW: Each formatter is tested against small hand-written transcripts.
The JSON output is validated against a JSON Schema with jsonschema.

RULES:
- Exact expected strings where the format is fixed
- Property checks (page count, token order) over several sizes
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timezone

import jsonschema
import pytest

from sta_transcriber.formatters import FORMATTERS
from sta_transcriber.formatters.base import BaseFormatter, ExportFormat, TranscriptSource
from sta_transcriber.formatters.json_metadata import (
    JSONMetadataFormatter,
    format_iso_timestamp,
)
from sta_transcriber.formatters.plain_text import PAGE_SEPARATOR, PlainTextFormatter, paginate
from sta_transcriber.formatters.subtitles import (
    SRTFormatter,
    VTTFormatter,
    build_cues,
    format_timestamp,
    split_sentences,
    to_srt,
    to_vtt,
)

METADATA_SCHEMA = {
    "type": "object",
    "required": [
        "fileName", "languageCode", "confidence",
        "transcriptionTime", "text", "timestamp",
    ],
    "additionalProperties": False,
    "properties": {
        "fileName": {"type": "string"},
        "languageCode": {"type": ["string", "null"]},
        "confidence": {"type": ["number", "null"], "minimum": 0, "maximum": 1},
        "transcriptionTime": {"type": ["number", "null"], "minimum": 0},
        "text": {"type": "string"},
        "timestamp": {
            "type": "string",
            "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$",
        },
    },
}

_FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)


def _words(n: int) -> str:
    return " ".join("w{}".format(i) for i in range(n))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:

    def test_every_format_registered(self):
        assert set(FORMATTERS) == set(ExportFormat)

    def test_values_are_formatter_classes(self):
        for cls in FORMATTERS.values():
            assert issubclass(cls, BaseFormatter)
            assert cls().name

    def test_format_values(self):
        assert [f.value for f in ExportFormat] == ["text", "srt", "vtt", "json"]


# ---------------------------------------------------------------------------
# Text pagination
# ---------------------------------------------------------------------------


class TestPagination:

    @pytest.mark.parametrize("n", [1, 349, 350, 351, 700, 1000])
    def test_page_count(self, n):
        assert len(paginate(_words(n))) == math.ceil(n / 350)

    @pytest.mark.parametrize("n", [1, 350, 351, 1000])
    def test_pages_preserve_token_order(self, n):
        text = _words(n)
        pages = paginate(text)
        tokens = [token for page in pages for token in page.tokens]
        assert tokens == text.split()
        assert all(len(page.tokens) <= 350 for page in pages)

    def test_page_numbers(self):
        assert [page.number for page in paginate(_words(800))] == [1, 2, 3]

    def test_empty_text_gives_one_empty_page(self):
        pages = paginate("   \n ")
        assert len(pages) == 1
        assert pages[0].tokens == ()
        assert pages[0].text == ""

    def test_whitespace_normalized(self):
        pages = paginate("one\n\ntwo\tthree   four")
        assert pages[0].text == "one two three four"

    def test_custom_page_size(self):
        assert len(paginate(_words(10), words_per_page=3)) == 4

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate("a b", words_per_page=0)

    def test_plain_text_formatter(self):
        output = PlainTextFormatter(words_per_page=2).format(TranscriptSource(text="a b c d e"))
        assert output.content == PAGE_SEPARATOR.join(["a b", "c d", "e"])
        assert output.media_type == "text/plain"
        assert output.extension == "txt"


# ---------------------------------------------------------------------------
# Subtitles
# ---------------------------------------------------------------------------


class TestSentences:

    def test_two_sentences(self):
        assert split_sentences("Hello world. Bye now.") == ["Hello world.", "Bye now."]

    def test_mixed_terminators(self):
        assert split_sentences("Really?! Yes. Wow!") == ["Really?!", "Yes.", "Wow!"]

    def test_no_terminator_is_single_sentence(self):
        assert split_sentences("  no punctuation here ") == ["no punctuation here"]

    def test_trailing_fragment_dropped(self):
        assert split_sentences("First one. and then") == ["First one."]

    def test_trailing_fragment_adds_no_cue(self):
        assert to_srt("Hello world. and then") == (
            "1\n00:00:00,000 --> 00:00:03,000\nHello world.\n\n"
        )

    def test_empty_text(self):
        assert split_sentences("") == [""]


class TestCues:

    def test_cues_are_contiguous_three_second_slots(self):
        cues = build_cues("One. Two. Three. Four.")
        assert [c.index for c in cues] == [1, 2, 3, 4]
        for i, cue in enumerate(cues):
            assert cue.start_s == 3 * i
            assert cue.end_s == 3 * (i + 1)

    @pytest.mark.parametrize("seconds,separator,expected", [
        (0, ",", "00:00:00,000"),
        (3, ",", "00:00:03,000"),
        (3, ".", "00:00:03.000"),
        (75.5, ",", "00:01:15,500"),
        (3600 * 2 + 61, ".", "02:01:01.000"),
    ])
    def test_format_timestamp(self, seconds, separator, expected):
        assert format_timestamp(seconds, separator) == expected


class TestSRTFormatter:

    def test_two_sentence_transcript(self):
        assert to_srt("Hello world. Bye now.") == (
            "1\n00:00:00,000 --> 00:00:03,000\nHello world.\n\n"
            "2\n00:00:03,000 --> 00:00:06,000\nBye now.\n\n"
        )

    def test_timestamp_syntax(self):
        content = to_srt("A. B. C.")
        for line in content.splitlines():
            if "-->" in line:
                assert re.match(r"^\d{2}:\d{2}:\d{2},\d{3} --> \d{2}:\d{2}:\d{2},\d{3}$", line)

    def test_formatter_output(self):
        output = SRTFormatter().format(TranscriptSource(text="Hi."))
        assert output.media_type == "text/srt"
        assert output.extension == "srt"
        assert output.content.startswith("1\n00:00:00,000 --> 00:00:03,000\nHi.")


class TestVTTFormatter:

    def test_header_and_dot_separator(self):
        assert to_vtt("Hello world. Bye now.") == (
            "WEBVTT\n\n"
            "1\n00:00:00.000 --> 00:00:03.000\nHello world.\n\n"
            "2\n00:00:03.000 --> 00:00:06.000\nBye now.\n\n"
        )

    def test_formatter_output(self):
        output = VTTFormatter().format(TranscriptSource(text="Hi."))
        assert output.media_type == "text/vtt"
        assert output.extension == "vtt"
        assert output.content.startswith("WEBVTT\n\n")


# ---------------------------------------------------------------------------
# JSON metadata
# ---------------------------------------------------------------------------


class TestJSONMetadataFormatter:

    def _format(self, source):
        return JSONMetadataFormatter(now=lambda: _FIXED_NOW).format(source)

    def test_schema_validation(self):
        source = TranscriptSource(
            text="Hola mundo.", file_name="clip.mp3",
            language_code="es", confidence=0.87, transcription_time=42.5,
        )
        data = json.loads(self._format(source).content)
        jsonschema.validate(instance=data, schema=METADATA_SCHEMA)

    def test_round_trip_and_key_order(self):
        source = TranscriptSource(
            text="Hola mundo.", file_name="clip.mp3",
            language_code="es", confidence=0.87, transcription_time=42.5,
        )
        data = json.loads(self._format(source).content)
        assert list(data) == [
            "fileName", "languageCode", "confidence",
            "transcriptionTime", "text", "timestamp",
        ]
        assert data["text"] == "Hola mundo."
        assert data["fileName"] == "clip.mp3"
        assert data["languageCode"] == "es"
        assert data["confidence"] == 0.87
        assert data["transcriptionTime"] == 42.5
        assert data["timestamp"] == "2024-05-01T12:30:00.123Z"

    def test_missing_metadata_is_null(self):
        data = json.loads(self._format(TranscriptSource(text="x")).content)
        jsonschema.validate(instance=data, schema=METADATA_SCHEMA)
        assert data["languageCode"] is None
        assert data["confidence"] is None
        assert data["transcriptionTime"] is None

    def test_pretty_printed_utf8(self):
        content = self._format(TranscriptSource(text="canción ñandú")).content
        assert '\n  "fileName"' in content
        assert "canción ñandú" in content

    def test_media_type(self):
        output = self._format(TranscriptSource(text="x"))
        assert output.media_type == "application/json"
        assert output.extension == "json"

    def test_iso_timestamp_naive_is_utc(self):
        assert format_iso_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"
