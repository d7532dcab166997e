"""SRT and WebVTT subtitle formatters with synthesized timing.

WHY: Users want subtitle files they can load next to the audio, but the
service returns plain text with no timing at all. Each sentence is
therefore shown for a fixed slot, which is enough for reading along and
for importing into a subtitle editor to retime.

HOW: The text is split into punctuation-terminated sentences. Sentence i
gets the slot [i*3s, (i+1)*3s). Cues are rendered as index, time range,
sentence, blank line. SRT and VTT differ only in the millisecond
separator and the WEBVTT header.

RULES:
- A sentence is a run of non-terminators followed by one or more of . ! ?
- No terminator anywhere → the whole (trimmed) text is a single sentence
- Text after the last terminator is not part of any sentence
- Cues are 1-based, contiguous, non-overlapping, each exactly 3s long
- Timestamps: HH:MM:SS,mmm (SRT) / HH:MM:SS.mmm (VTT), zero-padded
- VTT output starts with "WEBVTT" followed by a blank line
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from sta_transcriber.config import SUBTITLE_SLOT_S
from sta_transcriber.formatters.base import BaseFormatter, FormatterOutput, TranscriptSource

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")

VTT_HEADER = "WEBVTT"


@dataclass(frozen=True)
class Cue:
    """One timed subtitle entry.

    Attributes:
        index: 1-based sequence number.
        start_s: Start time in seconds.
        end_s: End time in seconds.
        text: The sentence shown during the cue.
    """

    index: int
    start_s: float
    end_s: float
    text: str


def split_sentences(text: str) -> List[str]:
    """Split text into trimmed, punctuation-terminated sentences."""
    sentences = [match.group().strip() for match in _SENTENCE_RE.finditer(text)]
    return sentences or [text.strip()]


def build_cues(text: str, slot_s: float = SUBTITLE_SLOT_S) -> List[Cue]:
    return [
        Cue(
            index=i + 1,
            start_s=i * slot_s,
            end_s=(i + 1) * slot_s,
            text=sentence,
        )
        for i, sentence in enumerate(split_sentences(text))
    ]


def format_timestamp(seconds: float, separator: str = ",") -> str:
    """Convert seconds to HH:MM:SS<sep>mmm.

    Hours are padded to two digits but not capped.
    """
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, secs, separator, millis)


def render_cues(cues: List[Cue], separator: str) -> str:
    blocks = []
    for cue in cues:
        blocks.append("{}\n{} --> {}\n{}\n\n".format(
            cue.index,
            format_timestamp(cue.start_s, separator),
            format_timestamp(cue.end_s, separator),
            cue.text,
        ))
    return "".join(blocks)


def to_srt(text: str) -> str:
    return render_cues(build_cues(text), ",")


def to_vtt(text: str) -> str:
    return "{}\n\n{}".format(VTT_HEADER, render_cues(build_cues(text), "."))


class SRTFormatter(BaseFormatter):
    """SubRip subtitles, one 3-second cue per sentence."""

    @property
    def name(self) -> str:
        return "SubRip (SRT)"

    def format(self, source: TranscriptSource) -> FormatterOutput:
        return FormatterOutput(
            content=to_srt(source.text),
            media_type="text/srt",
            extension="srt",
        )


class VTTFormatter(BaseFormatter):
    """WebVTT subtitles, one 3-second cue per sentence."""

    @property
    def name(self) -> str:
        return "WebVTT (VTT)"

    def format(self, source: TranscriptSource) -> FormatterOutput:
        return FormatterOutput(
            content=to_vtt(source.text),
            media_type="text/vtt",
            extension="vtt",
        )
