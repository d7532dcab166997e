"""Turn a completed transcript into a downloadable artifact.

WHY: Whatever format the user picks, the caller just wants bytes, a MIME
type, and a file name to save or send. The exporter hides which formats
are plain text and which one needs a document renderer.

HOW: FORMAT_SPECS maps each ExportFormat to (MIME type, extension). SRT,
VTT, and JSON bytes are the formatter output encoded as UTF-8. TEXT is
delegated to a DocumentRenderer — by default the reportlab-based
PdfDocumentRenderer, created lazily so the other formats work without it.

RULES:
- Artifacts are only produced from a completed transcript
- TEXT → application/pdf, .pdf (bytes from the renderer)
- SRT → text/srt, VTT → text/vtt, JSON → application/json
- File name: transcript-<epoch milliseconds>.<extension>
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from sta_transcriber.core.job import JobState, TranscriptionJob, TranscriptResult
from sta_transcriber.formatters import FORMATTERS
from sta_transcriber.formatters.base import BaseFormatter, ExportFormat, TranscriptSource

FORMAT_SPECS: dict[ExportFormat, tuple[str, str]] = {
    ExportFormat.TEXT: ("application/pdf", "pdf"),
    ExportFormat.SRT: ("text/srt", "srt"),
    ExportFormat.VTT: ("text/vtt", "vtt"),
    ExportFormat.JSON: ("application/json", "json"),
}

FILENAME_PREFIX = "transcript"


class DocumentRenderer(Protocol):
    """Collaborator that turns transcript text into document bytes.

    The renderer owns pagination overflow, header imagery, and footer
    attribution; the exporter only hands it text and metadata.
    """

    def render(
        self,
        text: str,
        file_name: str,
        language_code: Optional[str] = None,
        confidence: Optional[float] = None,
        transcription_time: Optional[float] = None,
    ) -> bytes:
        ...


@dataclass(frozen=True)
class ExportArtifact:
    """A finished export, ready to save or send.

    Attributes:
        mime_type: MIME type of ``data``.
        filename: Suggested download name.
        data: File content.
    """

    mime_type: str
    filename: str
    data: bytes


class Exporter:
    """Maps an ExportFormat to artifact bytes for a completed transcript."""

    def __init__(
        self,
        renderer: DocumentRenderer | None = None,
        clock: Callable[[], float] = time.time,
        formatters: dict[ExportFormat, BaseFormatter] | None = None,
    ) -> None:
        self._renderer = renderer
        self._clock = clock
        self._formatters = dict(formatters or {})

    @property
    def renderer(self) -> DocumentRenderer:
        if self._renderer is None:
            from sta_transcriber.export.pdf import PdfDocumentRenderer
            self._renderer = PdfDocumentRenderer()
        return self._renderer

    def _formatter(self, fmt: ExportFormat) -> BaseFormatter:
        if fmt not in self._formatters:
            self._formatters[fmt] = FORMATTERS[fmt]()
        return self._formatters[fmt]

    def filename_for(self, fmt: ExportFormat) -> str:
        _, extension = FORMAT_SPECS[fmt]
        return "{}-{}.{}".format(FILENAME_PREFIX, int(self._clock() * 1000), extension)

    def export(
        self,
        fmt: ExportFormat,
        transcript: Union[TranscriptionJob, TranscriptResult],
        file_name: str,
    ) -> ExportArtifact:
        """Render ``transcript`` in ``fmt``.

        Args:
            fmt: The chosen export format.
            transcript: A completed job snapshot or its TranscriptResult.
            file_name: Original audio file name (printed in JSON and PDF).

        Returns:
            The ExportArtifact.

        Raises:
            ValueError: the job has not completed.
        """
        result = _completed_result(transcript)
        source = TranscriptSource.from_result(result, file_name)
        fmt = ExportFormat(fmt)
        mime_type, _ = FORMAT_SPECS[fmt]

        if fmt is ExportFormat.TEXT:
            data = self.renderer.render(
                source.text,
                source.file_name,
                language_code=source.language_code,
                confidence=source.confidence,
                transcription_time=source.transcription_time,
            )
        else:
            data = self._formatter(fmt).format(source).content.encode("utf-8")

        return ExportArtifact(
            mime_type=mime_type,
            filename=self.filename_for(fmt),
            data=data,
        )


def _completed_result(
    transcript: Union[TranscriptionJob, TranscriptResult],
) -> TranscriptResult:
    if isinstance(transcript, TranscriptResult):
        return transcript
    if transcript.state is not JobState.COMPLETED or transcript.result is None:
        raise ValueError(
            "Job {} is {}; only completed jobs can be exported".format(
                transcript.id, transcript.state.value
            )
        )
    return transcript.result
