"""Output formatter registry — one formatter per export format.

WHY: The exporter and CLI need a single lookup to find the right
formatter for a chosen format. A central dict makes it trivial to add
new formats: create the formatter class, import it here, add one line.

HOW: FORMATTERS maps ExportFormat members to formatter *classes* (not
instances). Callers instantiate as needed:
``formatter = FORMATTERS[ExportFormat.SRT]()``.

RULES:
- Keys are ExportFormat members (closed enumeration)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
- TEXT maps to the paginated plain text; the exporter turns it into a
  PDF through the document renderer
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sta_transcriber.formatters.base import ExportFormat
from sta_transcriber.formatters.json_metadata import JSONMetadataFormatter
from sta_transcriber.formatters.plain_text import PlainTextFormatter
from sta_transcriber.formatters.subtitles import SRTFormatter, VTTFormatter

if TYPE_CHECKING:
    from sta_transcriber.formatters.base import BaseFormatter

FORMATTERS: dict[ExportFormat, type[BaseFormatter]] = {
    ExportFormat.TEXT: PlainTextFormatter,
    ExportFormat.SRT: SRTFormatter,
    ExportFormat.VTT: VTTFormatter,
    ExportFormat.JSON: JSONMetadataFormatter,
}
