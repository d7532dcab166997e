"""Export completed transcripts as downloadable artifacts.

WHY: The CLI (or any other front end) needs bytes, a MIME type, and a
file name for the chosen format. PDF rendering is heavy and optional, so
it lives in its own module and is only imported when the text export is
requested.

RULES:
- Importing this package never imports reportlab
"""

from sta_transcriber.export.exporter import (
    FORMAT_SPECS,
    DocumentRenderer,
    ExportArtifact,
    Exporter,
)

__all__ = ["FORMAT_SPECS", "DocumentRenderer", "ExportArtifact", "Exporter"]
