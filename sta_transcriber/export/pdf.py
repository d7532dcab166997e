"""Default PDF document renderer built on reportlab.

WHY: The "text" export is delivered as a printable document. The
exporter only needs bytes from a collaborator; this module is the plain
default so the package works end to end without a custom renderer.

HOW: reportlab platypus story — title, a metadata table (date, language,
confidence, processing time), then the transcript one word page at a
time with a page break between pages. reportlab flows any page that
overflows onto the next sheet. An optional logo and footer credits come
from config (PDF_LOGO_PATH, PDF_CREDITS).

RULES:
- Pages follow formatters.plain_text.paginate (350 tokens each)
- Language is shown upper-cased; confidence as a whole percent
- Processing time is shown only when > 0
- Footer credits are drawn on every sheet when configured
- Text is XML-escaped before it goes into Paragraphs
"""

from __future__ import annotations

import io
import logging
import os
from datetime import date
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_JUSTIFY
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image as RLImage
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from sta_transcriber.config import PDF_CREDITS, PDF_LOGO_PATH, WORDS_PER_PAGE
from sta_transcriber.core.progress import format_duration
from sta_transcriber.formatters.plain_text import paginate

logger = logging.getLogger(__name__)

_MARGIN = 20 * mm
_FOOTER_HEIGHT = 25 * mm


class PdfDocumentRenderer:
    """Render a transcript as an A4 PDF document."""

    def __init__(
        self,
        title: str = "Audio Transcription",
        subtitle: str = "Automatic Transcription System",
        logo_path: Optional[str] = PDF_LOGO_PATH,
        credits: Optional[List[str]] = None,
        words_per_page: int = WORDS_PER_PAGE,
    ) -> None:
        self.title = title
        self.subtitle = subtitle
        self.logo_path = logo_path
        self.credits = list(PDF_CREDITS if credits is None else credits)
        self.words_per_page = words_per_page

    def render(
        self,
        text: str,
        file_name: str,
        language_code: Optional[str] = None,
        confidence: Optional[float] = None,
        transcription_time: Optional[float] = None,
    ) -> bytes:
        styles = getSampleStyleSheet()
        body = ParagraphStyle(
            "body", parent=styles["Normal"], fontName="Helvetica",
            fontSize=11, leading=16, alignment=TA_JUSTIFY,
        )
        heading = ParagraphStyle(
            "heading", parent=styles["Heading2"], fontName="Helvetica-Bold",
            textColor=colors.HexColor("#1F3A5F"),
        )

        story = self._header(styles)
        story.append(self._metadata_table(file_name, language_code, confidence, transcription_time))
        story.append(Spacer(1, 8 * mm))
        story.append(Paragraph("Transcription", heading))

        pages = paginate(text, self.words_per_page)
        for index, page in enumerate(pages):
            if index > 0:
                story.append(PageBreak())
            story.append(Paragraph(escape(page.text), body))

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=_MARGIN,
            rightMargin=_MARGIN,
            topMargin=_MARGIN,
            bottomMargin=_FOOTER_HEIGHT + 5 * mm if self.credits else _MARGIN,
            title="Transcription - {}".format(file_name),
        )
        doc.build(story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)
        logger.debug("Rendered PDF for %s (%d word pages)", file_name, len(pages))
        return buffer.getvalue()

    def _header(self, styles) -> list:  # noqa: ANN001
        story: list = []
        if self.logo_path and os.path.isfile(self.logo_path):
            story.append(RLImage(self.logo_path, width=60 * mm, height=35 * mm, hAlign="RIGHT"))
        elif self.logo_path:
            logger.warning("PDF logo not found: %s", self.logo_path)
        story.append(Paragraph(escape(self.title), styles["Title"]))
        story.append(Paragraph(escape(self.subtitle), styles["Normal"]))
        story.append(Spacer(1, 6 * mm))
        return story

    def _metadata_table(
        self,
        file_name: str,
        language_code: Optional[str],
        confidence: Optional[float],
        transcription_time: Optional[float],
    ) -> Table:
        rows = [
            ["File", file_name],
            ["Date", date.today().strftime("%d %b %Y")],
        ]
        if language_code:
            rows.append(["Language", language_code.upper()])
        if confidence:
            rows.append(["Confidence", "{:.0f}%".format(confidence * 100)])
        if transcription_time and transcription_time > 0:
            rows.append(["Processing time", format_duration(transcription_time)])

        table = Table(rows, colWidths=[45 * mm, None], hAlign="LEFT")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#F5F7FA")),
            ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#4A5568")),
            ("FONTNAME", (1, 0), (1, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("LINEBELOW", (0, -1), (-1, -1), 0.5, colors.HexColor("#E2E8F0")),
        ]))
        return table

    def _draw_footer(self, canvas, doc) -> None:  # noqa: ANN001
        if not self.credits:
            return
        width, _ = doc.pagesize
        y = _FOOTER_HEIGHT
        canvas.saveState()
        canvas.setStrokeColor(colors.HexColor("#E2E8F0"))
        canvas.setLineWidth(0.3)
        canvas.line(_MARGIN, y, width - _MARGIN, y)
        canvas.setFillColor(colors.HexColor("#4A5568"))
        canvas.setFont("Helvetica", 9)
        canvas.drawCentredString(width / 2, y - 5 * mm, "Developed by:")
        canvas.setFont("Helvetica", 8)
        for index, name in enumerate(self.credits):
            canvas.drawCentredString(width / 2, y - (10 + index * 4) * mm, name)
        canvas.restoreState()
