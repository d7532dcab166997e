"""Paginated plain text formatter.

WHY: The transcript preview and the PDF document both show the text one
page at a time. Splitting it into fixed-size word pages keeps every page
roughly A4-sized without measuring fonts, and the same page grouping is
shared by the on-screen preview and the document renderer.

HOW: Splits the transcript on whitespace into tokens, then slices the
token list into consecutive pages of at most WORDS_PER_PAGE tokens. The
plain-text rendition joins pages with a form feed so a pager or printer
breaks where the preview does.

RULES:
- Page count is ceil(token_count / 350); zero tokens yield one empty page
- Every page except possibly the last holds exactly 350 tokens
- Concatenating all pages' tokens reproduces the original token order
- Pages are separated by "\\f" in the text output
- Output extension: "txt", media type: "text/plain"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from sta_transcriber.config import WORDS_PER_PAGE
from sta_transcriber.formatters.base import BaseFormatter, FormatterOutput, TranscriptSource

PAGE_SEPARATOR = "\f"


@dataclass(frozen=True)
class TextPage:
    """One page of transcript tokens.

    Attributes:
        number: 1-based page number.
        tokens: The page's whitespace-delimited tokens, in order.
    """

    number: int
    tokens: Tuple[str, ...]

    @property
    def text(self) -> str:
        return " ".join(self.tokens)


def paginate(text: str, words_per_page: int = WORDS_PER_PAGE) -> List[TextPage]:
    """Group the transcript's tokens into pages of at most ``words_per_page``.

    Args:
        text: The transcript text.
        words_per_page: Maximum tokens per page (must be positive).

    Returns:
        At least one TextPage; an empty transcript yields one empty page.
    """
    if words_per_page <= 0:
        raise ValueError("words_per_page must be positive")

    tokens = text.split()
    if not tokens:
        return [TextPage(number=1, tokens=())]

    return [
        TextPage(number=index + 1, tokens=tuple(tokens[start:start + words_per_page]))
        for index, start in enumerate(range(0, len(tokens), words_per_page))
    ]


class PlainTextFormatter(BaseFormatter):
    """Formatter that renders the transcript as form-feed separated pages."""

    def __init__(self, words_per_page: int = WORDS_PER_PAGE) -> None:
        self.words_per_page = words_per_page

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, source: TranscriptSource) -> FormatterOutput:
        pages = paginate(source.text, self.words_per_page)
        content = PAGE_SEPARATOR.join(page.text for page in pages)
        return FormatterOutput(
            content=content,
            media_type="text/plain",
            extension="txt",
        )
