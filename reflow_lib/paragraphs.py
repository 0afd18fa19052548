"""
reflow_lib/paragraphs.py: Folds a flat stream of lines into paragraphs.

A line only starts a new paragraph when the text so far ends a sentence, the
new line opens like a sentence, and the previous line fell short of the column
width. Anything else is joined.
"""
import logging
import re

from .config import (
    MAX_TITLE_LENGTH,
    MIN_PARAGRAPH_LENGTH,
    SHORT_LINE_CHARS,
)
from .patterns import is_chapter_title, is_page_number, is_standalone_title

log_structure = logging.getLogger("reflow.structure")

_SENTENCE_END = re.compile(r"[.!?:]\s*$")
_SENTENCE_START = re.compile(r"^[A-Z\"'“‘(]")
_CONTINUATION = re.compile(r"^[a-z]")


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class ParagraphBuilder:
    """
    Accumulates lines into paragraphs.

    Args:
        min_length (int): Paragraphs shorter than this are dropped as noise.
        short_line_chars (int): A previous line under this length may end a paragraph.
        isolate_headings (bool): Give chapter-title lines a paragraph of their own
            and keep them regardless of `min_length`.
        max_title_length (int): Length ceiling for heading detection.
    """

    def __init__(
        self,
        min_length=MIN_PARAGRAPH_LENGTH,
        short_line_chars=SHORT_LINE_CHARS,
        isolate_headings=True,
        max_title_length=MAX_TITLE_LENGTH,
    ):
        self.min_length = min_length
        self.short_line_chars = short_line_chars
        self.isolate_headings = isolate_headings
        self.max_title_length = max_title_length

    def _is_heading(self, text):
        return self.isolate_headings and is_chapter_title(text, self.max_title_length)

    def _stands_alone(self, text, current, next_line):
        """True if a heading line should be split off from its neighbours.

        Numbered headings double as list items, so they only stand alone at a
        sentence boundary. No heading is split from a lowercase continuation.
        """
        if _CONTINUATION.match(next_line):
            return False
        if is_standalone_title(text, self.max_title_length):
            return True
        return not current or bool(_SENTENCE_END.search(current))

    def build(self, lines) -> list:
        """Returns the paragraphs found in `lines`, in order."""
        paragraphs, current, last_line = [], "", ""

        def flush():
            nonlocal current, last_line
            if current.strip():
                paragraphs.append(current)
            current, last_line = "", ""

        for i, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed:
                flush()
                continue
            if is_page_number(trimmed):
                continue
            next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
            if self._is_heading(trimmed) and self._stands_alone(
                trimmed, current, next_line
            ):
                flush()
                paragraphs.append(trimmed)
                continue

            if not current:
                current = trimmed
            elif (
                _SENTENCE_END.search(current)
                and _SENTENCE_START.match(trimmed)
                and len(last_line) < self.short_line_chars
            ):
                paragraphs.append(current)
                current = trimmed
            else:
                current += ("" if current.endswith(" ") else " ") + trimmed
            last_line = trimmed
        flush()

        kept = []
        for paragraph in paragraphs:
            text = normalize_whitespace(paragraph)
            if is_page_number(text):
                continue
            if len(text) >= self.min_length or self._is_heading(text):
                kept.append(text)
        log_structure.debug(
            "Built %d paragraph(s) from %d line(s); %d dropped as noise.",
            len(kept),
            len(lines),
            len(paragraphs) - len(kept),
        )
        return kept


def build_paragraphs(lines, **options) -> list:
    """Convenience wrapper around ParagraphBuilder.build."""
    return ParagraphBuilder(**options).build(lines)
