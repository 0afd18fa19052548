"""
reflow_lib/models.py: Data models for positioned text and the reconstructed document.
"""
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

PLACEHOLDER_TITLE = "Document"
PLACEHOLDER_PARAGRAPH = "No readable content found."
FIRST_CHAPTER_TITLE = "Beginning"


@dataclass(frozen=True)
class TextFragment:
    """One positioned run of text on a page.

    Coordinates are PDF user space relative to the page origin, y grows upward.
    """

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 12.0
    font_name: str = ""

    @property
    def end_x(self) -> float:
        """Right edge, estimated from the text length when no width is known."""
        return self.x + (self.width or len(self.text) * 5)


@dataclass
class PageContent:
    """One decoded page, cached between the two reconstruction passes.

    `ocr_text` is set when the text layer was missing and OCR produced the page
    text instead; such pages carry no fragments.
    """

    page_num: int
    fragments: List[TextFragment] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    ocr_text: Optional[str] = None

    @property
    def raw_text(self) -> str:
        return " ".join(f.text for f in self.fragments).strip()


@dataclass
class OcrPageState:
    """Per-page OCR fallback bookkeeping."""

    page_num: int
    has_text_layer: bool = True
    ocr_invoked: bool = False
    ocr_result: Optional[str] = None
    error: Optional[str] = None


@dataclass
class Chapter:
    """A titled run of paragraphs and, once paginated, its pages."""

    title: str
    paragraphs: List[str] = field(default_factory=list)
    pages: List[List[str]] = field(default_factory=list)


@dataclass
class ProcessedDocument:
    """The reconstructed document handed to the presentation layer.

    Totals are always computed from the chapters.
    """

    title: str
    chapters: List[Chapter]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def total_pages(self) -> int:
        return sum(len(ch.pages) for ch in self.chapters)

    @property
    def total_paragraphs(self) -> int:
        return sum(len(ch.paragraphs) for ch in self.chapters)


def placeholder_chapter() -> Chapter:
    """The single chapter emitted when nothing readable survived."""
    return Chapter(
        title=PLACEHOLDER_TITLE,
        paragraphs=[PLACEHOLDER_PARAGRAPH],
        pages=[[PLACEHOLDER_PARAGRAPH]],
    )


def document_to_dict(doc: ProcessedDocument) -> dict:
    """Returns a JSON-serializable representation, totals included."""
    return {
        "id": doc.id,
        "title": doc.title,
        "chapters": [
            {
                "title": ch.title,
                "paragraphs": list(ch.paragraphs),
                "pages": [list(page) for page in ch.pages],
            }
            for ch in doc.chapters
        ],
        "totalPages": doc.total_pages,
        "totalParagraphs": doc.total_paragraphs,
    }


def summarize_document(doc: ProcessedDocument) -> list[dict]:
    """Returns one summary row per chapter."""
    return [
        {
            "title": ch.title,
            "paragraphs": len(ch.paragraphs),
            "pages": len(ch.pages),
            "char_count": sum(len(p) for p in ch.paragraphs),
        }
        for ch in doc.chapters
    ]
