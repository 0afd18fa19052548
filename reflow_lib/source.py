"""
reflow_lib/source.py: Adapter over the PDF decoding engines.

pdfminer.six supplies the positioned text of each page; PyMuPDF renders pages to
bitmaps for the OCR fallback. The file is opened once and pages are decoded one
at a time so a broken page can be skipped without losing the document.
"""
import logging
import os

import fitz  # PyMuPDF
import numpy as np
from pdfminer.converter import PDFPageAggregator
from pdfminer.layout import LAParams, LTAnno, LTChar, LTTextLine
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfinterp import PDFPageInterpreter, PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pdfminer.pdftypes import resolve1
from pdfminer.utils import decode_text

from .models import PageContent, TextFragment

log_extract = logging.getLogger("reflow.extract")

DEFAULT_FRAGMENT_HEIGHT = 12.0


def fragment_from_record(record: dict):
    """Normalizes one raw decoder record into a TextFragment.

    Accepts `text` or `str` for the content and `fontName`/`font_name` for the
    font. Returns None for records without visible text.
    """
    text = record.get("text", record.get("str")) or ""
    if not text.strip():
        return None
    return TextFragment(
        text=text,
        x=float(record.get("x", 0.0)),
        y=float(record.get("y", 0.0)),
        width=float(record.get("width") or 0.0),
        height=float(record.get("height") or DEFAULT_FRAGMENT_HEIGHT),
        font_name=record.get("fontName", record.get("font_name", "")) or "",
    )


def fragments_from_records(records) -> list:
    return [f for f in (fragment_from_record(r) for r in records) if f is not None]


def find_elements_by_type(layout_obj, element_type) -> list:
    """Recursively collects layout elements of a given pdfminer type."""
    found = []
    if isinstance(layout_obj, element_type):
        found.append(layout_obj)
        return found
    if hasattr(layout_obj, "_objs"):
        for child in layout_obj:
            found.extend(find_elements_by_type(child, element_type))
    return found


def _runs_from_line(line):
    """Splits a text line into runs of adjacent characters sharing one font.

    A run also ends where the gap to the next character exceeds one em.
    """
    runs, chars, text = [], [], []
    for obj in line:
        if isinstance(obj, LTChar):
            if chars and (
                obj.fontname != chars[-1].fontname
                or obj.x0 - chars[-1].x1 > max(obj.size, 1.0)
            ):
                runs.append((chars, "".join(text)))
                chars, text = [], []
            chars.append(obj)
            text.append(obj.get_text())
        elif isinstance(obj, LTAnno) and chars:
            text.append(obj.get_text())
    if chars:
        runs.append((chars, "".join(text)))
    return runs


def fragments_from_layout(layout) -> list:
    """Converts a pdfminer LTPage into TextFragments relative to the page origin.

    All runs of one line share the line's baseline so they stay on one line.
    """
    records = []
    for line in find_elements_by_type(layout, LTTextLine):
        for chars, raw in _runs_from_line(line):
            x0 = min(c.x0 for c in chars)
            x1 = max(c.x1 for c in chars)
            records.append(
                {
                    "text": raw.replace("\n", "").rstrip(),
                    "x": x0 - layout.x0,
                    "y": line.y0 - layout.y0,
                    "width": x1 - x0,
                    "height": max(c.size for c in chars),
                    "fontName": chars[0].fontname,
                }
            )
    return fragments_from_records(records)


class PdfSource:
    """
    One open PDF: page count, per-page text fragments, page rendering.

    Args:
        pdf_path (str): The file path to the PDF.

    Raises:
        FileNotFoundError: If the file does not exist.
        pdfminer.pdfparser.PDFSyntaxError: If the file cannot be parsed at all.
    """

    def __init__(self, pdf_path):
        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDF file not found: {pdf_path}")
        self.pdf_path = pdf_path
        self._fp = open(pdf_path, "rb")
        try:
            self.document = PDFDocument(PDFParser(self._fp))
            self._pages = list(PDFPage.create_pages(self.document))
        except Exception:
            self._fp.close()
            raise
        rsrcmgr = PDFResourceManager()
        self._device = PDFPageAggregator(rsrcmgr, laparams=LAParams())
        self._interpreter = PDFPageInterpreter(rsrcmgr, self._device)
        self._fitz_doc = None
        log_extract.info("Opened %s (%d pages).", pdf_path, self.page_count)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def metadata_title(self) -> str:
        """The document information Title entry, or an empty string."""
        for info in self.document.info:
            title = resolve1(info.get("Title"))
            if isinstance(title, bytes):
                title = decode_text(title)
            if isinstance(title, str) and title.strip():
                return title.strip()
        return ""

    def load_page(self, page_num) -> PageContent:
        """Decodes the text layer of a 1-based page."""
        page = self._pages[page_num - 1]
        self._interpreter.process_page(page)
        layout = self._device.get_result()
        fragments = fragments_from_layout(layout)
        log_extract.debug("Page %d: %d fragment(s).", page_num, len(fragments))
        return PageContent(
            page_num=page_num,
            fragments=fragments,
            width=layout.width,
            height=layout.height,
        )

    def render_page(self, page_num, scale) -> np.ndarray:
        """Renders a 1-based page to an RGB bitmap at `scale` × 72 dpi."""
        if self._fitz_doc is None:
            self._fitz_doc = fitz.open(self.pdf_path)
        page = self._fitz_doc.load_page(page_num - 1)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        bitmap = np.frombuffer(pix.samples, dtype=np.uint8)
        return bitmap.reshape(pix.height, pix.width, pix.n).copy()

    def release_page(self, page_num):
        """Drops per-page decoder state once a page is finished."""
        self._device.result = None
        if self._fitz_doc is not None:
            fitz.TOOLS.store_shrink(100)
        log_extract.debug("Released resources for page %d.", page_num)

    def close(self):
        if self._fitz_doc is not None:
            self._fitz_doc.close()
            self._fitz_doc = None
        if not self._fp.closed:
            self._fp.close()
