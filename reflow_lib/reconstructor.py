"""
reflow_lib/reconstructor.py: Turns cached page contents into a ProcessedDocument.

This is the synchronous core of the pipeline. It walks the page cache twice:
the first traversal feeds the header/footer detector, the second filters page
furniture, splits columns, builds lines and collects the paragraph stream.
Chapters are then segmented and each one paginated from its complete
paragraph list.
"""
import logging

from .chapters import ChapterSegmenter
from .columns import split_columns
from .config import ReflowConfig
from .header_footer import HeaderFooterDetector, filter_page_furniture
from .lines import build_lines, rejoin_hyphenated
from .models import ProcessedDocument
from .paginator import Paginator
from .paragraphs import ParagraphBuilder

log_structure = logging.getLogger("reflow.structure")


class DocumentReconstructor:
    """
    Rebuilds reading order, paragraphs, chapters and pages from PageContent objects.

    Args:
        config (ReflowConfig | None): Tunables; defaults when omitted.
    """

    def __init__(self, config=None):
        self.config = config or ReflowConfig()
        cfg = self.config
        self.paragraph_builder = ParagraphBuilder(
            min_length=cfg.min_paragraph_length,
            short_line_chars=cfg.short_line_chars,
            isolate_headings=cfg.isolate_headings,
            max_title_length=cfg.max_title_length,
        )
        self.segmenter = ChapterSegmenter(cfg.max_title_length, cfg.title_chars)
        self.paginator = Paginator.from_config(cfg)

    def detect_furniture(self, pages) -> set:
        """First traversal: returns the suppressed header/footer patterns."""
        detector = HeaderFooterDetector(self.config.header_footer_margin)
        for page in pages:
            detector.observe(page.fragments, page.height)
        return detector.resolve()

    def page_lines(self, page, patterns) -> list:
        """Second traversal step: the reading-order lines of one page."""
        if page.ocr_text is not None:
            lines = [line.strip() for line in page.ocr_text.splitlines()]
            return rejoin_hyphenated(lines)

        cfg = self.config
        fragments = filter_page_furniture(
            page.fragments, page.height, patterns, cfg.header_footer_margin
        )
        columns = split_columns(
            fragments,
            gap_threshold=cfg.column_gap_threshold,
            min_fragments=cfg.min_column_fragments,
            grid=cfg.column_grid,
            min_count=cfg.dominant_x_min_count,
        )
        lines = []
        for column in columns:
            lines.extend(build_lines(column, cfg.line_y_tolerance, cfg.word_gap_factor))
        log_structure.debug(
            "Page %d: %d column(s), %d line(s).", page.page_num, len(columns), len(lines)
        )
        return lines

    def collect_lines(self, pages) -> list:
        """Runs both traversals and returns the document's line stream.

        Each page ends with a blank line, so paragraphs never span pages.
        """
        patterns = self.detect_furniture(pages)
        all_lines = []
        for page in pages:
            all_lines.extend(self.page_lines(page, patterns))
            all_lines.append("")
        return all_lines

    def build_chapters(self, paragraphs) -> list:
        """Segments paragraphs into chapters, then paginates each complete chapter."""
        chapters = self.segmenter.segment(paragraphs)
        for chapter in chapters:
            chapter.pages = self.paginator.paginate(chapter.paragraphs)
        return chapters

    def reconstruct(self, pages, title) -> ProcessedDocument:
        """Full text pipeline over an already decoded page cache."""
        lines = self.collect_lines(pages)
        paragraphs = self.paragraph_builder.build(lines)
        chapters = self.build_chapters(paragraphs)
        doc = ProcessedDocument(title=title, chapters=chapters)
        logging.getLogger("reflow").info(
            "Reconstructed '%s': %d chapter(s), %d page(s), %d paragraph(s).",
            title,
            len(chapters),
            doc.total_pages,
            doc.total_paragraphs,
        )
        return doc


def reconstruct_document(pages, title="Document", config=None) -> ProcessedDocument:
    """Builds a ProcessedDocument from decoded pages without touching any PDF."""
    return DocumentReconstructor(config).reconstruct(list(pages), title)
