# reflow_lib/api.py
import asyncio
import logging
import os

from .config import ReflowConfig
from .extractor import PDFTextExtractor
from .models import ProcessedDocument
from .ocr import OcrWorkerPool
from .progress import ProgressReporter
from .reconstructor import reconstruct_document
from .source import PdfSource

log = logging.getLogger("reflow.api")

__all__ = [
    "document_title",
    "parse_page_selection",
    "process_pdf",
    "process_pdf_async",
    "reconstruct_document",
]


def parse_page_selection(pages_str: str) -> set | None:
    """Parses a page selection string (e.g., '1,3,5-7') into a set of integers."""
    if not pages_str or pages_str.strip().lower() == "all":
        return None
    pages = set()
    try:
        for p in pages_str.split(","):
            part = p.strip()
            if not part:
                continue
            if "-" in part:
                s, e = map(int, part.split("-"))
                pages.update(range(s, e + 1))
            else:
                pages.add(int(part))
    except ValueError:
        log.error("Invalid page selection format: %s. Defaulting to 'all'.", pages_str)
        return None
    return pages or None


def document_title(pdf_path: str, metadata_title: str = "") -> str:
    """The metadata title, else the file name with separators turned into spaces."""
    if metadata_title and metadata_title.strip():
        return metadata_title.strip()
    stem = os.path.splitext(os.path.basename(pdf_path))[0]
    return stem.replace("_", " ").replace("-", " ").strip() or "Document"


async def process_pdf_async(
    pdf_path: str,
    config: ReflowConfig = None,
    progress_callback=None,
    pages="all",
    ocr_pool: OcrWorkerPool = None,
) -> ProcessedDocument:
    """
    Decodes a PDF and reconstructs it into a chaptered, paginated document.

    Args:
        pdf_path: Path to the PDF file.
        config: Tunables; defaults when omitted.
        progress_callback: Optional `callback(message, percent=None)`.
        pages: 'all', a selection string such as '1,3,5-7', or a set of page numbers.
        ocr_pool: Shared OCR pool. When omitted and OCR is enabled, a private
            pool is created and terminated before returning.
    """
    config = config or ReflowConfig()
    progress = ProgressReporter(progress_callback)
    if isinstance(pages, str):
        pages_to_process = parse_page_selection(pages)
    else:
        pages_to_process = set(pages) if pages else None

    owns_pool = ocr_pool is None and config.ocr_enabled
    if owns_pool:
        ocr_pool = OcrWorkerPool(max_workers=config.ocr_max_workers)

    log.info("Processing '%s'...", pdf_path)
    progress("Extracting document metadata...", 2)
    try:
        with PdfSource(pdf_path) as source:
            title = document_title(pdf_path, source.metadata_title)
            extractor = PDFTextExtractor(
                source,
                config,
                ocr_pool if config.ocr_enabled else None,
                progress,
            )
            page_contents = await extractor.extract(pages_to_process)

        progress("Building document structure...", 92)
        doc = reconstruct_document(page_contents, title, config)
        progress("Document ready!", 100)
        return doc
    except asyncio.CancelledError:
        log.warning("Processing of '%s' was cancelled.", pdf_path)
        if ocr_pool is not None:
            await ocr_pool.terminate()
        raise
    finally:
        if owns_pool:
            await ocr_pool.terminate()


def process_pdf(
    pdf_path: str,
    config: ReflowConfig = None,
    progress_callback=None,
    pages="all",
    ocr_pool: OcrWorkerPool = None,
) -> ProcessedDocument:
    """Synchronous wrapper around process_pdf_async."""
    return asyncio.run(
        process_pdf_async(pdf_path, config, progress_callback, pages, ocr_pool)
    )
