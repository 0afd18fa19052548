"""
reflow_lib/extractor.py: Builds the per-page cache that reconstruction works on.

Text pages come straight from the decoder. Pages whose text layer is missing or
too thin are rendered, cleaned up and sent to the OCR worker pool; recognition
jobs run concurrently while the remaining pages are decoded, and all results are
collected in page order before the cache is returned.
"""
import asyncio
import logging

from pdfminer.pdfparser import PDFSyntaxError
from pdfminer.psparser import PSException

from .config import ReflowConfig
from .models import OcrPageState, PageContent
from .preprocess import preprocess_image
from .progress import ProgressReporter

log_extract = logging.getLogger("reflow.extract")
log_ocr = logging.getLogger("reflow.ocr")

# pdfminer reports malformed page content through plain Python errors as well.
DECODE_ERRORS = (
    PDFSyntaxError,
    PSException,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
    IndexError,
)


class PDFTextExtractor:
    """
    Decodes the selected pages of a PdfSource into PageContent objects.

    Args:
        source (PdfSource): The open document.
        config (ReflowConfig | None): Thresholds; defaults when omitted.
        ocr_pool (OcrWorkerPool | None): Pool used for pages without a text
            layer. With no pool, such pages are kept as decoded.
        progress (callable | None): A ProgressReporter or compatible callable.
    """

    def __init__(self, source, config=None, ocr_pool=None, progress=None):
        self.source = source
        self.config = config or ReflowConfig()
        self.ocr_pool = ocr_pool
        self.progress = progress or ProgressReporter()
        self.ocr_states = []
        self._ocr_unavailable = False

    def selected_pages(self, pages_to_process=None) -> list:
        return [
            n
            for n in range(1, self.source.page_count + 1)
            if not pages_to_process or n in pages_to_process
        ]

    def needs_ocr(self, page) -> bool:
        """True when the text layer is too short to be trusted."""
        return len(page.raw_text) <= self.config.text_threshold

    def _load_page(self, page_num) -> PageContent:
        try:
            return self.source.load_page(page_num)
        except DECODE_ERRORS as e:
            log_extract.error("Page %d could not be decoded: %s", page_num, e)
            self.progress(f"Page {page_num}: could not be decoded, skipping")
            return PageContent(page_num=page_num)

    async def _prepare_image(self, page_num):
        """Renders and preprocesses one page off the event loop."""
        bitmap = await asyncio.to_thread(
            self.source.render_page, page_num, self.config.ocr_render_scale
        )
        return await asyncio.to_thread(preprocess_image, bitmap)

    async def _ensure_pool(self):
        if not self.ocr_pool.initialized:
            await self.ocr_pool.initialize(self.config.ocr_language)

    async def _recognize(self, page, state, image):
        try:
            text = await self.ocr_pool.recognize(image)
        except Exception as e:
            log_ocr.error("Page %d: OCR failed: %s", page.page_num, e)
            self.progress(f"Page {page.page_num}: OCR failed, skipping")
            state.error = str(e)
            text = ""
        state.ocr_result = text
        page.ocr_text = text
        page.fragments = []
        log_ocr.info("Page %d: OCR produced %d character(s).", page.page_num, len(text))

    def _fail_ocr(self, page, state, error):
        state.error = str(error)
        state.ocr_result = ""
        page.ocr_text = ""
        page.fragments = []
        self.progress(f"Page {page.page_num}: OCR failed, skipping")

    async def _start_ocr(self, page, state):
        """Prepares a page for OCR and returns its recognition task, or None."""
        state.has_text_layer = False
        if self.ocr_pool is None or not self.config.ocr_enabled:
            log_ocr.info("Page %d has no usable text layer; OCR disabled.", page.page_num)
            return None

        state.ocr_invoked = True
        if self._ocr_unavailable:
            self._fail_ocr(page, state, "OCR engine unavailable")
            return None
        try:
            await self._ensure_pool()
        except Exception as e:
            log_ocr.error("OCR engine could not be initialized: %s", e)
            self._ocr_unavailable = True
            self._fail_ocr(page, state, e)
            return None

        try:
            image = await self._prepare_image(page.page_num)
        except Exception as e:
            log_ocr.error("Page %d could not be rendered for OCR: %s", page.page_num, e)
            self._fail_ocr(page, state, e)
            return None

        log_ocr.debug("Page %d queued for OCR.", page.page_num)
        return asyncio.create_task(self._recognize(page, state, image))

    async def extract(self, pages_to_process=None) -> list:
        """Returns the PageContent of every selected page, in page order."""
        page_nums = self.selected_pages(pages_to_process)
        total = len(page_nums)
        pages, tasks = [], []
        self.ocr_states = []

        for i, page_num in enumerate(page_nums):
            self.progress(
                f"Processing page {page_num} of {self.source.page_count}...",
                5 + (i / total) * 85,
            )
            page = self._load_page(page_num)
            state = OcrPageState(page_num=page_num)
            try:
                if self.needs_ocr(page):
                    task = await self._start_ocr(page, state)
                    if task is not None:
                        tasks.append(task)
            finally:
                self.source.release_page(page_num)
            pages.append(page)
            self.ocr_states.append(state)

        if tasks:
            self.progress(f"Recognizing text on {len(tasks)} scanned page(s)...", 90)
            try:
                await asyncio.gather(*tasks)
            except asyncio.CancelledError:
                for task in tasks:
                    task.cancel()
                raise

        log_extract.info(
            "Extracted %d page(s), %d via OCR.",
            len(pages),
            sum(1 for s in self.ocr_states if s.ocr_invoked),
        )
        return pages
