"""
reflow_lib/header_footer.py: Cross-page detection of running headers and footers.

Running headers and footers repeat near-verbatim from page to page except for the
page number, so zone text is compared after digits are collapsed to a placeholder.
"""
import logging
import re
from collections import Counter

from .config import HEADER_FOOTER_MARGIN
from .patterns import is_page_number

log_extract = logging.getLogger("reflow.extract")

DIGIT_PLACEHOLDER = "#"
REPETITION_PERCENT = 30
MIN_REPETITIONS = 2
MIN_PATTERN_LENGTH = 2


def normalize_zone_text(text: str) -> str:
    """Collapses digit runs, trims and case-folds. Idempotent."""
    return re.sub(r"\d+", DIGIT_PLACEHOLDER, text).strip().lower()


def zone_of(fragment, page_height: float, margin: float = HEADER_FOOTER_MARGIN):
    """Returns "top", "bottom" or None for a fragment's vertical band."""
    if page_height <= 0:
        return None
    normalized_y = fragment.y / page_height
    if normalized_y > 1 - margin:
        return "top"
    if normalized_y < margin:
        return "bottom"
    return None


def zone_texts(fragments, page_height: float, margin: float = HEADER_FOOTER_MARGIN):
    """Joins and normalizes the text of each zone band of a page."""
    top, bottom = [], []
    for fragment in fragments:
        zone = zone_of(fragment, page_height, margin)
        if zone == "top":
            top.append(fragment.text)
        elif zone == "bottom":
            bottom.append(fragment.text)
    return (
        normalize_zone_text(" ".join(top)) if top else "",
        normalize_zone_text(" ".join(bottom)) if bottom else "",
    )


class HeaderFooterDetector:
    """
    Accumulates top/bottom zone text over a whole document, then decides which
    patterns are page furniture. One instance serves one document run.

    Args:
        margin (float): Fraction of the page height treated as header/footer zone.
    """

    def __init__(self, margin=HEADER_FOOTER_MARGIN):
        self.margin = margin
        self.top_texts = Counter()
        self.bottom_texts = Counter()
        self.page_count = 0

    def observe(self, fragments, page_height):
        """Records one page's zone text. Call once per page, in document order."""
        self.page_count += 1
        if page_height <= 0:
            log_extract.debug(
                "Page %d has no usable height; skipping zone analysis.", self.page_count
            )
            return
        top, bottom = zone_texts(fragments, page_height, self.margin)
        if len(top) > MIN_PATTERN_LENGTH:
            self.top_texts[top] += 1
        if len(bottom) > MIN_PATTERN_LENGTH:
            self.bottom_texts[bottom] += 1

    @property
    def threshold(self) -> float:
        return max(MIN_REPETITIONS, self.page_count * REPETITION_PERCENT / 100)

    def is_repeating(self, count) -> bool:
        """Integer form of `count >= threshold`, free of float rounding."""
        if count < MIN_REPETITIONS:
            return False
        return count * 100 >= self.page_count * REPETITION_PERCENT

    def resolve(self) -> set:
        """Returns the normalized zone strings that repeat often enough to suppress."""
        patterns = {t for t, n in self.top_texts.items() if self.is_repeating(n)}
        patterns.update(t for t, n in self.bottom_texts.items() if self.is_repeating(n))
        log_extract.info(
            "Header/footer detector: %d repeating pattern(s) over %d page(s) "
            "(threshold %.1f).",
            len(patterns),
            self.page_count,
            self.threshold,
        )
        for pattern in sorted(patterns):
            log_extract.debug("  - Suppressing '%s'", pattern)
        return patterns


def filter_page_furniture(fragments, page_height, patterns, margin=HEADER_FOOTER_MARGIN):
    """Drops repeating header/footer text and stray page numbers from a page.

    A zone fragment goes when its own text, or the joined text of its whole zone
    band, is a suppressed pattern, or when it is a page number. Page numbers are
    removed anywhere on the page.
    """
    top_key, bottom_key = zone_texts(fragments, page_height, margin)
    band_suppressed = {
        "top": top_key in patterns,
        "bottom": bottom_key in patterns,
    }
    kept = []
    for fragment in fragments:
        if is_page_number(fragment.text):
            continue
        zone = zone_of(fragment, page_height, margin)
        if zone and (
            band_suppressed[zone] or normalize_zone_text(fragment.text) in patterns
        ):
            continue
        kept.append(fragment)
    dropped = len(fragments) - len(kept)
    if dropped:
        log_extract.debug("Dropped %d furniture fragment(s).", dropped)
    return kept
