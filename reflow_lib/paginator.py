"""
reflow_lib/paginator.py: Repacks a chapter's paragraphs into character-budget pages.
"""
import logging
import re

from .config import (
    MAX_CHARS_PER_PAGE,
    MAX_TITLE_LENGTH,
    MIN_ORPHAN_CHARS,
    MIN_WIDOW_CHARS,
    ORPHAN_MOVE_TOLERANCE,
    SENTENCE_LOOKAHEAD,
    SPACE_SPLIT_MIN_RATIO,
    WIDOW_MERGE_TOLERANCE,
)
from .patterns import is_chapter_title

log_paginate = logging.getLogger("reflow.paginate")

_SENTENCE_BREAK = re.compile(r"[.!?][\"'”’]?\s+")


def page_length(page) -> int:
    """Character count of a page as displayed (paragraphs separated by a space)."""
    return len(" ".join(page))


def split_at_sentence_boundary(
    text, max_chars, lookahead=SENTENCE_LOOKAHEAD, space_ratio=SPACE_SPLIT_MIN_RATIO
):
    """Cuts `text` into a head of at most `max_chars` and the remaining tail.

    Prefers the last sentence end inside the budget, then the last space (if it
    is past `space_ratio` of the budget), then a hard cut at the budget. The
    tail is always shorter than `text` for non-blank input.
    """
    window = text[: max_chars + lookahead]
    ends = [m.end() for m in _SENTENCE_BREAK.finditer(window) if m.end() <= max_chars]
    if ends:
        end = ends[-1]
        return text[:end].strip(), text[end:].strip()

    last_space = text.rfind(" ", 0, max_chars + 1)
    if last_space > max_chars * space_ratio:
        return text[:last_space].strip(), text[last_space:].strip()

    cut = max(1, max_chars)
    return text[:cut].strip(), text[cut:].strip()


class Paginator:
    """
    Greedy pagination followed by a widow/orphan correction pass.

    Args:
        max_chars (int): Character budget per page.
        min_widow_chars (int): A final page shorter than this is merged back.
        min_orphan_chars (int): A leading paragraph shorter than this is moved back.
        widow_tolerance (float): Merged page may reach this multiple of the budget.
        orphan_tolerance (float): Receiving page may reach this multiple of the budget.
    """

    def __init__(
        self,
        max_chars=MAX_CHARS_PER_PAGE,
        min_widow_chars=MIN_WIDOW_CHARS,
        min_orphan_chars=MIN_ORPHAN_CHARS,
        widow_tolerance=WIDOW_MERGE_TOLERANCE,
        orphan_tolerance=ORPHAN_MOVE_TOLERANCE,
        lookahead=SENTENCE_LOOKAHEAD,
        space_ratio=SPACE_SPLIT_MIN_RATIO,
        max_title_length=MAX_TITLE_LENGTH,
    ):
        self.max_chars = max_chars
        self.min_widow_chars = min_widow_chars
        self.min_orphan_chars = min_orphan_chars
        self.widow_tolerance = widow_tolerance
        self.orphan_tolerance = orphan_tolerance
        self.lookahead = lookahead
        self.space_ratio = space_ratio
        self.max_title_length = max_title_length

    @classmethod
    def from_config(cls, config):
        return cls(
            max_chars=config.max_chars_per_page,
            min_widow_chars=config.min_widow_chars,
            min_orphan_chars=config.min_orphan_chars,
            widow_tolerance=config.widow_merge_tolerance,
            orphan_tolerance=config.orphan_move_tolerance,
            lookahead=config.sentence_lookahead,
            space_ratio=config.space_split_min_ratio,
            max_title_length=config.max_title_length,
        )

    def _split(self, text, limit):
        return split_at_sentence_boundary(text, limit, self.lookahead, self.space_ratio)

    def paginate(self, paragraphs) -> list:
        """Returns the pages (lists of paragraph strings) for one chapter."""
        # count always equals page_length(page).
        pages, page, count = [], [], 0

        def flush():
            nonlocal page, count
            if page:
                pages.append(page)
            page, count = [], 0

        def add(text):
            nonlocal count
            count += len(text) + (1 if page else 0)
            page.append(text)

        for paragraph in paragraphs:
            if page and count + 1 + len(paragraph) > self.max_chars:
                flush()

            if len(paragraph) <= self.max_chars:
                add(paragraph)
                continue

            remaining = paragraph.strip()
            while remaining:
                available = self.max_chars - count - (1 if page else 0)
                if len(remaining) <= available:
                    add(remaining)
                    break
                if available > self.min_orphan_chars:
                    chunk, rest = self._split(remaining, available)
                else:
                    flush()
                    chunk, rest = self._split(remaining, self.max_chars)
                if chunk:
                    add(chunk)
                flush()
                remaining = rest
            log_paginate.debug(
                "Split a %d-char paragraph across pages.", len(paragraph)
            )
        flush()

        if len(pages) > 1:
            pages = self.fix_widows_and_orphans(pages)
        return pages

    def fix_widows_and_orphans(self, pages) -> list:
        """Pulls short trailing pages and short leading paragraphs back a page."""
        result = [list(p) for p in pages]
        i = 0
        while i < len(result):
            if i > 0 and i == len(result) - 1:
                tail_len = page_length(result[i])
                if tail_len < self.min_widow_chars:
                    merged_len = page_length(result[i - 1] + result[i])
                    if merged_len < self.max_chars * self.widow_tolerance:
                        log_paginate.debug(
                            "Widow: merging %d-char last page into previous page.",
                            tail_len,
                        )
                        result[i - 1].extend(result[i])
                        del result[i]
                        break

            if i > 0 and result[i]:
                first = result[i][0]
                if len(first) < self.min_orphan_chars and not is_chapter_title(
                    first, self.max_title_length
                ):
                    moved_len = page_length(result[i - 1] + [first])
                    if moved_len < self.max_chars * self.orphan_tolerance:
                        log_paginate.debug(
                            "Orphan: moving %d-char paragraph to page %d.", len(first), i
                        )
                        result[i - 1].append(result[i].pop(0))
                        if not result[i]:
                            del result[i]
                            continue
            i += 1

        return [p for p in result if p and any(t.strip() for t in p)]
