"""
reflow_lib/columns.py: Splits a page's fragments into independent reading columns.
"""
import logging
from collections import Counter

from .config import (
    COLUMN_GAP_THRESHOLD,
    COLUMN_GRID,
    DOMINANT_X_MIN_COUNT,
    MIN_COLUMN_FRAGMENTS,
)

log_layout = logging.getLogger("reflow.layout")


def reading_sort_key(fragment):
    """Top of page first, then left to right."""
    return (-fragment.y, fragment.x)


def dominant_x_positions(
    fragments, grid=COLUMN_GRID, min_count=DOMINANT_X_MIN_COUNT
) -> list:
    """Returns the sorted grid-rounded x origins shared by at least `min_count` fragments."""
    counts = Counter(round(f.x / grid) * grid for f in fragments)
    return sorted(x for x, n in counts.items() if n >= min_count)


def split_columns(
    fragments,
    gap_threshold=COLUMN_GAP_THRESHOLD,
    min_fragments=MIN_COLUMN_FRAGMENTS,
    grid=COLUMN_GRID,
    min_count=DOMINANT_X_MIN_COUNT,
) -> list:
    """Separates a two-column layout into a left and a right reading sequence.

    Column starts are x origins that recur across the page. When two of them are
    further apart than `gap_threshold`, the page is cut at the midpoint of the
    widest such gap; every fragment left of the cut is read before any fragment
    right of it. Only two columns are modeled.
    """
    if len(fragments) < min_fragments:
        return [list(fragments)]

    dominant = dominant_x_positions(fragments, grid, min_count)
    if len(dominant) >= 2:
        gaps = [(b - a, a, b) for a, b in zip(dominant, dominant[1:])]
        widest, left_x, right_x = max(gaps)
        if widest > gap_threshold:
            mid_x = left_x + widest / 2
            left = sorted((f for f in fragments if f.x < mid_x), key=reading_sort_key)
            right = sorted((f for f in fragments if f.x >= mid_x), key=reading_sort_key)
            log_layout.debug(
                "Two columns detected: split at x=%.1f (%d left, %d right).",
                mid_x,
                len(left),
                len(right),
            )
            return [col for col in (left, right) if col]

    return [sorted(fragments, key=reading_sort_key)]
