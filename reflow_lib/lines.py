"""
reflow_lib/lines.py: Rebuilds text lines from one column of positioned fragments.
"""
import logging

from .config import LINE_Y_TOLERANCE, WORD_GAP_FACTOR
from .columns import reading_sort_key

log_layout = logging.getLogger("reflow.layout")


def group_fragments_into_lines(fragments, tolerance=LINE_Y_TOLERANCE) -> list:
    """Groups fragments into vertical bands, top first.

    A new band starts when a fragment sits more than `tolerance` away from the
    previous fragment's baseline. Each band is returned ordered left to right.
    """
    ordered = sorted(fragments, key=reading_sort_key)
    bands, current, last_y = [], [], None
    for fragment in ordered:
        if current and abs(fragment.y - last_y) > tolerance:
            bands.append(current)
            current = []
        current.append(fragment)
        last_y = fragment.y
    if current:
        bands.append(current)
    return [sorted(band, key=lambda f: f.x) for band in bands]


def join_band(band, gap_factor=WORD_GAP_FACTOR) -> str:
    """Concatenates one band, inserting a space where a word gap is implied."""
    if not band:
        return ""
    text, last_end = band[0].text, band[0].end_x
    for fragment in band[1:]:
        gap = fragment.x - last_end
        if (
            gap > fragment.height * gap_factor
            and not text.endswith(" ")
            and not fragment.text.startswith(" ")
        ):
            text += " "
        text += fragment.text
        last_end = fragment.end_x
    return text.strip()


def rejoin_hyphenated(lines) -> list:
    """Mends words broken with a trailing hyphen across consecutive lines.

    The hyphen is dropped and the next line's first word is pulled up. If that
    word was the whole next line, the next line disappears; otherwise its
    remainder stays as its own line. Genuine compounds that happen to end a line
    are joined too.
    """
    pending = list(lines)
    rejoined = []
    i = 0
    while i < len(pending):
        line = pending[i]
        if line.endswith("-") and i + 1 < len(pending):
            words = pending[i + 1].split()
            first = words[0] if words else ""
            rejoined.append(line[:-1] + first)
            if len(words) > 1:
                pending[i + 1] = " ".join(words[1:])
            else:
                i += 1
        else:
            rejoined.append(line)
        i += 1
    return rejoined


def build_lines(fragments, tolerance=LINE_Y_TOLERANCE, gap_factor=WORD_GAP_FACTOR) -> list:
    """Turns one reading column of fragments into ordered, de-hyphenated lines."""
    if not fragments:
        return []
    lines = []
    for band in group_fragments_into_lines(fragments, tolerance):
        text = join_band(band, gap_factor)
        if text:
            lines.append(text)
    log_layout.debug("Built %d line(s) from %d fragment(s).", len(lines), len(fragments))
    return rejoin_hyphenated(lines)
