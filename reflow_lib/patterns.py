"""
reflow_lib/patterns.py: Text-shape predicates for page numbers and chapter titles.

Both tables are unordered in meaning: a string matches if any pattern matches.
"""
import re

from .config import MAX_TITLE_LENGTH

PAGE_NUMBER_PATTERNS = (
    re.compile(r"^\d{1,4}$"),
    re.compile(r"^[-–—]\s*\d{1,4}\s*[-–—]$"),
    re.compile(r"^page\s+\d{1,4}(\s*(of|/)\s*\d{1,4})?$", re.I),
    re.compile(r"^\d{1,4}\s*of\s*\d{1,4}$", re.I),
    re.compile(r"^\[\s*\d{1,4}\s*\]$"),
    re.compile(r"^\(\s*\d{1,4}\s*\)$"),
)

# Headings that name a division of the book outright.
STANDALONE_TITLE_PATTERNS = (
    re.compile(r"^chapter\s+\d+", re.I),
    re.compile(r"^chapter\s+[ivxlcdm]+\b", re.I),
    re.compile(r"^part\s+\d+", re.I),
    re.compile(r"^part\s+[ivxlcdm]+\b", re.I),
    re.compile(r"^book\s+\d+", re.I),
    re.compile(r"^CHAPTER\s+"),
    re.compile(r"^PART\s+"),
    re.compile(r"^(prologue|epilogue|introduction|preface|foreword|conclusion)$", re.I),
)

# Numbered and lettered headings, which also open list items in running text.
CHAPTER_TITLE_PATTERNS = STANDALONE_TITLE_PATTERNS + (
    re.compile(r"^section\s+\d+", re.I),
    re.compile(r"^\d+\.\s+[A-Z]"),
    re.compile(r"^[IVXLCDM]+\.\s+"),
    re.compile(r"^appendix", re.I),
)


def is_page_number(text: str) -> bool:
    """True if the trimmed text is nothing but page-number furniture."""
    trimmed = text.strip()
    if not trimmed:
        return False
    return any(p.match(trimmed) for p in PAGE_NUMBER_PATTERNS)


def is_chapter_title(text: str, max_length: int = MAX_TITLE_LENGTH) -> bool:
    """True if the text looks like a chapter heading.

    Long strings are rejected before any pattern is tried, so body text that
    merely starts with "Chapter" is never taken for a heading.
    """
    trimmed = text.strip()
    if not trimmed or len(trimmed) > max_length:
        return False
    return any(p.match(trimmed) for p in CHAPTER_TITLE_PATTERNS)


def is_standalone_title(text: str, max_length: int = MAX_TITLE_LENGTH) -> bool:
    """True if the text is a heading that cannot be a list item or sentence start."""
    trimmed = text.strip()
    if not trimmed or len(trimmed) > max_length:
        return False
    return any(p.match(trimmed) for p in STANDALONE_TITLE_PATTERNS)
