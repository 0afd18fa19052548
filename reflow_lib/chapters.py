"""
reflow_lib/chapters.py: Splits the paragraph stream into chapters at title-like lines.
"""
import logging

from .config import MAX_TITLE_LENGTH, TITLE_CHARS
from .models import FIRST_CHAPTER_TITLE, Chapter, placeholder_chapter
from .patterns import is_chapter_title

log_structure = logging.getLogger("reflow.structure")


class ChapterSegmenter:
    """
    Walks paragraphs in order, opening a new Chapter at every heading match.

    Pages are not computed here; the caller paginates each chapter once its
    paragraph list is complete.
    """

    def __init__(self, max_title_length=MAX_TITLE_LENGTH, title_chars=TITLE_CHARS):
        self.max_title_length = max_title_length
        self.title_chars = title_chars

    def segment(self, paragraphs) -> list:
        chapters = []
        current = Chapter(title=FIRST_CHAPTER_TITLE)

        def finalize(chapter):
            if chapter.paragraphs:
                log_structure.debug(
                    "Finalizing chapter '%s' (%d paras)",
                    chapter.title,
                    len(chapter.paragraphs),
                )
                chapters.append(chapter)

        for paragraph in paragraphs:
            if is_chapter_title(paragraph, self.max_title_length):
                finalize(current)
                title = paragraph.strip()[: self.title_chars]
                log_structure.debug("Chapter title found: '%s'.", title)
                current = Chapter(title=title)
            else:
                current.paragraphs.append(paragraph)
        finalize(current)

        if not chapters:
            log_structure.warning("No readable content; emitting placeholder chapter.")
            chapters.append(placeholder_chapter())
        return chapters
