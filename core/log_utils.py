#!/usr/bin/env python3
"""
core/log_utils.py: Logging setup shared by the reflow library and its CLI.

This module contains:
- setup_logging: Configures the root logger, optional log file and per-topic
  debug levels (e.g. `-d layout,ocr`).
- ContextFilter: A logging filter that stamps records with a context string
  (typically the document being processed).
- RichLogFormatter: A formatter producing colored, topic-aligned console lines.
"""

import logging

PROJECT_TOPICS = {
    "reflow": {"extract", "layout", "structure", "paginate", "ocr", "api"},
}

NOISY_LIBRARIES = ("pdfminer", "PIL", "easyocr", "fitz")


def setup_logging(
    project_name: str,
    level=logging.INFO,
    color_logs=False,
    debug_topics=None,
    log_file: str = None,
    context: str = None,
):
    """Configures logging for the application.

    Args:
        project_name (str): Root logger name of the project, e.g. "reflow".
        level (int): Level applied to the root logger.
        color_logs (bool): Use ANSI colors on the console handler.
        debug_topics (str | None): Comma separated topic prefixes to set to
            DEBUG, or "all".
        log_file (str | None): Optional file that receives an uncolored copy.
        context (str | None): Optional context string shown on every record.
    """
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        for h in root_logger.handlers[:]:
            root_logger.removeHandler(h)
            h.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(RichLogFormatter(use_color=color_logs))
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="w")
            file_handler.setFormatter(RichLogFormatter(use_color=False))
            root_logger.addHandler(file_handler)
            logging.getLogger(project_name).info("Logging to file: %s", log_file)
        except IOError as e:
            logging.getLogger(project_name).error(
                "Could not open log file %s: %s", log_file, e
            )

    if context:
        for handler in root_logger.handlers:
            handler.addFilter(ContextFilter(context))

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    if debug_topics:
        for topic in resolve_debug_topics(project_name, debug_topics):
            logging.getLogger(f"{project_name}.{topic}").setLevel(logging.DEBUG)


def resolve_debug_topics(project_name: str, debug_topics: str) -> set:
    """Expands user supplied topic prefixes into the project's full topic names."""
    valid_topics = PROJECT_TOPICS.get(project_name, set())
    user_topics = [t.strip() for t in debug_topics.split(",") if t.strip()]
    if "all" in user_topics:
        return set(valid_topics)
    return {full for u in user_topics for full in valid_topics if full.startswith(u)}


class ContextFilter(logging.Filter):
    """
    A logging filter that injects contextual information into log records.
    """

    def __init__(self, context_str=""):
        super().__init__()
        self.context_str = context_str

    def filter(self, record):
        record.context = self.context_str
        return True


class RichLogFormatter(logging.Formatter):
    """A custom logging formatter for colorful and aligned console output.

    Every line of a message is prefixed with the level name and the logger
    topic (the part of the logger name after the project name).

    Args:
        use_color (bool): If True, ANSI color codes are used. Defaults to False.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[38;5;252m",  # Light Grey
        logging.INFO: "\033[38;5;111m",  # Pastel Blue
        logging.WARNING: "\033[38;5;229m",  # Pale Yellow
        logging.ERROR: "\033[38;5;210m",  # Soft Red
        logging.CRITICAL: "\033[38;5;217m",  # Light Magenta
    }

    def __init__(self, use_color=False):
        super().__init__()
        if use_color:
            self.COLORS = dict(self.LEVEL_COLORS)
            self.BOLD = "\033[1m"
            self.RESET = "\033[0m"
        else:
            self.COLORS = {level: "" for level in self.LEVEL_COLORS}
            self.BOLD = ""
            self.RESET = ""

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        level_name = record.levelname[:5]

        name_parts = record.name.split(".")
        topic = name_parts[1][:8] if len(name_parts) > 1 else record.name[:8]

        context = getattr(record, "context", "")
        context_str = f"[{context}]" if context else ""

        prefix = (
            f"{color}{level_name:<5}{self.RESET}:"
            f"{self.BOLD}{topic:<8}{self.RESET}{context_str}: "
        )
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return "\n".join(f"{prefix}{line}" for line in message.split("\n"))
