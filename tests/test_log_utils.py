import logging

import pytest

from core.log_utils import RichLogFormatter, resolve_debug_topics, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    for h in handlers:
        root.removeHandler(h)
    yield
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    for topic in ("extract", "layout", "structure", "paginate", "ocr", "api"):
        logging.getLogger(f"reflow.{topic}").setLevel(logging.NOTSET)


def test_topic_prefixes_expand():
    assert resolve_debug_topics("reflow", "pag,ocr") == {"paginate", "ocr"}
    assert resolve_debug_topics("reflow", "all") == {
        "extract",
        "layout",
        "structure",
        "paginate",
        "ocr",
        "api",
    }
    assert resolve_debug_topics("reflow", "nope") == set()


def test_formatter_prefixes_every_line():
    record = logging.LogRecord(
        "reflow.paginate", logging.INFO, __file__, 1, "first\nsecond", None, None
    )
    lines = RichLogFormatter().format(record).split("\n")
    assert lines == ["INFO :paginate: first", "INFO :paginate: second"]


def test_setup_logging_sets_topic_levels(restore_logging, tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging("reflow", logging.WARNING, debug_topics="layout", log_file=str(log_file))
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("reflow.layout").level == logging.DEBUG
    assert logging.getLogger("pdfminer").level == logging.WARNING

    logging.getLogger("reflow.layout").debug("split at x=%d", 200)
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "DEBUG:layout  : split at x=200" in log_file.read_text()
