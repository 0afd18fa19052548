import pytest

from reflow_lib.patterns import is_chapter_title, is_page_number, is_standalone_title


@pytest.mark.parametrize(
    "text",
    ["12", " 7 ", "- 3 -", "— 14 —", "Page 4", "page 4 of 10", "PAGE 9/12", "3 of 10", "[5]", "(6)"],
)
def test_page_number_shapes(text):
    assert is_page_number(text)


@pytest.mark.parametrize(
    "text", ["", "12345", "Chapter 1", "Page four", "page 4 was torn", "1984 was a year"]
)
def test_text_that_is_not_a_page_number(text):
    assert not is_page_number(text)


@pytest.mark.parametrize(
    "text",
    [
        "Chapter 1",
        "chapter 12: The Return",
        "Chapter XIV",
        "CHAPTER ONE",
        "Part 2",
        "PART THREE",
        "Section 4",
        "Book 1",
        "1. Introduction",
        "IV. The Long Night",
        "Prologue",
        "epilogue",
        "Appendix B: Tables",
    ],
)
def test_chapter_title_shapes(text):
    assert is_chapter_title(text)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "The chapter begins here.",
        "Prologue to a much longer sentence",
        "1.5 million people",
        "chapters are hard",
    ],
)
def test_text_that_is_not_a_chapter_title(text):
    assert not is_chapter_title(text)


def test_long_text_is_never_a_title():
    text = "Chapter 1 " + "and the story goes on " * 10
    assert len(text) > 100
    assert not is_chapter_title(text)
    assert is_chapter_title(text, max_length=len(text))


@pytest.mark.parametrize(
    "text, standalone",
    [
        ("Chapter 1", True),
        ("PART THREE", True),
        ("Book 2", True),
        ("Preface", True),
        ("1. Introduction", False),
        ("IV. The Long Night", False),
        ("Section 4", False),
        ("Appendix B: Tables", False),
    ],
)
def test_standalone_titles_exclude_numbered_headings(text, standalone):
    assert is_chapter_title(text)
    assert is_standalone_title(text) is standalone
