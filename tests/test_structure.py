from reflow_lib.chapters import ChapterSegmenter
from reflow_lib.lines import rejoin_hyphenated
from reflow_lib.models import PLACEHOLDER_PARAGRAPH, PLACEHOLDER_TITLE
from reflow_lib.paragraphs import ParagraphBuilder, build_paragraphs


def test_hyphenated_lines_read_as_one_paragraph():
    lines = rejoin_hyphenated(["exam-", "ple text"])
    assert build_paragraphs(lines, min_length=5) == ["example text"]


def test_sentence_end_and_short_line_start_a_new_paragraph():
    lines = ["This is the first sentence.", "Another one starts here and goes on."]
    assert build_paragraphs(lines) == lines


def test_wrapped_lines_are_joined():
    lines = ["the quick brown fox jumps", "over the lazy dog again"]
    assert build_paragraphs(lines) == ["the quick brown fox jumps over the lazy dog again"]


def test_full_width_line_does_not_end_a_paragraph():
    long_line = "This line runs the full width of the column and ends a sentence too."
    long_line = long_line + " " + "More words fill it."
    assert len(long_line) >= 70
    paragraphs = build_paragraphs([long_line, "Then the text continues below."])
    assert paragraphs == [long_line + " Then the text continues below."]


def test_blank_line_closes_a_paragraph():
    lines = ["first paragraph of the text", "", "second paragraph of the text"]
    assert build_paragraphs(lines) == [
        "first paragraph of the text",
        "second paragraph of the text",
    ]


def test_page_numbers_and_noise_are_dropped():
    lines = ["A paragraph that is long enough.", "", "12", "", "Hi.", "", "- 4 -"]
    assert build_paragraphs(lines) == ["A paragraph that is long enough."]


def test_headings_get_their_own_paragraph():
    lines = ["Some closing words of the prologue", "Chapter 1", "It was a dark and stormy night."]
    assert build_paragraphs(lines) == [
        "Some closing words of the prologue",
        "Chapter 1",
        "It was a dark and stormy night.",
    ]


def test_heading_isolation_can_be_disabled():
    builder = ParagraphBuilder(isolate_headings=False)
    assert builder.build(["Chapter 1"]) == []


def test_whitespace_is_normalized():
    assert build_paragraphs(["  spaced    out   words  here  "]) == ["spaced out words here"]


def test_chapter_split_scenario():
    paragraphs = [
        "An opening paragraph before any heading.",
        "Chapter 1",
        "The first chapter body.",
        "Chapter 2",
        "The second chapter body.",
    ]
    chapters = ChapterSegmenter().segment(paragraphs)
    assert [c.title for c in chapters] == ["Beginning", "Chapter 1", "Chapter 2"]
    assert [c.paragraphs for c in chapters] == [
        ["An opening paragraph before any heading."],
        ["The first chapter body."],
        ["The second chapter body."],
    ]


def test_empty_chapters_are_not_emitted():
    chapters = ChapterSegmenter().segment(["Chapter 1", "Chapter 2", "Body of the second one."])
    assert [c.title for c in chapters] == ["Chapter 2"]


def test_long_titles_are_truncated():
    heading = "Chapter 1: " + "a" * 85
    chapters = ChapterSegmenter().segment([heading, "Some body text."])
    assert chapters[0].title == heading[:80]


def test_no_paragraphs_yields_the_placeholder_chapter():
    chapters = ChapterSegmenter().segment([])
    assert len(chapters) == 1
    assert chapters[0].title == PLACEHOLDER_TITLE
    assert chapters[0].paragraphs == [PLACEHOLDER_PARAGRAPH]
    assert chapters[0].pages == [[PLACEHOLDER_PARAGRAPH]]


def test_numbered_list_item_inside_a_sentence_stays_in_the_paragraph():
    lines = [
        "The committee agreed on the following plan for the",
        "1. Review all of the budget items before the next meeting",
        "and report back to the board with recommendations.",
    ]
    paragraphs = build_paragraphs(lines)
    assert paragraphs == [" ".join(lines)]
    chapters = ChapterSegmenter().segment(paragraphs)
    assert [c.title for c in chapters] == ["Beginning"]


def test_numbered_heading_after_a_full_stop_stands_alone():
    lines = ["The previous section ends here.", "2. Methods", "We measured everything twice."]
    assert build_paragraphs(lines, min_length=5) == lines


def test_heading_followed_by_a_lowercase_continuation_is_joined():
    lines = [
        "Chapter 3 of the manual, the",
        "installation guide, covers every supported platform in some detail",
        "and lists the known problems for each one.",
    ]
    paragraphs = build_paragraphs(lines)
    assert paragraphs == [" ".join(lines)]
    assert [c.title for c in ChapterSegmenter().segment(paragraphs)] == ["Beginning"]
