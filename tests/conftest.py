import pytest

from reflow_lib.models import PageContent, TextFragment


def fragment(text, x=72.0, y=500.0, width=None, height=10.0):
    """A fragment whose width follows the text length unless given."""
    if width is None:
        width = len(text) * 5.0
    return TextFragment(text=text, x=x, y=y, width=width, height=height)


@pytest.fixture
def make_fragment():
    return fragment


@pytest.fixture
def make_page():
    def _make_page(page_num, fragments, height=800.0, width=600.0):
        return PageContent(
            page_num=page_num, fragments=list(fragments), width=width, height=height
        )

    return _make_page
