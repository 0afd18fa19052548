import fitz
import pytest

from reflow_lib.source import PdfSource, fragment_from_record, fragments_from_records


def test_record_fields_are_normalized():
    fragment = fragment_from_record(
        {"str": "Hello", "x": 10, "y": 700, "width": 25, "fontName": "Times-Roman"}
    )
    assert fragment.text == "Hello"
    assert (fragment.x, fragment.y, fragment.width) == (10.0, 700.0, 25.0)
    assert fragment.height == 12.0
    assert fragment.font_name == "Times-Roman"


def test_blank_records_are_dropped():
    records = [{"text": "  ", "x": 0, "y": 0}, {"text": "kept", "x": 1, "y": 2}, {"x": 3}]
    assert [f.text for f in fragments_from_records(records)] == ["kept"]


def test_missing_pdf_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PdfSource(str(tmp_path / "nothing.pdf"))


@pytest.fixture
def sample_pdf(tmp_path):
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    page.insert_text((72, 100), "Hello reflow", fontsize=12)
    doc.set_metadata({"title": "Field Notes"})
    path = tmp_path / "sample.pdf"
    doc.save(str(path))
    doc.close()
    return str(path)


def test_pdf_source_decodes_text_layer(sample_pdf):
    with PdfSource(sample_pdf) as source:
        assert source.page_count == 1
        assert source.metadata_title == "Field Notes"
        page = source.load_page(1)
        source.release_page(1)

    assert (page.width, page.height) == (595, 842)
    assert [f.text for f in page.fragments] == ["Hello reflow"]
    fragment = page.fragments[0]
    assert fragment.x == pytest.approx(72, abs=1)
    # Baseline sits 100pt below the top edge; y is measured from the bottom.
    assert 730 < fragment.y < 745
    assert fragment.height == pytest.approx(12, abs=0.5)


def test_pdf_source_renders_pages(sample_pdf):
    with PdfSource(sample_pdf) as source:
        bitmap = source.render_page(1, 1.0)
        source.release_page(1)
    assert bitmap.shape == (842, 595, 3)
    assert bitmap.dtype.name == "uint8"
    assert bitmap.min() < 128 < bitmap.max()
