import pytest

from docqa.errors import ExtractionError
from docqa.ingest import PDFExtractor, UnsupportedFormatError, ensure_pdf_upload, is_pdf_upload
from docqa.ingest.normalization import normalize_page_text


def test_extract_returns_page_texts_in_order(pdf_factory) -> None:
    data = pdf_factory(["Alpha page text", "Beta page text"])
    extractor = PDFExtractor()

    pages = extractor.extract(data)

    assert len(pages) == 2
    assert "Alpha page text" in pages[0]
    assert "Beta page text" in pages[1]
    assert extractor.page_count(data) == 2


def test_extract_rejects_empty_and_garbage_bytes() -> None:
    extractor = PDFExtractor()

    with pytest.raises(ExtractionError):
        extractor.extract(b"")
    with pytest.raises(ExtractionError):
        extractor.extract(b"this is definitely not a pdf")


def test_page_count_is_zero_for_unreadable_data() -> None:
    extractor = PDFExtractor()

    assert extractor.page_count(b"") == 0
    assert extractor.page_count(b"garbage") == 0


def test_normalize_page_text_collapses_whitespace() -> None:
    assert normalize_page_text("  Line one\n\nline\ttwo   ") == "Line one line two"
    assert normalize_page_text("") == ""


@pytest.mark.parametrize(
    ("file_name", "mime_type"),
    [
        ("report.pdf", None),
        ("REPORT.PDF", None),
        ("upload", "application/pdf"),
    ],
)
def test_detects_pdf_uploads(file_name: str, mime_type) -> None:
    assert is_pdf_upload(file_name, mime_type) is True
    ensure_pdf_upload(file_name, mime_type)


@pytest.mark.parametrize("file_name", ["notes.txt", "contract.docx", "no_suffix"])
def test_rejects_other_formats(file_name: str) -> None:
    with pytest.raises(UnsupportedFormatError):
        ensure_pdf_upload(file_name, "text/plain")
