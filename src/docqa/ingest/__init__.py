"""Document ingestion: format checks, page extraction and normalisation."""

from .extractors import PDFExtractor
from .format_detection import UnsupportedFormatError, ensure_pdf_upload, is_pdf_upload
from .models import Document, Page
from .normalization import normalize_page_text

__all__ = [
    "Document",
    "PDFExtractor",
    "Page",
    "UnsupportedFormatError",
    "ensure_pdf_upload",
    "is_pdf_upload",
    "normalize_page_text",
]
