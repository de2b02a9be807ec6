"""Page-text extraction for uploaded PDF documents."""
from __future__ import annotations

import io
import logging
from typing import List

from PyPDF2 import PdfReader

from docqa.errors import ExtractionError

from .normalization import normalize_page_text

LOGGER = logging.getLogger(__name__)


class PDFExtractor:
    """Extract ordered page texts from PDF bytes."""

    def extract(self, data: bytes) -> List[str]:
        """Return one normalised string per page, in reading order.

        Raises :class:`ExtractionError` when the document cannot be parsed. A
        page whose text layer fails to decode contributes an empty string so
        page numbering stays aligned with the source file.
        """

        reader = self._open(data)
        pages: List[str] = []
        try:
            reader_pages = list(reader.pages)
        except Exception as error:
            raise ExtractionError("Failed to extract text from PDF", cause=error) from error

        for index, page in enumerate(reader_pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as error:  # pragma: no cover - depends on PDF backend
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                text = ""
            pages.append(normalize_page_text(str(text)))
        return pages

    def page_count(self, data: bytes) -> int:
        """Return the number of pages, or ``0`` when the PDF cannot be read."""

        try:
            return len(self._open(data).pages)
        except Exception as error:
            LOGGER.warning("Error getting page count: %s", error)
            return 0

    @staticmethod
    def _open(data: bytes) -> PdfReader:
        if not data:
            raise ExtractionError("Failed to extract text from PDF: file is empty")
        try:
            return PdfReader(io.BytesIO(data))
        except Exception as error:
            LOGGER.warning("PyPDF2 failed to parse PDF content: %s", error)
            raise ExtractionError("Failed to extract text from PDF", cause=error) from error


__all__ = ["PDFExtractor"]
