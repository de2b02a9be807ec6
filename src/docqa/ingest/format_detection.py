"""Upload checks applied before any page extraction."""
from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional

PDF_MIME_TYPE = "application/pdf"
PDF_SUFFIX = ".pdf"


class UnsupportedFormatError(ValueError):
    """Raised when an upload is not a PDF."""


def is_pdf_upload(file_name: str, content_type: Optional[str] = None) -> bool:
    """Accept an upload when its declared type, guessed type or suffix says PDF."""

    if content_type == PDF_MIME_TYPE:
        return True
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed == PDF_MIME_TYPE or Path(file_name).suffix.lower() == PDF_SUFFIX


def ensure_pdf_upload(file_name: str, content_type: Optional[str] = None) -> None:
    if not is_pdf_upload(file_name, content_type):
        raise UnsupportedFormatError(f"Unsupported file format: {file_name}")


__all__ = ["PDF_MIME_TYPE", "UnsupportedFormatError", "ensure_pdf_upload", "is_pdf_upload"]
