"""Data models used by the ingestion layer and the document index."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Page:
    """Text extracted from a single page (``number`` is 1-based)."""

    number: int
    text: str


@dataclass(frozen=True, slots=True)
class Document:
    """An uploaded document and its page texts in reading order."""

    id: str
    name: str
    pages: Tuple[str, ...]
    size_bytes: int = 0
    page_count: int = 0
    uploaded_at: datetime = field(default_factory=_utcnow)

    def page(self, number: int) -> Page:
        """Return page *number*; raises :class:`IndexError` when out of range."""

        if number < 1 or number > len(self.pages):
            raise IndexError(f"page {number} is out of range for document {self.id}")
        return Page(number=number, text=self.pages[number - 1])
