"""Value objects produced by the retrieval engine."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Sentence:
    """A sentence-level unit extracted from a single page."""

    page: int
    text: str
    ordinal: int


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A sentence that matched a query, with its relevance score."""

    page: int
    text: str
    relevance: float


@dataclass(frozen=True, slots=True)
class Citation:
    """Back-reference from a generated answer to a document page."""

    id: str
    page_number: int
    text: str
    confidence: float
