"""Derive page citations for a generated answer."""
from __future__ import annotations

from typing import Callable, List, Sequence

from .models import Citation, SearchResult
from .retriever import search

MAX_CITATIONS = 3
EXCERPT_CHARS = 100
MIN_TOKEN_LENGTH = 3
MIN_OVERLAP = 2
HIGH_RELEVANCE = 0.7
OVERLAP_WEIGHT = 0.1
MAX_CONFIDENCE = 0.95


def make_excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    """Return the first *limit* characters of *text*, ellipsis-suffixed if cut."""

    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def _overlap_count(candidate: SearchResult, answer_tokens: set[str]) -> int:
    return sum(
        1
        for token in candidate.text.lower().split()
        if len(token) > MIN_TOKEN_LENGTH and token in answer_tokens
    )


def extract_citations(
    answer: str,
    pages: Sequence[str],
    query: str,
    *,
    retrieve: Callable[[Sequence[str], str], List[SearchResult]] = search,
) -> List[Citation]:
    """Correlate *answer* with the passages retrieved for *query*.

    Candidates come from the same ranking used to build the prompt context, so
    every citation can be traced back to a retrieved sentence.
    """

    candidates = retrieve(pages, query)
    if not candidates:
        return []

    answer_tokens = set(answer.lower().split())
    accepted: List[tuple[SearchResult, float]] = []
    for candidate in candidates:
        overlap = _overlap_count(candidate, answer_tokens)
        if overlap > MIN_OVERLAP or candidate.relevance > HIGH_RELEVANCE:
            confidence = min(candidate.relevance + overlap * OVERLAP_WEIGHT, MAX_CONFIDENCE)
            accepted.append((candidate, confidence))

    if not accepted:
        top = candidates[0]
        accepted.append((top, top.relevance))

    return [
        Citation(
            id=str(position),
            page_number=candidate.page,
            text=make_excerpt(candidate.text),
            confidence=confidence,
        )
        for position, (candidate, confidence) in enumerate(accepted[:MAX_CITATIONS], start=1)
    ]


__all__ = ["MAX_CITATIONS", "extract_citations", "make_excerpt"]
