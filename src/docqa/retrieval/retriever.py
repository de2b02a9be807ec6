"""Rank the sentences of a document against a query."""
from __future__ import annotations

from typing import List, Sequence

from .models import SearchResult
from .scoring import score
from .segmenter import RETRIEVAL_MIN_SENTENCE_LENGTH, iter_sentences

MIN_RELEVANCE = 0.3
MAX_RESULTS = 5


def search(pages: Sequence[str], query: str, limit: int = MAX_RESULTS) -> List[SearchResult]:
    """Return the top matching sentences for *query* across *pages*.

    Only sentences that contain the query (case-insensitively) are scored and
    only those scoring above :data:`MIN_RELEVANCE` are kept. Results are ordered
    by relevance, highest first; equal scores keep reading order.
    """

    if limit <= 0 or not query or not query.strip():
        return []

    query_lower = query.lower()
    results: List[SearchResult] = []
    for sentence in iter_sentences(pages, RETRIEVAL_MIN_SENTENCE_LENGTH):
        sentence_lower = sentence.text.lower()
        if query_lower not in sentence_lower:
            continue
        relevance = score(sentence_lower, query_lower)
        if relevance > MIN_RELEVANCE:
            results.append(SearchResult(page=sentence.page, text=sentence.text, relevance=relevance))

    # Ties stay in (page, ordinal) order.
    results.sort(key=lambda result: result.relevance, reverse=True)
    return results[:limit]


__all__ = ["MAX_RESULTS", "MIN_RELEVANCE", "search"]
