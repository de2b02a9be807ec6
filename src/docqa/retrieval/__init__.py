"""Lexical retrieval, context assembly and citation extraction."""

from .citations import MAX_CITATIONS, extract_citations, make_excerpt
from .context import DEFAULT_CONTEXT_BUDGET, build_context, format_page_block
from .models import Citation, SearchResult, Sentence
from .retriever import MAX_RESULTS, MIN_RELEVANCE, search
from .scoring import score
from .segmenter import (
    CONTEXT_MIN_SENTENCE_LENGTH,
    RETRIEVAL_MIN_SENTENCE_LENGTH,
    iter_sentences,
    split_sentences,
)

__all__ = [
    "CONTEXT_MIN_SENTENCE_LENGTH",
    "Citation",
    "DEFAULT_CONTEXT_BUDGET",
    "MAX_CITATIONS",
    "MAX_RESULTS",
    "MIN_RELEVANCE",
    "RETRIEVAL_MIN_SENTENCE_LENGTH",
    "SearchResult",
    "Sentence",
    "build_context",
    "extract_citations",
    "format_page_block",
    "iter_sentences",
    "make_excerpt",
    "score",
    "search",
    "split_sentences",
]
