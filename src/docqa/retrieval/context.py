"""Assemble a character-budgeted context window for the generative model."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .retriever import search
from .segmenter import CONTEXT_MIN_SENTENCE_LENGTH, split_sentences

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTEXT_BUDGET = 4000
WINDOW_RADIUS = 2
FALLBACK_PAGE_COUNT = 3
FALLBACK_PAGE_CHARS = 1000
ELLIPSIS = "..."


def format_page_block(page_number: int, text: str) -> str:
    """Wrap *text* with the page header used throughout the prompt."""

    return f"\n[Page {page_number}]\n{text}\n"


def _expand_window(page_text: str, query_lower: str) -> Optional[str]:
    sentences = split_sentences(page_text, CONTEXT_MIN_SENTENCE_LENGTH)
    match_index = next(
        (index for index, sentence in enumerate(sentences) if query_lower in sentence.lower()),
        None,
    )
    if match_index is None:
        return None

    start = max(0, match_index - WINDOW_RADIUS)
    end = min(len(sentences), match_index + WINDOW_RADIUS + 1)
    return ". ".join(sentences[start:end])


def _accumulate(blocks: Iterable[str], budget: int) -> List[str]:
    accepted: List[str] = []
    used = 0
    for block in blocks:
        if used + len(block) >= budget:
            break
        accepted.append(block)
        used += len(block)
    return accepted


def _primary_blocks(pages: Sequence[str], query: str) -> Iterable[str]:
    query_lower = query.lower()
    for result in search(pages, query):
        window = _expand_window(pages[result.page - 1], query_lower)
        if window is not None:
            yield format_page_block(result.page, window)


def _fallback_blocks(pages: Sequence[str]) -> Iterable[str]:
    for index, page_text in enumerate(pages[:FALLBACK_PAGE_COUNT], start=1):
        yield format_page_block(index, f"{page_text[:FALLBACK_PAGE_CHARS]}{ELLIPSIS}")


def build_context(
    pages: Sequence[str],
    query: str,
    budget: int = DEFAULT_CONTEXT_BUDGET,
) -> str:
    """Return the context string for *query*, never longer than *budget*.

    Matching sentences are expanded with up to two neighbours on each side of
    the first query hit on their page. Blocks are appended while the total stays
    under the budget; the first block that does not fit ends accumulation. When
    nothing matches, the opening pages are used instead.
    """

    if budget <= 0 or not pages:
        return ""

    blocks = _accumulate(_primary_blocks(pages, query), budget)
    if not blocks:
        LOGGER.debug("No query match for context window; using opening pages")
        blocks = _accumulate(_fallback_blocks(pages), budget)
    return "".join(blocks)


__all__ = ["DEFAULT_CONTEXT_BUDGET", "build_context", "format_page_block"]
