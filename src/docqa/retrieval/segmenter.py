"""Sentence segmentation for page text."""
from __future__ import annotations

import re
from typing import Iterator, List, Sequence

from .models import Sentence

# Sentences are cut on runs of terminal punctuation.
_SENTENCE_BOUNDARY_RE = re.compile(r"[.!?]+")

RETRIEVAL_MIN_SENTENCE_LENGTH = 20
CONTEXT_MIN_SENTENCE_LENGTH = 10


def split_sentences(text: str, min_length: int) -> List[str]:
    """Split *text* into trimmed sentences longer than *min_length* characters."""

    if not text or not text.strip():
        return []

    sentences: List[str] = []
    for fragment in _SENTENCE_BOUNDARY_RE.split(text):
        candidate = fragment.strip()
        if len(candidate) > min_length:
            sentences.append(candidate)
    return sentences


def iter_sentences(pages: Sequence[str], min_length: int) -> Iterator[Sentence]:
    """Yield :class:`Sentence` objects for every page in reading order."""

    for index, page_text in enumerate(pages, start=1):
        for ordinal, text in enumerate(split_sentences(page_text, min_length)):
            yield Sentence(page=index, text=text, ordinal=ordinal)


__all__ = [
    "CONTEXT_MIN_SENTENCE_LENGTH",
    "RETRIEVAL_MIN_SENTENCE_LENGTH",
    "iter_sentences",
    "split_sentences",
]
