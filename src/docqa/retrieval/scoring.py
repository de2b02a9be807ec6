"""Lexical relevance scoring between a sentence and a query."""
from __future__ import annotations

EXACT_MATCH_BONUS = 0.3


def score(sentence_lower: str, query_lower: str) -> float:
    """Return the relevance of *sentence_lower* for *query_lower* in ``[0, 1]``.

    Both arguments are expected to be lowercased already. The score is the
    fraction of query tokens found as substrings of the sentence, plus a
    bonus when the whole query appears verbatim, capped at ``1.0``.
    """

    tokens = query_lower.split()
    if not tokens:
        return 0.0

    matches = sum(1 for token in tokens if token in sentence_lower)
    base_score = matches / len(tokens)
    exact_bonus = EXACT_MATCH_BONUS if query_lower in sentence_lower else 0.0
    return min(base_score + exact_bonus, 1.0)


__all__ = ["EXACT_MATCH_BONUS", "score"]
