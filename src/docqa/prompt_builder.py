"""Utilities for constructing prompts sent to the generative model."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from docqa.conversation import HISTORY_WINDOW, ConversationTurn, render_history

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_ANSWER_PROMPT_PATH = _PROMPTS_DIR / "answer.txt"
_SUMMARY_PROMPT_PATH = _PROMPTS_DIR / "summary.txt"

SUMMARY_PAGE_COUNT = 5
SUMMARY_MAX_CHARS = 8000


def _load_template(path: Path) -> str:
    """Read and trim the contents of a template file."""
    return path.read_text(encoding="utf-8").strip()


_ANSWER_TEMPLATE = _load_template(_ANSWER_PROMPT_PATH)
_SUMMARY_TEMPLATE = _load_template(_SUMMARY_PROMPT_PATH)


def build_prompt(
    question: str,
    context: str,
    history: Sequence[ConversationTurn] = (),
    *,
    history_window: int = HISTORY_WINDOW,
) -> str:
    """Compose the prompt used to answer *question* from the document context."""

    if question is None:
        raise ValueError("question must not be None")

    return _ANSWER_TEMPLATE.format(
        context=context,
        history=render_history(history, history_window),
        question=question,
    )


def build_summary_prompt(pages: Sequence[str]) -> str:
    """Compose the summarisation prompt from the opening pages of a document."""

    content = "\n\n".join(pages[:SUMMARY_PAGE_COUNT])
    return _SUMMARY_TEMPLATE.format(content=content[:SUMMARY_MAX_CHARS])


__all__ = ["build_prompt", "build_summary_prompt"]
