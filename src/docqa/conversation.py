"""Conversation turns exchanged with the assistant."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Sequence

HISTORY_WINDOW = 6


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """A single message in the conversation."""

    role: Role
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, content=content)


def recent_turns(history: Sequence[ConversationTurn], window: int = HISTORY_WINDOW) -> List[ConversationTurn]:
    """Return the last *window* turns of *history*."""

    if window <= 0:
        return []
    return list(history[-window:])


def render_history(history: Sequence[ConversationTurn], window: int = HISTORY_WINDOW) -> str:
    """Render the recent turns as ``User:`` / ``Assistant:`` lines."""

    lines = []
    for turn in recent_turns(history, window):
        speaker = "User" if turn.role == Role.USER else "Assistant"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


__all__ = ["ConversationTurn", "HISTORY_WINDOW", "Role", "recent_turns", "render_history"]
