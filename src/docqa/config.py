"""Environment-driven configuration for the document QA service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings resolved from environment variables."""

    llm_provider: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    llm_model_path: Optional[str] = None
    llm_max_tokens: int = 512
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 60.0
    context_budget_chars: int = 4000
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_provider=(_env_str("LLM_PROVIDER") or "gemini").lower(),
            gemini_api_key=_env_str("GEMINI_API_KEY") or _env_str("GOOGLE_API_KEY"),
            gemini_model=_env_str("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            llm_model_path=_env_str("LLM_MODEL_PATH"),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS", 512),
            llm_temperature=_env_float("LLM_TEMPERATURE", 0.2),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 60.0),
            context_budget_chars=_env_int("CONTEXT_BUDGET_CHARS", 4000),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            environment=(_env_str("ENVIRONMENT") or "development").lower(),
        )

    @property
    def is_production(self) -> bool:
        return self.environment in {"prod", "production"}


def load_env_file(path: str | os.PathLike[str] | None = None) -> bool:
    """Load a ``.env`` file into the environment; variables already set win.

    Without *path* the nearest ``.env`` from the working directory upwards is
    used. Returns ``False`` when no variables were loaded.
    """

    dotenv_path = path if path is not None else find_dotenv(usecwd=True)
    if not dotenv_path:
        return False
    loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
    if loaded:
        LOGGER.info("Loaded environment from %s", dotenv_path)
    return loaded


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from ``.env`` and the environment."""

    load_env_file()
    return Settings.from_env()


__all__ = ["Settings", "get_settings", "load_env_file"]
