"""Generative model backends used to answer questions about documents."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from docqa.config import Settings, get_settings
from docqa.errors import (
    AuthError,
    ConfigurationError,
    ModelError,
    ModelTimeoutError,
    NetworkError,
    RateLimitError,
)
from docqa.telemetry import emit_exception, emit_llm_provider_init

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an AI assistant helping users understand and analyze PDF documents. "
    "Answer only from the provided document content."
)


@dataclass(slots=True)
class LLMStatus:
    """Structured status information about the configured LLM backend."""

    provider: str
    model_name: str
    ready: bool
    error: Optional[str] = None


class LLM:
    """Common interface exposed by language model implementations."""

    provider = "base"

    def __init__(self, *, timeout_seconds: float = 60.0) -> None:
        self.timeout_seconds = timeout_seconds

    async def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        """Return the model's answer for *prompt*.

        Raises a :class:`~docqa.errors.ModelError` subclass on failure and
        :class:`~docqa.errors.ConfigurationError` when the backend is unusable.
        """

        limit = timeout if timeout is not None else self.timeout_seconds
        try:
            return await asyncio.wait_for(self._generate(prompt), timeout=limit)
        except asyncio.TimeoutError as error:
            raise ModelTimeoutError(f"Model call exceeded {limit:.1f}s", cause=error) from error

    async def _generate(self, prompt: str) -> str:
        raise NotImplementedError

    @property
    def model_name(self) -> str:
        return "stub"

    @property
    def ready(self) -> bool:
        return False

    @property
    def last_error(self) -> Optional[str]:
        return None

    def status(self) -> LLMStatus:
        """Return structured diagnostic information for health checks."""

        return LLMStatus(
            provider=self.provider,
            model_name=self.model_name,
            ready=self.ready,
            error=self.last_error,
        )


class LLMStub(LLM):
    """Placeholder used when no model backend is configured."""

    provider = "stub"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__()
        self._reason = reason or "LLM stub is active (model not configured)."

    async def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        raise ConfigurationError(self._reason)

    @property
    def last_error(self) -> Optional[str]:
        return self._reason


def _translate_genai_error(error: Exception) -> ModelError:
    message = str(error)
    if isinstance(error, genai_errors.APIError):
        code = getattr(error, "code", None)
        if code in {401, 403} or "API_KEY" in message.upper().replace(" ", "_"):
            return AuthError(message, cause=error)
        if code == 429:
            return RateLimitError(message, cause=error)
        if isinstance(error, genai_errors.ServerError):
            return NetworkError(message, cause=error)
        return ModelError(message, cause=error)
    if isinstance(error, httpx.TimeoutException):
        return ModelTimeoutError(message or "Model request timed out", cause=error)
    if isinstance(error, httpx.TransportError):
        return NetworkError(message or "Model backend unreachable", cause=error)
    return ModelError(message or error.__class__.__name__, cause=error)


class GeminiLLM(LLM):
    """Hosted Gemini model accessed through the ``google-genai`` SDK."""

    provider = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        max_tokens: int = 512,
        temperature: float = 0.2,
        timeout_seconds: float = 60.0,
        client: Any | None = None,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = client or genai.Client(api_key=api_key)
        self._last_error: Optional[str] = None

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def ready(self) -> bool:
        return True

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    async def _generate(self, prompt: str) -> str:
        config = genai_types.GenerateContentConfig(
            max_output_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as error:
            translated = _translate_genai_error(error)
            self._last_error = str(translated)
            raise translated from error

        self._last_error = None
        return (response.text or "").strip()


class TransformersLLM(LLM):
    """Lazy-loading wrapper around a local ``AutoModelForCausalLM``."""

    provider = "transformers"

    def __init__(
        self,
        model_path: str,
        *,
        max_tokens: int = 512,
        temperature: float = 0.2,
        timeout_seconds: float = 60.0,
    ) -> None:
        super().__init__(timeout_seconds=timeout_seconds)
        self._model_path = model_path
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._model: Any = None
        self._tokenizer: Any = None
        self._lock = threading.RLock()
        self._load_error: Optional[Exception] = None

    @property
    def model_name(self) -> str:
        return self._model_path

    @property
    def ready(self) -> bool:
        return self._model is not None

    @property
    def last_error(self) -> Optional[str]:
        return str(self._load_error) if self._load_error is not None else None

    def _ensure_loaded(self) -> None:
        if self._model is not None:
            return
        with self._lock:
            if self._model is not None:
                return
            try:
                from transformers import AutoModelForCausalLM, AutoTokenizer
            except ImportError as error:
                self._load_error = error
                raise ConfigurationError(
                    "transformers is not installed; install the 'local' extra", cause=error
                ) from error

            LOGGER.info("trying to load LLM from %s", self._model_path)
            try:
                model = AutoModelForCausalLM.from_pretrained(
                    self._model_path,
                    low_cpu_mem_usage=True,
                    trust_remote_code=False,
                )
                tokenizer = AutoTokenizer.from_pretrained(self._model_path)
            except Exception as error:  # pragma: no cover - depends on model files
                self._load_error = error
                emit_exception(module=__name__, error=error)
                raise ConfigurationError("Failed to load the language model", cause=error) from error

            if tokenizer.pad_token_id is None and tokenizer.eos_token_id is not None:
                tokenizer.pad_token_id = tokenizer.eos_token_id
            self._model = model
            self._tokenizer = tokenizer
            self._load_error = None
            LOGGER.info("model loaded from %s", self._model_path)

    def _generate_sync(self, prompt: str) -> str:
        self._ensure_loaded()
        inputs = self._tokenizer(
            f"{SYSTEM_PROMPT}\n\n{prompt.strip()}",
            return_tensors="pt",
            truncation=True,
            max_length=getattr(self._tokenizer, "model_max_length", 4096),
        )
        try:
            output_ids = self._model.generate(
                **inputs,
                max_new_tokens=self._max_tokens,
                temperature=max(0.0, float(self._temperature)),
                do_sample=self._temperature > 0.0,
                pad_token_id=self._tokenizer.pad_token_id,
                eos_token_id=self._tokenizer.eos_token_id,
            )
        except Exception as error:  # pragma: no cover - depends on runtime behaviour
            LOGGER.exception("LLM generation failed")
            raise ModelError("LLM generation failed", cause=error) from error

        input_length = inputs["input_ids"].shape[1]
        text = self._tokenizer.decode(output_ids[0, input_length:], skip_special_tokens=True)
        return text.strip()

    async def _generate(self, prompt: str) -> str:
        return await asyncio.to_thread(self._generate_sync, prompt)


def build_llm(settings: Settings) -> LLM:
    """Create the backend selected by *settings*, or a stub explaining why not."""

    provider = settings.llm_provider
    if provider == "stub":
        llm: LLM = LLMStub("LLM_PROVIDER=stub; model calls are disabled.")
    elif provider == "transformers":
        if not settings.llm_model_path:
            llm = LLMStub("LLM_MODEL_PATH is not configured.")
        else:
            llm = TransformersLLM(
                settings.llm_model_path,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                timeout_seconds=settings.llm_timeout_seconds,
            )
    elif provider == "gemini":
        if not settings.gemini_api_key:
            LOGGER.warning("Gemini API key not found. Set GEMINI_API_KEY to enable answers.")
            llm = LLMStub("GEMINI_API_KEY is not configured.")
        else:
            llm = GeminiLLM(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                timeout_seconds=settings.llm_timeout_seconds,
            )
    else:
        llm = LLMStub(f"Unknown LLM_PROVIDER '{provider}'.")

    emit_llm_provider_init(
        provider=llm.provider,
        model=llm.model_name,
        ready=llm.ready,
        reason=llm.last_error,
    )
    return llm


_GLOBAL_LLM: Optional[LLM] = None
_GLOBAL_LOCK = threading.Lock()


def get_llm() -> LLM:
    """Return the process-wide LLM backend, creating it on first use."""

    global _GLOBAL_LLM
    with _GLOBAL_LOCK:
        if _GLOBAL_LLM is None:
            _GLOBAL_LLM = build_llm(get_settings())
        return _GLOBAL_LLM


def get_llm_status() -> LLMStatus:
    """Return structured status information about the configured LLM."""

    return get_llm().status()


__all__ = [
    "GeminiLLM",
    "LLM",
    "LLMStatus",
    "LLMStub",
    "SYSTEM_PROMPT",
    "TransformersLLM",
    "build_llm",
    "get_llm",
    "get_llm_status",
]
