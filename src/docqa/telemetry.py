"""Structured lifecycle events for uploads, retrieval and model calls.

Every event is logged as a dict so :class:`~docqa.logging_config.MinimalJSONFormatter`
can merge it into one JSON line. The common keys are ``step`` and ``module``;
``req_id``, ``document_id``, ``duration_ms``, ``details`` and ``exc`` are
added when known.
"""

from __future__ import annotations

import logging
import os
import platform
import socket
import sys
import time
import traceback
from contextlib import contextmanager
from importlib import metadata
from typing import Any, Iterable, Iterator, Optional

LOGGER = logging.getLogger("docqa.telemetry")

PREVIEW_CHARS = 120

STARTUP_ENV_KEYS = (
    "LLM_PROVIDER",
    "GEMINI_MODEL",
    "LLM_MODEL_PATH",
    "LLM_MAX_TOKENS",
    "LLM_TEMPERATURE",
    "LLM_TIMEOUT_SECONDS",
    "CONTEXT_BUDGET_CHARS",
    "MAX_UPLOAD_BYTES",
    "ENVIRONMENT",
)

VERSIONED_DISTRIBUTIONS = ("fastapi", "pydantic", "PyPDF2", "google-genai", "transformers", "torch")


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS]


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    document_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Log one structured event; unknown *level* names fall back to ``info``."""

    target = logger or LOGGER
    optional = {"req_id": req_id, "document_id": document_id}
    event: dict[str, Any] = {"step": step, "module": target.name}
    event.update({key: value for key, value in optional.items() if value})
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(extra or {})
    event.update(payload)

    exc_info = None
    if isinstance(exc, BaseException):
        exc_info = (type(exc), exc, exc.__traceback__)
        event["exc"] = "".join(traceback.format_exception(*exc_info))
    elif exc is not None:
        event["exc"] = str(exc)

    emit = getattr(target, level.lower(), target.info)
    emit(event, exc_info=exc_info)


def emit_app_startup_event() -> None:
    configured = {key: os.environ[key] for key in STARTUP_ENV_KEYS if key in os.environ}
    log_event(
        LOGGER,
        "app.startup",
        details={
            "env": configured,
            "python": platform.python_version(),
            "platform": platform.platform(),
        },
        extra={"pid": os.getpid(), "hostname": socket.gethostname(), "cwd": os.getcwd()},
    )


def _distribution_version(name: str) -> Optional[str]:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def emit_env_versions() -> None:
    versions: dict[str, Optional[str]] = {"python": sys.version.split()[0]}
    versions.update({name: _distribution_version(name) for name in VERSIONED_DISTRIBUTIONS})
    log_event(LOGGER, "env.versions", details=versions)


def emit_llm_provider_init(
    *, provider: str, model: str, ready: bool, reason: str | None = None
) -> None:
    log_event(
        LOGGER,
        "llm.provider.init",
        details={"provider": provider, "model": model, "ready": ready, "reason": reason},
    )


def emit_ingest_event(
    step: str,
    *,
    document_id: str,
    file_name: str,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    pages: int | None = None,
    error: BaseException | None = None,
) -> None:
    log_event(
        LOGGER,
        step,
        level="error" if error is not None else "info",
        document_id=document_id,
        duration_ms=duration_ms,
        details={"file": file_name, "size_bytes": size_bytes, "pages": pages},
        exc=error,
    )


def emit_retriever_event(
    *,
    document_id: str,
    query: str,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    log_event(
        LOGGER,
        "retriever.search",
        document_id=document_id,
        duration_ms=duration_ms,
        details={"query_preview": _preview(query), "results": results},
    )


def emit_prompt_event(
    *,
    req_id: str,
    context_chars: int,
    budget: int,
    history_turns: int,
    fallback_context: bool,
) -> None:
    log_event(
        LOGGER,
        "prompt.compose",
        req_id=req_id,
        details={
            "context_chars": context_chars,
            "budget": budget,
            "history_turns": history_turns,
            "fallback_context": fallback_context,
        },
    )


def emit_inference_request(
    *,
    req_id: str,
    document_id: str | None,
    model: str,
    prompt_preview: str,
    prompt_len: int,
    timeout_seconds: float,
) -> None:
    log_event(
        LOGGER,
        "inference.request",
        req_id=req_id,
        document_id=document_id,
        details={
            "model": model,
            "prompt_preview": _preview(prompt_preview),
            "prompt_len": prompt_len,
            "timeout_seconds": timeout_seconds,
        },
    )


def emit_inference_result(
    *,
    req_id: str,
    document_id: str | None,
    duration_ms: float,
    model_used: str,
    answer_preview: str,
    fallback: bool,
    error_kind: str | None = None,
) -> None:
    log_event(
        LOGGER,
        "inference.result",
        level="warning" if error_kind else "info",
        req_id=req_id,
        document_id=document_id,
        duration_ms=duration_ms,
        details={
            "model_used": model_used,
            "answer_preview": _preview(answer_preview),
            "fallback": fallback,
            "error_kind": error_kind,
        },
    )


def emit_citation_event(
    *, req_id: str, document_id: str, citations: Iterable[dict[str, Any]]
) -> None:
    log_event(
        LOGGER,
        "citations.extract",
        req_id=req_id,
        document_id=document_id,
        details={"citations": list(citations)},
    )


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    document_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details: dict[str, Any] = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        document_id=document_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    """Log ``<step>.start``, then ``<step>.complete`` on success or ``<step>.error`` on failure."""

    target = logger or LOGGER
    log_event(target, f"{step}.start", details=fields)
    started = time.perf_counter()
    try:
        yield
    except Exception as error:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        log_event(target, f"{step}.error", level="error", duration_ms=elapsed_ms, details=fields, exc=error)
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    log_event(target, f"{step}.complete", duration_ms=elapsed_ms, details=fields)


__all__ = [
    "emit_app_startup_event",
    "emit_citation_event",
    "emit_env_versions",
    "emit_exception",
    "emit_inference_request",
    "emit_inference_result",
    "emit_ingest_event",
    "emit_llm_provider_init",
    "emit_prompt_event",
    "emit_retriever_event",
    "log_event",
    "traced_duration",
]
