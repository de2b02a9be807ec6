import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from docqa.api.documents import router as documents_router
from docqa.config import get_settings
from docqa.llm_provider import get_llm, get_llm_status
from docqa.logging_config import configure_logging
from docqa.telemetry import emit_app_startup_event, emit_env_versions

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Document QA API")
app.include_router(documents_router)


@app.on_event("startup")
async def _startup() -> None:
    """Log the runtime environment and resolve the model backend once."""

    emit_app_startup_event()
    emit_env_versions()
    llm = get_llm()
    LOGGER.info("Model backend resolved: %s (%s)", llm.provider, llm.model_name)


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"


@app.get("/healthz/model")
def model_healthcheck() -> dict[str, Any]:
    """Expose which model backend is configured and whether it can answer."""

    status = get_llm_status()
    payload: dict[str, Any] = {
        "provider": status.provider,
        "name": status.model_name,
        "ready": status.ready,
    }
    if status.error:
        payload["reason"] = status.error
    return payload


@app.get("/debug/settings")
def debug_settings() -> dict[str, Any]:
    """Expose non-secret settings in development environments only."""

    settings = get_settings()
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")

    return {
        "llm_provider": settings.llm_provider,
        "gemini_model": settings.gemini_model,
        "gemini_api_key_set": settings.gemini_api_key is not None,
        "llm_timeout_seconds": settings.llm_timeout_seconds,
        "context_budget_chars": settings.context_budget_chars,
        "max_upload_bytes": settings.max_upload_bytes,
    }
