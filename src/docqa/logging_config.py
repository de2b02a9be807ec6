"""JSON logging for the service plus a separate audit trail of document events."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "docqa.documents.audit"
AUDIT_LOG_FILE = "documents_audit.log"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_STANDARD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class MinimalJSONFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Dict messages (as produced by :func:`docqa.telemetry.log_event`) are merged
    into the top level; other messages land under ``message``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        elif record.getMessage():
            payload["message"] = record.getMessage()

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRIBUTES and not key.startswith("_")
        )
        return json.dumps(payload, ensure_ascii=False, default=str)


def _handler(handler_class: str, **options: Any) -> dict[str, Any]:
    return {"class": handler_class, "formatter": "json", **options}


def configure_logging(level: str = "INFO", log_dir: Path | str = "logs") -> None:
    """Send JSON logs to stderr and audit records to ``<log_dir>/documents_audit.log``."""

    audit_dir = Path(log_dir)
    audit_dir.mkdir(parents=True, exist_ok=True)

    handlers = {
        "default": _handler("logging.StreamHandler"),
        "documents_audit": _handler(
            "logging.FileHandler",
            filename=str(audit_dir / AUDIT_LOG_FILE),
            mode="a",
            encoding="utf-8",
        ),
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": MinimalJSONFormatter}},
            "handlers": handlers,
            "root": {"level": level, "handlers": ["default"]},
            "loggers": {
                AUDIT_LOGGER_NAME: {"level": "INFO", "handlers": ["documents_audit"], "propagate": False}
            },
        }
    )


__all__ = ["AUDIT_LOGGER_NAME", "MinimalJSONFormatter", "configure_logging"]
