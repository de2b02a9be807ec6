#!/usr/bin/env python3
"""CLI helper that verifies whether the configured model backend can answer."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = str(PROJECT_ROOT / "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from docqa.config import get_settings, load_env_file  # noqa: E402
from docqa.errors import ConfigurationError, ModelError  # noqa: E402
from docqa.llm_provider import build_llm  # noqa: E402


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Send a one-line prompt to the backend instead of only resolving it.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    env_file = PROJECT_ROOT / ".env"
    load_env_file(env_file if env_file.exists() else None)

    settings = get_settings()
    logging.info("Configured provider: %s", settings.llm_provider)

    llm = build_llm(settings)
    status = llm.status()
    logging.info("Resolved backend: %s (model=%s, ready=%s)", status.provider, status.model_name, status.ready)
    if status.provider == "stub":
        logging.error("Model is not configured: %s", status.error)
        return 1

    if not args.probe:
        return 0

    try:
        answer = asyncio.run(llm.complete("Reply with the single word: ready"))
    except ConfigurationError as error:
        logging.error("Failed to load model: %s", error)
        return 1
    except ModelError as error:
        logging.error("Model call failed (%s): %s", error.__class__.__name__, error)
        return 1

    logging.info("Model answered: %s", answer[:80])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
