"""Logging setup shared by the API and the CI script."""

from __future__ import annotations

import logging
import os

# Per-request INFO lines from the HTTP stack would drown the per-build summary.
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None) -> None:
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if logging.getLogger().handlers:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level_name,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
