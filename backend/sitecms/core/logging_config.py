# backend/sitecms/core/logging_config.py

from __future__ import annotations

import logging

from sitecms.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Root logger setup for the API process.
    Modules only ever call logging.getLogger(__name__).
    """
    resolved = (level or settings.LOG_LEVEL or "INFO").strip().upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("sitecms").setLevel(resolved)
