"""Logging configuration helpers for the service and the command line."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = Path(os.getenv("APP_LOG_DIR", "logs"))
DEFAULT_LOG_FILE = os.getenv("APP_LOG_FILENAME", "metatags.log")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        mapped = logging.getLevelName(value)
        if isinstance(mapped, int):
            return mapped
    return logging.INFO


def configure_logging(level: Optional[str | int] = None, *, log_to_file: bool = True) -> Optional[Path]:
    """Configure root logging to stream to stderr and, optionally, a fresh file.

    The log file is truncated on every call so each run starts clean. Its path
    is returned, or ``None`` when file output is disabled.
    """

    log_level = _normalise_level(level)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path: Optional[Path] = None
    if log_to_file:
        DEFAULT_LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_path = DEFAULT_LOG_DIR / DEFAULT_LOG_FILE
        handlers.append(logging.FileHandler(log_path, mode="w", encoding="utf-8"))

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers)
    logging.getLogger(__name__).debug("Logging initialised at level %s", logging.getLevelName(log_level))
    return log_path
