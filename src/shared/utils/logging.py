"""Shared logging configuration for ingestion jobs.

Every CLI entry point calls :func:`setup_logging` once; library modules only
ever ask for ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable, Optional

_DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "supabase", "postgrest", "openai", "asyncio")


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet_loggers: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        level: Logging level name. Falls back to ``LOG_LEVEL`` and then INFO.
        format_string: Optional custom format string.
        quiet_loggers: Third-party loggers pinned to WARNING.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=format_string or _DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    for logger_name in quiet_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
