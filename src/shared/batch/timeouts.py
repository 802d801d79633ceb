"""Timeout classification and the append-only timeout log."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import httpx

logger = logging.getLogger(__name__)

_TIMEOUT_VOCABULARY = re.compile(
    r"abort|timeout|timed[\s_-]*out|deadline[\s_-]*exceeded|etimedout|"
    r"navigation[\s_-]*timeout|exceeded while waiting",
    re.IGNORECASE,
)
_TIMEOUT_TYPES = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
_MAX_CHAIN_DEPTH = 8


class HardFailure(Exception):
    """Mixin for errors that describe bad data, not a missed deadline.

    Their messages may quote untrusted text (model output, rows), so they are
    never matched against the timeout vocabulary. A timeout in their cause
    chain still counts.
    """


def is_timeout_error(error: BaseException) -> bool:
    """Return True when *error* (or anything in its cause chain) is a deadline fault.

    Known timeout types match directly; anything else is matched on its class
    name and message so that wrapped SDK errors are still recognised.
    """
    current: Optional[BaseException] = error
    depth = 0
    while current is not None and depth < _MAX_CHAIN_DEPTH:
        if isinstance(current, asyncio.CancelledError):
            return False
        if isinstance(current, _TIMEOUT_TYPES):
            return True
        if not isinstance(current, HardFailure) and _TIMEOUT_VOCABULARY.search(
            f"{type(current).__name__} {current}"
        ):
            return True
        current = current.__cause__ or current.__context__
        depth += 1
    return False


def flatten_error(error: BaseException) -> str:
    """Render an exception as a single line."""
    message = " ".join(str(error).split())
    name = type(error).__name__
    return f"{name}: {message}" if message else name


def format_timeout_line(
    *,
    scope: str,
    period_key: str,
    attempt: int,
    max_attempts: int,
    error: BaseException,
    locator_url: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> str:
    stamp = (timestamp or datetime.now(timezone.utc)).isoformat()
    parts = [
        stamp,
        f"scope={scope}",
        f"period={period_key}",
        f"attempt={attempt}/{max_attempts}",
    ]
    if locator_url:
        parts.append(f"url={locator_url}")
    parts.append(f"error={flatten_error(error)}")
    return " ".join(parts)


class TimeoutLog:
    """Appends one line per timeout-class failure to a text file.

    Write failures are reported through logging and never raised, so a broken
    log sink cannot abort ingestion.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def log_timeout(
        self,
        scope: str,
        period_key: str,
        attempt: int,
        max_attempts: int,
        error: BaseException,
        locator_url: Optional[str] = None,
    ) -> None:
        line = format_timeout_line(
            scope=scope,
            period_key=period_key,
            attempt=attempt,
            max_attempts=max_attempts,
            error=error,
            locator_url=locator_url,
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            logger.error("Could not append to timeout log %s: %s", self.path, exc)
