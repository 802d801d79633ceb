"""Environment variable loading utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _candidate_env_files(start: Path) -> List[Path]:
    """Return .env files from the filesystem root down to *start*."""
    candidates = []
    for directory in [*reversed(start.parents), start]:
        candidate = directory / ".env"
        if candidate.exists():
            candidates.append(candidate)
    return candidates


def load_env(env_file: Optional[str] = None, override: bool = False) -> List[Path]:
    """Load environment variables from .env files.

    Args:
        env_file: Explicit .env path. When omitted, every .env between the
            filesystem root and the working directory is loaded, nearest last.
        override: Whether values from files replace existing variables.

    Returns:
        The files that were loaded.
    """
    if env_file:
        paths = [Path(env_file)] if Path(env_file).exists() else []
    else:
        paths = _candidate_env_files(Path.cwd())

    if not paths:
        logger.debug("No .env file found, using process environment")
        return []

    for path in paths:
        load_dotenv(path, override=override)
        logger.debug("Loaded environment from %s", path)
    return paths


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return a stripped environment value, treating blanks as unset."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()
