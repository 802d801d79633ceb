"""Issue period helpers: month inference, labels and volume numbers."""

from __future__ import annotations

import re
from typing import Optional

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_MONTH_WORDS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}
_WORD_SPLIT = re.compile(r"[^a-z]+")

FIRST_YEAR = 1915
LATEST_YEAR = 2023


def clamp_month(month: int) -> int:
    return max(1, min(12, int(month)))


def month_from_text(text: Optional[str]) -> Optional[int]:
    """Best-effort month guess from link text or a URL slug.

    The first token that names a month wins; ``None`` when nothing matches.
    """
    if not text:
        return None
    for token in _WORD_SPLIT.split(text.lower()):
        month = _MONTH_WORDS.get(token)
        if month:
            return month
    return None


def issue_timestamp(year: int, month: int) -> str:
    """Return the period label stored on records, e.g. ``"Jan 2023"``."""
    return f"{MONTH_ABBREVIATIONS[clamp_month(month) - 1]} {year}"


def issue_volume(month: int) -> str:
    """Volume is the month index: Jan -> "1", Feb -> "2", ..."""
    return str(clamp_month(month))


def resolve_month(requested: Optional[int], guessed: Optional[int]) -> int:
    """Explicit month beats the guess; with neither, default to January."""
    return requested or guessed or 1


def default_years(start: int = LATEST_YEAR, end: int = FIRST_YEAR) -> list[int]:
    """Years swept when the operator names no period, newest first."""
    return list(range(start, end - 1, -1))
