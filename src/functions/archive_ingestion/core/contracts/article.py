"""Data contracts passed between the ingestion stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.periods import issue_timestamp, issue_volume

MAX_TAGS = 5
MAX_AUTHORS = 12
USABLE_TEXT_MIN_CHARS = 24


def dedupe_case_insensitive(values: List[str]) -> List[str]:
    """Trim values and drop blanks and case-insensitive repeats, keeping order."""
    seen: set[str] = set()
    result: List[str] = []
    for value in values:
        trimmed = (value or "").strip()
        key = trimmed.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    return result


@dataclass(frozen=True)
class ArticleLocator:
    """One article discovered on a period index page."""

    url: str
    period_label_guess: Optional[int] = None
    label: str = ""


@dataclass(frozen=True)
class IssuePeriod:
    """A year plus the month an article is filed under."""

    year: int
    month: int

    @property
    def label(self) -> str:
        return issue_timestamp(self.year, self.month)

    @property
    def volume(self) -> str:
        return issue_volume(self.month)

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"


@dataclass
class ExtractionResult:
    """Text pulled from an article page or its attached document."""

    title: Optional[str] = None
    document_url: Optional[str] = None
    raw_text: str = ""
    source: str = "none"  # document | page | none

    @property
    def is_empty(self) -> bool:
        return not has_text(self.raw_text)


class EnrichmentResult(BaseModel):
    """The four generated fields for one article."""

    summary: str = Field(..., min_length=1)
    conclusion: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1, max_length=MAX_TAGS)
    authors: List[str] = Field(default_factory=list, max_length=MAX_AUTHORS)

    @field_validator("summary", "conclusion")
    @classmethod
    def _strip_prose(cls, value: str) -> str:
        return value.strip()

    @field_validator("tags", "authors", mode="before")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return dedupe_case_insensitive(list(value or []))

    @property
    def authors_text(self) -> Optional[str]:
        return ", ".join(self.authors) if self.authors else None


def has_text(value: Optional[str], *, min_chars: int = 1) -> bool:
    """True when *value* holds at least *min_chars* non-space characters incl. a letter or digit."""
    if not value:
        return False
    compact = "".join(value.split())
    if len(compact) < min_chars:
        return False
    return any(char.isalnum() for char in compact)
