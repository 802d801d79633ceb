"""Outcome and summary models reported by the pipelines."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ArticleStatus(str, Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"
    FAILED = "failed"


class ArticleOutcome(BaseModel):
    """What happened to one article locator."""

    url: str
    status: ArticleStatus
    record_id: Optional[int | str] = None
    title: Optional[str] = None
    error: Optional[str] = None
    attempts: int = Field(default=1, ge=1)


class PeriodSummary(BaseModel):
    """Aggregate counts for one period (year, optionally narrowed to a month)."""

    year: int
    month: Optional[int] = None
    discovered: int = Field(default=0, ge=0)
    selected: int = Field(default=0, ge=0)
    inserted: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    period_failed: bool = False
    error: Optional[str] = None
    failures: List[ArticleOutcome] = Field(default_factory=list)

    def record(self, outcome: ArticleOutcome) -> None:
        if outcome.status is ArticleStatus.INSERTED:
            self.inserted += 1
        elif outcome.status is ArticleStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failures.append(outcome)


class RunSummary(BaseModel):
    """Totals across every period processed in one invocation."""

    periods: List[PeriodSummary] = Field(default_factory=list)
    dry_run: bool = False

    def add(self, period: PeriodSummary) -> None:
        self.periods.append(period)

    @property
    def inserted(self) -> int:
        return sum(period.inserted for period in self.periods)

    @property
    def skipped(self) -> int:
        return sum(period.skipped for period in self.periods)

    @property
    def failed(self) -> int:
        return sum(period.failed for period in self.periods)

    @property
    def periods_failed(self) -> int:
        return sum(1 for period in self.periods if period.period_failed)

    def to_dict(self) -> Dict[str, object]:
        return {
            "periods": len(self.periods),
            "periods_failed": self.periods_failed,
            "inserted": self.inserted,
            "skipped": self.skipped,
            "failed": self.failed,
            "dry_run": self.dry_run,
        }
