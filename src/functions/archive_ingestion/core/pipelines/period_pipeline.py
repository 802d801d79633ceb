"""Period orchestration: discover article locators and drive the article pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from src.shared.batch.limiter import BoundedTaskLimiter
from src.shared.batch.retry import with_bounded_retry
from src.shared.batch.timeouts import TimeoutLog, flatten_error, is_timeout_error

from ..config import IngestionConfig
from ..contracts.article import ArticleLocator, IssuePeriod
from ..contracts.results import PeriodSummary, RunSummary
from ..extractors.base import ArchiveDiscovery
from ..utils.periods import resolve_month
from .article_pipeline import ArticlePipeline

logger = logging.getLogger(__name__)


def period_key(year: int, month: Optional[int] = None) -> str:
    return f"{year}-{month:02d}" if month else str(year)


def select_locators(
    locators: Iterable[ArticleLocator],
    month: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[ArticleLocator]:
    """Apply the operator's month constraint and item limit.

    Locators whose month could not be inferred are kept when a month is
    requested, since they are filed under the requested month anyway.
    """
    selected = [
        locator
        for locator in locators
        if month is None or locator.period_label_guess in (None, month)
    ]
    if limit is not None:
        selected = selected[: max(limit, 0)]
    return selected


class PeriodOrchestrator:
    """Runs whole periods, each under a timeout-only bounded retry."""

    def __init__(
        self,
        *,
        discovery: ArchiveDiscovery,
        articles: ArticlePipeline,
        config: IngestionConfig,
        timeout_log: Optional[TimeoutLog] = None,
        article_limiter: Optional[BoundedTaskLimiter] = None,
    ) -> None:
        self.discovery = discovery
        self.articles = articles
        self.config = config
        self.timeout_log = timeout_log or articles.timeout_log
        self.article_limiter = article_limiter or BoundedTaskLimiter(
            config.article_concurrency, name="articles"
        )

    async def run(
        self,
        years: Iterable[int],
        month: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        dry_run: bool = False,
    ) -> RunSummary:
        """Process each year in turn and aggregate one summary."""
        summary = RunSummary(dry_run=dry_run)
        for year in years:
            summary.add(await self.run_period(year, month=month, limit=limit))
        logger.info(
            "Run complete: %d periods (%d failed), %d inserted, %d skipped, %d failed",
            len(summary.periods),
            summary.periods_failed,
            summary.inserted,
            summary.skipped,
            summary.failed,
        )
        return summary

    async def run_period(
        self,
        year: int,
        month: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PeriodSummary:
        """Discover and process one period; a period that keeps failing is reported, not raised."""
        key = period_key(year, month)

        def _log_timeout(attempt: int, error: BaseException) -> None:
            self.timeout_log.log_timeout(
                "period", key, attempt, self.config.period_retry_attempts, error
            )

        try:
            return await with_bounded_retry(
                lambda: self._discover_and_drive(year, month, limit),
                is_retryable=is_timeout_error,
                max_attempts=self.config.period_retry_attempts,
                initial_delay=self.config.retry_backoff_seconds,
                on_retryable_failure=_log_timeout,
                label=f"period {key}",
            )
        except Exception as exc:
            logger.error("Abandoning period %s: %s", key, flatten_error(exc))
            return PeriodSummary(
                year=year,
                month=month,
                period_failed=True,
                error=flatten_error(exc),
            )

    async def _discover_and_drive(
        self, year: int, month: Optional[int], limit: Optional[int]
    ) -> PeriodSummary:
        key = period_key(year, month)
        locators = await self.discovery.collect_locators(year)
        selected = select_locators(locators, month, limit)
        summary = PeriodSummary(
            year=year,
            month=month,
            discovered=len(locators),
            selected=len(selected),
        )
        logger.info("Period %s: %d discovered, %d selected", key, len(locators), len(selected))

        outcomes = await asyncio.gather(
            *(
                self.article_limiter.schedule(
                    lambda locator=locator: self.articles.process(
                        locator,
                        IssuePeriod(year, resolve_month(month, locator.period_label_guess)),
                    )
                )
                for locator in selected
            )
        )
        for outcome in outcomes:
            summary.record(outcome)

        logger.info(
            "Period %s done: %d inserted, %d skipped, %d failed (peak %d concurrent)",
            key,
            summary.inserted,
            summary.skipped,
            summary.failed,
            self.article_limiter.peak,
        )
        return summary
