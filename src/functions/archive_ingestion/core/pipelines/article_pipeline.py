"""
Article pipeline.

Runs one article through extract -> enrich -> persist -> relate. Extraction
through the record insert is retried as a unit on timeout-class failures;
relating runs afterwards under its own retry so a record is inserted once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Tuple

from src.shared.batch.limiter import BoundedTaskLimiter
from src.shared.batch.retry import with_bounded_retry
from src.shared.batch.timeouts import TimeoutLog, flatten_error, is_timeout_error

from ..config import ArchiveSiteConfig, IngestionConfig
from ..contracts.article import ArticleLocator, EnrichmentResult, ExtractionResult, IssuePeriod
from ..contracts.record import EntityKind, RecordRow
from ..contracts.results import ArticleOutcome, ArticleStatus
from ..db.relation_writer import RelationWriter
from ..db.store import ArchiveStore
from ..extractors.base import Extractor
from ..llm.enrichment_client import EnrichmentClient
from ..resolution.entity_resolver import EntityResolver

logger = logging.getLogger(__name__)


class ArticlePipeline:
    """Processes single articles; safe to call concurrently for many locators."""

    def __init__(
        self,
        *,
        extractor: Extractor,
        enrichment: EnrichmentClient,
        store: ArchiveStore,
        resolver: EntityResolver,
        config: IngestionConfig,
        site: ArchiveSiteConfig,
        timeout_log: Optional[TimeoutLog] = None,
        ai_limiter: Optional[BoundedTaskLimiter] = None,
        relation_limiter: Optional[BoundedTaskLimiter] = None,
    ):
        """
        Initialize the article pipeline.

        Args:
            extractor: Produces title, document link and raw text for a locator
            enrichment: Generation service adapter (summary/conclusion/tags/authors)
            store: Backing store receiving records and edges
            resolver: Run-scoped tag/author cache shared with other pipelines
            config: Concurrency ceilings and retry budgets
            site: Record labelling (magazine name, language, attribution)
            timeout_log: Sink for timeout-class failures
            ai_limiter: Gate for generation calls (built from config if omitted)
            relation_limiter: Gate for edge writes (built from config if omitted)
        """
        self.extractor = extractor
        self.enrichment = enrichment
        self.store = store
        self.config = config
        self.site = site
        self.timeout_log = timeout_log or TimeoutLog(config.timeout_log_path)
        self.ai_limiter = ai_limiter or BoundedTaskLimiter(config.ai_concurrency, name="enrichment")
        self.relation_limiter = relation_limiter or BoundedTaskLimiter(
            config.relation_concurrency, name="relations"
        )
        self.relations = RelationWriter(store, resolver, self.relation_limiter)

    async def process(self, locator: ArticleLocator, period: IssuePeriod) -> ArticleOutcome:
        """Run one article and report its outcome. Never raises for article-level failures."""
        attempts = 0

        def _log_timeout(attempt: int, error: BaseException) -> None:
            self.timeout_log.log_timeout(
                "article",
                period.key,
                attempt,
                self.config.article_retry_attempts,
                error,
                locator_url=locator.url,
            )

        async def _attempt() -> Optional[Tuple[Any, ExtractionResult, EnrichmentResult]]:
            nonlocal attempts
            attempts += 1
            return await self._extract_enrich_persist(locator, period)

        try:
            stored = await with_bounded_retry(
                _attempt,
                is_retryable=is_timeout_error,
                max_attempts=self.config.article_retry_attempts,
                initial_delay=self.config.retry_backoff_seconds,
                on_retryable_failure=_log_timeout,
                label=f"article {locator.url}",
            )
        except Exception as exc:
            logger.error("Article failed [%s] %s: %s", period.key, locator.url, flatten_error(exc))
            return ArticleOutcome(
                url=locator.url,
                status=ArticleStatus.FAILED,
                error=flatten_error(exc),
                attempts=max(attempts, 1),
            )

        if stored is None:
            return ArticleOutcome(url=locator.url, status=ArticleStatus.SKIPPED, attempts=attempts)

        record_id, extraction, enrichment = stored
        try:
            await self._relate_with_retry(record_id, enrichment, period, locator)
        except Exception as exc:
            logger.error(
                "Record %s stored but relations incomplete for %s: %s",
                record_id,
                locator.url,
                flatten_error(exc),
            )
            return ArticleOutcome(
                url=locator.url,
                status=ArticleStatus.FAILED,
                record_id=record_id,
                title=extraction.title,
                error=f"relations: {flatten_error(exc)}",
                attempts=attempts,
            )

        logger.info("Inserted record %s for %s (%s)", record_id, locator.url, period.label)
        return ArticleOutcome(
            url=locator.url,
            status=ArticleStatus.INSERTED,
            record_id=record_id,
            title=extraction.title,
            attempts=attempts,
        )

    async def _extract_enrich_persist(
        self, locator: ArticleLocator, period: IssuePeriod
    ) -> Optional[Tuple[Any, ExtractionResult, EnrichmentResult]]:
        extraction = await self.extractor.extract(locator.url)
        if extraction.is_empty:
            logger.info("Skipping %s: no text extracted", locator.url)
            return None

        enrichment = await self.enrich(extraction)
        row = self.build_record(locator, period, extraction, enrichment)
        inserted = await self.store.insert_record(row.to_row())
        return inserted["id"], extraction, enrichment

    async def enrich(self, extraction: ExtractionResult) -> EnrichmentResult:
        """Issue the four generation calls concurrently; any failure fails them all."""
        text, title = extraction.raw_text, extraction.title
        summary, conclusion, tags, authors = await asyncio.gather(
            self.ai_limiter.schedule(lambda: self.enrichment.summarize(text, title)),
            self.ai_limiter.schedule(lambda: self.enrichment.conclude(text, title)),
            self.ai_limiter.schedule(lambda: self.enrichment.tag(text, title)),
            self.ai_limiter.schedule(lambda: self.enrichment.attribute_authors(text, title)),
        )
        return EnrichmentResult(summary=summary, conclusion=conclusion, tags=tags, authors=authors)

    def build_record(
        self,
        locator: ArticleLocator,
        period: IssuePeriod,
        extraction: ExtractionResult,
        enrichment: EnrichmentResult,
    ) -> RecordRow:
        return RecordRow(
            name=self.site.magazine_name,
            timestamp=period.label,
            summary=enrichment.summary,
            extracted_text=extraction.raw_text,
            pdf_url=extraction.document_url or locator.url,
            volume=period.volume,
            title_name=extraction.title,
            authors=enrichment.authors_text,
            language=self.site.language,
            email=self.site.creator_email,
            creator_name=self.site.creator_name,
            conclusion=enrichment.conclusion,
        )

    async def _relate_with_retry(
        self,
        record_id: Any,
        enrichment: EnrichmentResult,
        period: IssuePeriod,
        locator: ArticleLocator,
    ) -> None:
        def _log_timeout(attempt: int, error: BaseException) -> None:
            self.timeout_log.log_timeout(
                "relations",
                period.key,
                attempt,
                self.config.article_retry_attempts,
                error,
                locator_url=locator.url,
            )

        await with_bounded_retry(
            lambda: self.relate(record_id, enrichment),
            is_retryable=is_timeout_error,
            max_attempts=self.config.article_retry_attempts,
            initial_delay=self.config.retry_backoff_seconds,
            on_retryable_failure=_log_timeout,
            label=f"relations for record {record_id}",
        )

    async def relate(self, record_id: Any, enrichment: EnrichmentResult) -> int:
        """Attach tags and authors concurrently; returns the number of new edges."""
        tag_links, author_links = await asyncio.gather(
            self.relations.attach(EntityKind.TAG, record_id, enrichment.tags),
            self.relations.attach(EntityKind.AUTHOR, record_id, enrichment.authors),
        )
        return tag_links + author_links
