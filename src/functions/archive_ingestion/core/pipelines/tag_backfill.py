"""Tag backfill for records stored without any tag edges."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from src.shared.batch.limiter import BoundedTaskLimiter
from src.shared.batch.retry import with_bounded_retry
from src.shared.batch.timeouts import flatten_error, is_timeout_error

from ..config import IngestionConfig
from ..contracts.article import USABLE_TEXT_MIN_CHARS, has_text
from ..contracts.record import EntityKind
from ..db.relation_writer import RelationWriter
from ..db.store import ArchiveStore
from ..extractors.document_extractor import DocumentTextExtractor
from ..llm.enrichment_client import EnrichmentClient
from ..resolution.entity_resolver import EntityResolver

logger = logging.getLogger(__name__)


@dataclass
class BackfillStats:
    scanned: int = 0
    updated: int = 0
    no_text: int = 0
    failed: int = 0
    extracted_now: int = 0
    reused_text: int = 0
    linked_tags: int = 0
    created_tags: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class TagBackfillPipeline:
    """Generates and links tags for existing records that have none.

    Records are paged by id. Stored ``extracted_text`` is reused when usable;
    otherwise the text is pulled again from the record's document URL and
    written back before tagging.
    """

    def __init__(
        self,
        *,
        store: ArchiveStore,
        enrichment: EnrichmentClient,
        resolver: EntityResolver,
        config: IngestionConfig,
        documents: Optional[DocumentTextExtractor] = None,
        concurrency: int = 4,
        ai_limiter: Optional[BoundedTaskLimiter] = None,
        relation_limiter: Optional[BoundedTaskLimiter] = None,
    ) -> None:
        self.store = store
        self.enrichment = enrichment
        self.resolver = resolver
        self.config = config
        self.documents = documents
        self.record_limiter = BoundedTaskLimiter(concurrency, name="backfill")
        self.ai_limiter = ai_limiter or BoundedTaskLimiter(config.ai_concurrency, name="enrichment")
        self.relations = RelationWriter(
            store,
            resolver,
            relation_limiter or BoundedTaskLimiter(config.relation_concurrency, name="relations"),
        )

    async def run(
        self,
        *,
        start_id: int = 1,
        limit: Optional[int] = None,
        page_size: int = 200,
    ) -> BackfillStats:
        stats = BackfillStats()
        created_before = self.resolver.created[EntityKind.TAG]
        offset = 0

        while limit is None or stats.scanned < limit:
            page = await self.store.fetch_records_page(start_id=start_id, offset=offset, limit=page_size)
            if not page:
                break
            offset += len(page)
            if limit is not None:
                page = page[: limit - stats.scanned]
            stats.scanned += len(page)

            tagged = await self.store.fetch_linked_record_ids(EntityKind.TAG, [row["id"] for row in page])
            pending = [row for row in page if row["id"] not in tagged]
            logger.info(
                "Backfill page at offset %d: %d records, %d without tags",
                offset - len(page),
                len(page),
                len(pending),
            )
            await asyncio.gather(
                *(self.record_limiter.schedule(lambda row=row: self._backfill(row, stats)) for row in pending)
            )
            if len(page) < page_size:
                break

        stats.created_tags = self.resolver.created[EntityKind.TAG] - created_before
        logger.info("Backfill finished: %s", stats.to_dict())
        return stats

    async def _backfill(self, record: Dict[str, Any], stats: BackfillStats) -> None:
        record_id = record["id"]
        try:
            text = await self._usable_text(record, stats)
            if not text:
                stats.no_text += 1
                logger.info("Record %s has no usable text, skipping", record_id)
                return

            tags = await self._generate_tags(text, record.get("title_name"))
            stats.linked_tags += await self.relations.attach(EntityKind.TAG, record_id, tags)
            stats.updated += 1
        except Exception as exc:
            stats.failed += 1
            logger.error("Backfill failed for record %s: %s", record_id, flatten_error(exc))

    async def _usable_text(self, record: Dict[str, Any], stats: BackfillStats) -> str:
        stored = record.get("extracted_text") or ""
        if has_text(stored, min_chars=USABLE_TEXT_MIN_CHARS):
            stats.reused_text += 1
            return stored

        url = record.get("pdf_url")
        if not url or self.documents is None:
            return ""
        try:
            text = await self.documents.extract_text(url)
        except Exception as exc:
            logger.warning("Re-extraction failed for record %s (%s): %s", record["id"], url, exc)
            return ""
        if not has_text(text, min_chars=USABLE_TEXT_MIN_CHARS):
            return ""

        await self.store.update_extracted_text(record["id"], text)
        stats.extracted_now += 1
        return text

    async def _generate_tags(self, text: str, title: Optional[str]) -> List[str]:
        return await with_bounded_retry(
            lambda: self.ai_limiter.schedule(lambda: self.enrichment.tag(text, title)),
            is_retryable=is_timeout_error,
            max_attempts=self.config.article_retry_attempts,
            initial_delay=self.config.retry_backoff_seconds,
            label="tag generation",
        )
