"""Attaches tags and authors to a stored record."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional

from src.shared.batch.limiter import BoundedTaskLimiter

from ..contracts.article import dedupe_case_insensitive
from ..contracts.record import EntityKind
from ..resolution.entity_resolver import EntityResolver
from .store import ArchiveStore

logger = logging.getLogger(__name__)


class RelationWriter:
    """Resolves names through the shared resolver and writes edges under the relation limiter."""

    def __init__(
        self,
        store: ArchiveStore,
        resolver: EntityResolver,
        limiter: BoundedTaskLimiter,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._limiter = limiter

    async def attach(self, kind: EntityKind, record_id: Any, names: Iterable[Optional[str]]) -> int:
        """Link every distinct name to *record_id*; returns the number of new edges.

        Names are handled concurrently. The first failure is raised once all of
        them have settled.
        """
        unique = dedupe_case_insensitive([name for name in names if name])
        if not unique:
            return 0

        results = await asyncio.gather(
            *(self._attach_one(kind, record_id, name) for name in unique),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            logger.error(
                "%d of %d %s links failed for record %s",
                len(errors),
                len(unique),
                kind.value,
                record_id,
            )
            raise errors[0]
        return sum(results)

    async def _attach_one(self, kind: EntityKind, record_id: Any, name: str) -> int:
        entity = await self._resolver.resolve_or_create(kind, name)
        if entity is None:
            return 0
        linked = await self._limiter.schedule(
            lambda: self._store.link_entity(kind, record_id, entity.id)
        )
        return 1 if linked else 0
