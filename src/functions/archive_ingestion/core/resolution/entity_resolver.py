"""Resolve-or-create for tags and authors, shared by every article in a run."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Dict, Optional, Tuple, Union

from ..contracts.record import Entity, EntityKind
from ..db.store import ArchiveStore, DuplicateEntityError, StoreError
from ..processors.output_normalizer import is_unknown_author

logger = logging.getLogger(__name__)

CacheKey = Tuple[EntityKind, str]


class EntityResolver:
    """Memoizes entity resolution per normalized name for the lifetime of a run.

    Concurrent callers asking for the same name share one in-flight lookup, so
    a name is created at most once by this process. A creation that loses a
    unique-constraint race to another writer re-reads the winner instead.
    Failed resolutions are forgotten so the next caller tries again.

    One resolver is created per run and handed to the pipelines that need it.
    """

    def __init__(self, store: ArchiveStore) -> None:
        self._store = store
        self._entries: Dict[CacheKey, asyncio.Future] = {}
        self.created: Counter = Counter()
        self.races: Counter = Counter()

    @staticmethod
    def cache_key(kind: Union[EntityKind, str], name: str) -> CacheKey:
        return EntityKind(kind), name.strip().lower()

    def __len__(self) -> int:
        return len(self._entries)

    async def resolve_or_create(self, kind: Union[EntityKind, str], name: Optional[str]) -> Optional[Entity]:
        """Return the stored entity for *name*, creating it if needed.

        Blank names, and the unknown-author sentinel for authors, resolve to None.
        """
        kind = EntityKind(kind)
        trimmed = (name or "").strip()
        if not trimmed:
            return None
        if kind is EntityKind.AUTHOR and is_unknown_author(trimmed):
            return None

        key = self.cache_key(kind, trimmed)
        entry = self._entries.get(key)
        if entry is None:
            entry = asyncio.ensure_future(self._resolve(kind, trimmed))
            self._entries[key] = entry
            entry.add_done_callback(lambda future, key=key: self._forget_if_failed(key, future))
        # shield so one caller's cancellation does not cancel the shared lookup
        return await asyncio.shield(entry)

    def _forget_if_failed(self, key: CacheKey, future: asyncio.Future) -> None:
        if future.cancelled() or future.exception() is not None:
            if self._entries.get(key) is future:
                del self._entries[key]

    async def _resolve(self, kind: EntityKind, name: str) -> Entity:
        existing = await self._store.find_entity(kind, name)
        if existing is not None:
            return existing

        try:
            entity = await self._store.create_entity(kind, name)
        except DuplicateEntityError:
            self.races[kind] += 1
            winner = await self._store.find_entity(kind, name)
            if winner is None:
                raise StoreError(f"{kind.value} '{name}' reported as duplicate but could not be found")
            logger.debug("Lost create race for %s '%s', using id %s", kind.value, name, winner.id)
            return winner

        self.created[kind] += 1
        logger.debug("Created %s '%s' (id=%s)", kind.value, name, entity.id)
        return entity

    def get_stats(self) -> Dict[str, int]:
        return {
            "cached": len(self._entries),
            "created_tags": self.created[EntityKind.TAG],
            "created_authors": self.created[EntityKind.AUTHOR],
            "create_races": sum(self.races.values()),
        }
