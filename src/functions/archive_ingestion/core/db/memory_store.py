"""In-process archive store used for dry runs and tests."""

from __future__ import annotations

import asyncio
import itertools
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..contracts.record import Entity, EntityKind
from .store import DuplicateEntityError


class InMemoryArchiveStore:
    """Mimics the records schema, including unique entity names and edge keys.

    ``latency`` is awaited inside every call so concurrent callers interleave
    the way they would against a remote database.
    """

    def __init__(self, *, latency: float = 0.0) -> None:
        self.latency = latency
        self.records: Dict[int, Dict[str, Any]] = {}
        self.entities: Dict[EntityKind, Dict[int, Entity]] = {kind: {} for kind in EntityKind}
        self.edges: Dict[EntityKind, Set[Tuple[Any, Any]]] = {kind: set() for kind in EntityKind}
        self.calls: Counter = Counter()
        self._ids = itertools.count(1)

    async def _pause(self, operation: str) -> None:
        self.calls[operation] += 1
        await asyncio.sleep(self.latency)

    async def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        await self._pause("insert_record")
        record_id = next(self._ids)
        stored = {**row, "id": record_id}
        self.records[record_id] = stored
        return dict(stored)

    async def find_entity(self, kind: EntityKind, name: str) -> Optional[Entity]:
        await self._pause(f"find_{kind.value}")
        wanted = name.strip().lower()
        matches = [entity for entity in self.entities[kind].values() if entity.name.lower() == wanted]
        return min(matches, key=lambda entity: entity.id) if matches else None

    async def create_entity(self, kind: EntityKind, name: str) -> Entity:
        await self._pause(f"create_{kind.value}")
        wanted = name.strip().lower()
        if any(entity.name.lower() == wanted for entity in self.entities[kind].values()):
            raise DuplicateEntityError(f'duplicate key value violates unique constraint "{kind.table}_name_key"')
        entity = Entity(kind=kind, id=next(self._ids), name=name.strip())
        self.entities[kind][entity.id] = entity
        return entity

    async def link_entity(self, kind: EntityKind, record_id: Any, entity_id: Any) -> bool:
        await self._pause(f"link_{kind.value}")
        edge = (record_id, entity_id)
        if edge in self.edges[kind]:
            return False
        self.edges[kind].add(edge)
        return True

    async def fetch_records_page(self, *, start_id: int, offset: int, limit: int) -> List[Dict[str, Any]]:
        await self._pause("fetch_records_page")
        ordered = [self.records[key] for key in sorted(self.records) if key >= start_id]
        return [dict(row) for row in ordered[offset : offset + limit]]

    async def fetch_linked_record_ids(self, kind: EntityKind, record_ids: Iterable[Any]) -> Set[Any]:
        await self._pause(f"fetch_linked_{kind.value}")
        wanted = set(record_ids)
        return {record_id for record_id, _ in self.edges[kind] if record_id in wanted}

    async def update_extracted_text(self, record_id: Any, text: str) -> None:
        await self._pause("update_extracted_text")
        self.records[record_id]["extracted_text"] = text

    def entity_names(self, kind: EntityKind) -> List[str]:
        return sorted(entity.name for entity in self.entities[kind].values())

    def edges_for(self, kind: EntityKind, record_id: Any) -> List[str]:
        names = {entity.id: entity.name for entity in self.entities[kind].values()}
        return sorted(names[entity_id] for rid, entity_id in self.edges[kind] if rid == record_id)
