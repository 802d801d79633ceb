"""Supabase implementation of the archive store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, TypeVar

from src.shared.db.connection import get_supabase_client

from ..contracts.record import Entity, EntityKind
from .store import DuplicateEntityError, StoreError, is_duplicate_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECORDS_TABLE = "records"
_EDGE_PAGE_SIZE = 1000


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` behaves as a case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseArchiveStore:
    """Persists records, tags, authors and their edges through supabase-py.

    The client is synchronous, so each request runs in a worker thread to keep
    the event loop free for other articles.
    """

    def __init__(self, client: Any = None) -> None:
        self.client = client or get_supabase_client()
        logger.info("Initialized SupabaseArchiveStore")

    async def _run(self, func: Callable[[], T]) -> T:
        return await asyncio.to_thread(func)

    async def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        def _insert() -> Dict[str, Any]:
            response = self.client.table(RECORDS_TABLE).insert(row).execute()
            data = getattr(response, "data", None) or []
            if not data:
                raise StoreError("Record insert returned no row")
            return data[0]

        try:
            return await self._run(_insert)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Record insert failed: {exc}") from exc

    async def find_entity(self, kind: EntityKind, name: str) -> Optional[Entity]:
        def _find() -> Optional[Entity]:
            response = (
                self.client.table(kind.table)
                .select("id,name")
                .ilike("name", escape_like(name))
                .order("id")
                .limit(1)
                .execute()
            )
            data = getattr(response, "data", None) or []
            if not data:
                return None
            return Entity(kind=kind, id=data[0]["id"], name=data[0]["name"])

        return await self._run(_find)

    async def create_entity(self, kind: EntityKind, name: str) -> Entity:
        def _create() -> Entity:
            response = self.client.table(kind.table).insert({"name": name}).execute()
            data = getattr(response, "data", None) or []
            if not data:
                raise StoreError(f"Insert into {kind.table} returned no row")
            return Entity(kind=kind, id=data[0]["id"], name=data[0]["name"])

        try:
            return await self._run(_create)
        except StoreError:
            raise
        except Exception as exc:
            if is_duplicate_error(exc):
                raise DuplicateEntityError(f"{kind.value} '{name}' already exists") from exc
            raise StoreError(f"Insert into {kind.table} failed: {exc}") from exc

    async def link_entity(self, kind: EntityKind, record_id: Any, entity_id: Any) -> bool:
        def _link() -> None:
            self.client.table(kind.edge_table).insert(
                {"record_id": record_id, kind.edge_column: entity_id}
            ).execute()

        try:
            await self._run(_link)
        except Exception as exc:
            if is_duplicate_error(exc):
                logger.debug("Edge %s(%s, %s) already present", kind.edge_table, record_id, entity_id)
                return False
            raise StoreError(f"Insert into {kind.edge_table} failed: {exc}") from exc
        return True

    async def fetch_records_page(self, *, start_id: int, offset: int, limit: int) -> List[Dict[str, Any]]:
        def _fetch() -> List[Dict[str, Any]]:
            response = (
                self.client.table(RECORDS_TABLE)
                .select("id,name,title_name,pdf_url,extracted_text,language")
                .gte("id", start_id)
                .order("id")
                .range(offset, offset + limit - 1)
                .execute()
            )
            return list(getattr(response, "data", None) or [])

        return await self._run(_fetch)

    async def fetch_linked_record_ids(self, kind: EntityKind, record_ids: Iterable[Any]) -> Set[Any]:
        ids = list(record_ids)
        if not ids:
            return set()

        def _fetch() -> Set[Any]:
            linked: Set[Any] = set()
            offset = 0
            while True:
                response = (
                    self.client.table(kind.edge_table)
                    .select("record_id")
                    .in_("record_id", ids)
                    .order("record_id")
                    .range(offset, offset + _EDGE_PAGE_SIZE - 1)
                    .execute()
                )
                rows = getattr(response, "data", None) or []
                linked.update(row["record_id"] for row in rows)
                if len(rows) < _EDGE_PAGE_SIZE:
                    return linked
                offset += _EDGE_PAGE_SIZE

        return await self._run(_fetch)

    async def update_extracted_text(self, record_id: Any, text: str) -> None:
        def _update() -> None:
            self.client.table(RECORDS_TABLE).update({"extracted_text": text}).eq("id", record_id).execute()

        try:
            await self._run(_update)
        except Exception as exc:
            raise StoreError(f"Updating extracted_text for record {record_id} failed: {exc}") from exc
