"""Backing-store interface used by the ingestion pipelines."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from src.shared.batch.timeouts import HardFailure

from ..contracts.record import Entity, EntityKind

_DUPLICATE_MARKERS = ("duplicate", "unique", "already exists")
_UNIQUE_VIOLATION = "23505"


class StoreError(HardFailure, RuntimeError):
    """Raised when the backing store rejects an operation."""


class DuplicateEntityError(StoreError):
    """Raised when creating an entity hits the unique-name constraint."""


def is_duplicate_error(error: BaseException) -> bool:
    """True for unique-constraint violations, by SQLSTATE or by message."""
    code = str(getattr(error, "code", "") or "")
    if code == _UNIQUE_VIOLATION:
        return True
    message = f"{getattr(error, 'message', '')} {error}".lower()
    return any(marker in message for marker in _DUPLICATE_MARKERS)


class ArchiveStore(Protocol):
    """Operations the pipelines need from the records database."""

    async def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record row and return it with its assigned ``id``."""

    async def find_entity(self, kind: EntityKind, name: str) -> Optional[Entity]:
        """Case-insensitive exact lookup by name."""

    async def create_entity(self, kind: EntityKind, name: str) -> Entity:
        """Insert a new entity; raises :class:`DuplicateEntityError` on a name clash."""

    async def link_entity(self, kind: EntityKind, record_id: Any, entity_id: Any) -> bool:
        """Insert a record edge; returns False when the edge already existed."""

    async def fetch_records_page(self, *, start_id: int, offset: int, limit: int) -> List[Dict[str, Any]]:
        """Records with ``id >= start_id`` ordered by id, one page at a time."""

    async def fetch_linked_record_ids(self, kind: EntityKind, record_ids: Iterable[Any]) -> Set[Any]:
        """Subset of *record_ids* that already have at least one edge of *kind*."""

    async def update_extracted_text(self, record_id: Any, text: str) -> None:
        """Store freshly extracted text on an existing record."""
