"""Persistence contracts: record rows, entities and junction edges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Named entities shared across records."""

    TAG = "tag"
    AUTHOR = "author"

    @property
    def table(self) -> str:
        return "tags" if self is EntityKind.TAG else "authors"

    @property
    def edge_table(self) -> str:
        return "record_tags" if self is EntityKind.TAG else "record_authors"

    @property
    def edge_column(self) -> str:
        return "tag_id" if self is EntityKind.TAG else "author_id"


@dataclass(frozen=True)
class Entity:
    """A stored tag or author row."""

    kind: EntityKind
    id: Any
    name: str


class RecordRow(BaseModel):
    """Row inserted into ``records`` for one enriched article."""

    name: str
    timestamp: str = Field(..., description="Period label, e.g. 'Jan 2023'")
    summary: str
    extracted_text: str
    pdf_url: str = Field(..., description="Document URL, or the article URL when there is none")
    volume: str
    number: Optional[str] = None
    title_name: Optional[str] = None
    page_numbers: Optional[str] = None
    authors: Optional[str] = None
    language: str = "English"
    email: Optional[str] = None
    creator_name: Optional[str] = None
    conclusion: str
    pdf_public_id: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()
