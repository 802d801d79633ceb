"""Interfaces the pipelines use to reach the document archive."""

from __future__ import annotations

from typing import List, Protocol

from ..contracts.article import ArticleLocator, ExtractionResult


class Extractor(Protocol):
    """Produces title, document link and raw text for one article locator."""

    async def extract(self, locator_url: str) -> ExtractionResult:
        """Return the extraction result; empty ``raw_text`` when nothing usable was found."""


class ArchiveDiscovery(Protocol):
    """Lists the article locators published in a period."""

    async def collect_locators(self, year: int) -> List[ArticleLocator]:
        """Return unique article locators for *year* with best-effort month guesses."""
