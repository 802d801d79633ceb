"""Contracts for the archive ingestion pipeline."""

from .article import ArticleLocator, EnrichmentResult, ExtractionResult, IssuePeriod, has_text
from .record import Entity, EntityKind, RecordRow
from .results import ArticleOutcome, ArticleStatus, PeriodSummary, RunSummary

__all__ = [
    "ArticleLocator",
    "ArticleOutcome",
    "ArticleStatus",
    "EnrichmentResult",
    "Entity",
    "EntityKind",
    "ExtractionResult",
    "IssuePeriod",
    "PeriodSummary",
    "RecordRow",
    "RunSummary",
    "has_text",
]
