from .article_pipeline import ArticlePipeline
from .period_pipeline import PeriodOrchestrator, period_key, select_locators
from .tag_backfill import BackfillStats, TagBackfillPipeline

__all__ = [
    "ArticlePipeline",
    "BackfillStats",
    "PeriodOrchestrator",
    "TagBackfillPipeline",
    "period_key",
    "select_locators",
]
