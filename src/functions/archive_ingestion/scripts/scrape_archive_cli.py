"""
Command-line interface for ingesting the magazine archive.

Walks one year (or every year from 2023 back to 1915), extracts each article,
enriches it through the text-generation service and stores the record with
its tags and authors.

Usage:
    python scrape_archive_cli.py                  # every year, newest first
    python scrape_archive_cli.py 2023             # one year
    python scrape_archive_cli.py 2023 1 10 5      # January 2023, 10 articles, 5 at a time
    python scrape_archive_cli.py 2023 --dry-run   # keep records in memory only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[4]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.shared.batch.limiter import BoundedTaskLimiter
from src.shared.batch.timeouts import TimeoutLog
from src.shared.utils.config_validator import ConfigurationError
from src.shared.utils.env import load_env
from src.shared.utils.logging import setup_logging
from src.functions.archive_ingestion.core.config import (
    ArchiveSiteConfig,
    EnrichmentConfig,
    IngestionConfig,
)
from src.functions.archive_ingestion.core.contracts.results import RunSummary
from src.functions.archive_ingestion.core.db import InMemoryArchiveStore, SupabaseArchiveStore
from src.functions.archive_ingestion.core.extractors import ArchiveBrowser, DocumentTextExtractor
from src.functions.archive_ingestion.core.llm import EnrichmentClient
from src.functions.archive_ingestion.core.pipelines import ArticlePipeline, PeriodOrchestrator
from src.functions.archive_ingestion.core.resolution import EntityResolver
from src.functions.archive_ingestion.core.utils.periods import default_years

logger = logging.getLogger("scrape_archive_cli")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ALL_PERIODS_FAILED = 2


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def _month(value: str) -> int:
    number = _positive_int(value)
    if number > 12:
        raise argparse.ArgumentTypeError(f"month must be between 1 and 12, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest magazine archive articles into the records store")
    parser.add_argument(
        "year",
        nargs="?",
        type=_positive_int,
        help="Year to ingest (default: every year from 2023 back to 1915)",
    )
    parser.add_argument("month", nargs="?", type=_month, help="Only articles filed under this month (1-12)")
    parser.add_argument("limit", nargs="?", type=_positive_int, help="Maximum articles per period")
    parser.add_argument(
        "concurrency",
        nargs="?",
        type=_positive_int,
        help="Articles processed at once (overrides ARTICLE_CONCURRENCY)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Keep records in memory instead of Supabase")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging (DEBUG level)")
    parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Summary output format (default: text)",
    )
    parser.add_argument("--env-file", help="Explicit .env file to load")
    return parser.parse_args(argv)


def print_summary(summary: RunSummary, output: str = "text") -> None:
    if output == "json":
        payload = summary.to_dict()
        payload["period_results"] = [period.model_dump(mode="json") for period in summary.periods]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    print("\n" + "=" * 60)
    print("ARCHIVE INGESTION RESULTS")
    print("=" * 60)
    for period in summary.periods:
        label = f"{period.year}-{period.month:02d}" if period.month else str(period.year)
        if period.period_failed:
            print(f"{label}: FAILED ({period.error})")
            continue
        print(
            f"{label}: {period.selected}/{period.discovered} selected, "
            f"{period.inserted} inserted, {period.skipped} skipped, {period.failed} failed"
        )
        for failure in period.failures:
            print(f"   - {failure.url}: {failure.error}")
    print("-" * 60)
    print(f"Inserted: {summary.inserted}")
    print(f"Skipped:  {summary.skipped}")
    print(f"Failed:   {summary.failed}")
    if summary.periods_failed:
        print(f"Periods abandoned: {summary.periods_failed}")
    if summary.dry_run:
        print("\nDRY RUN - No data was written to the database")
    print("=" * 60 + "\n")


def exit_code_for(summary: RunSummary) -> int:
    if summary.periods and summary.periods_failed == len(summary.periods):
        return EXIT_ALL_PERIODS_FAILED
    return EXIT_OK


async def run(args: argparse.Namespace) -> RunSummary:
    ingestion = IngestionConfig.from_env().with_article_concurrency(args.concurrency)
    site = ArchiveSiteConfig.from_env()
    enrichment = EnrichmentClient(EnrichmentConfig.from_env())
    store = InMemoryArchiveStore() if args.dry_run else SupabaseArchiveStore()
    years = [args.year] if args.year else default_years()

    logger.info(
        "Starting ingestion: years=%s month=%s limit=%s concurrency=%d/%d/%d dry_run=%s",
        f"{years[0]}..{years[-1]}" if len(years) > 1 else years[0],
        args.month,
        args.limit,
        ingestion.article_concurrency,
        ingestion.ai_concurrency,
        ingestion.relation_concurrency,
        args.dry_run,
    )

    timeout_log = TimeoutLog(ingestion.timeout_log_path)
    documents = DocumentTextExtractor(timeout_seconds=site.document_timeout_seconds)
    async with ArchiveBrowser(site, documents=documents) as browser:
        articles = ArticlePipeline(
            extractor=browser,
            enrichment=enrichment,
            store=store,
            resolver=EntityResolver(store),
            config=ingestion,
            site=site,
            timeout_log=timeout_log,
        )
        orchestrator = PeriodOrchestrator(
            discovery=browser,
            articles=articles,
            config=ingestion,
            timeout_log=timeout_log,
            article_limiter=BoundedTaskLimiter(ingestion.article_concurrency, name="articles"),
        )
        return await orchestrator.run(years, month=args.month, limit=args.limit, dry_run=args.dry_run)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_env(args.env_file)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        summary = asyncio.run(run(args))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    print_summary(summary, args.output)
    return exit_code_for(summary)


if __name__ == "__main__":
    sys.exit(main())
