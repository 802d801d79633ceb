"""
Generate tags for stored records that have none.

Usage:
    python backfill_tags_cli.py
    python backfill_tags_cli.py --start-id 500 --limit 200 --page-size 100 --concurrency 6
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

from src.shared.utils.config_validator import ConfigurationError
from src.shared.utils.env import load_env
from src.shared.utils.logging import setup_logging
from src.functions.archive_ingestion.core.config import (
    ArchiveSiteConfig,
    EnrichmentConfig,
    IngestionConfig,
)
from src.functions.archive_ingestion.core.db import SupabaseArchiveStore
from src.functions.archive_ingestion.core.extractors import DocumentTextExtractor
from src.functions.archive_ingestion.core.llm import EnrichmentClient
from src.functions.archive_ingestion.core.pipelines import BackfillStats, TagBackfillPipeline
from src.functions.archive_ingestion.core.resolution import EntityResolver

logger = logging.getLogger("backfill_tags_cli")


def _bounded_int(low: int, high: int):
    def _parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
        if not low <= number <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}, got {number}")
        return number

    return _parse


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill tags for records without any tag links")
    parser.add_argument("--start-id", type=_bounded_int(1, 10**12), default=1, help="Lowest record id to scan")
    parser.add_argument("--limit", type=_bounded_int(1, 10**9), help="Maximum records to scan")
    parser.add_argument(
        "--page-size",
        type=_bounded_int(50, 1000),
        default=200,
        help="Records fetched per page, 50-1000 (default: 200)",
    )
    parser.add_argument(
        "--concurrency",
        type=_bounded_int(1, 32),
        default=4,
        help="Records processed at once, 1-32 (default: 4)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging (DEBUG level)")
    parser.add_argument("--env-file", help="Explicit .env file to load")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> BackfillStats:
    ingestion = IngestionConfig.from_env()
    site = ArchiveSiteConfig.from_env()
    store = SupabaseArchiveStore()
    pipeline = TagBackfillPipeline(
        store=store,
        enrichment=EnrichmentClient(EnrichmentConfig.from_env()),
        resolver=EntityResolver(store),
        config=ingestion,
        documents=DocumentTextExtractor(timeout_seconds=site.document_timeout_seconds),
        concurrency=args.concurrency,
    )
    return await pipeline.run(start_id=args.start_id, limit=args.limit, page_size=args.page_size)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_env(args.env_file)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        stats = asyncio.run(run(args))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    print(json.dumps(stats.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
