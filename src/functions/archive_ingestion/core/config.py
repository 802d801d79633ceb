"""Configuration models for the archive ingestion module."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from src.shared.utils.config_validator import (
    ConfigurationError,
    check_bounds,
    first_env,
    validate_float_env,
    validate_int_env,
)
from src.shared.utils.env import get_env

MAX_RETRY_ATTEMPTS = 5
_CONCURRENCY_BOUNDS = (1, 32)
_RELATION_BOUNDS = (1, 64)
_TIMEOUT_BOUNDS = (5, 300)


@dataclass
class ArchiveSiteConfig:
    """Where the archive lives and how its records are labelled."""

    base_url: str = "https://vk.rkmm.org"
    portal_path: str = "/s/vkm"
    year_path: str = "/s/vkm/m/vedanta-kesari-{year}"
    article_marker: str = "/a/"
    magazine_name: str = "Vedanta Kesari"
    language: str = "English"
    creator_email: Optional[str] = None
    creator_name: Optional[str] = None
    navigation_timeout_seconds: int = 60
    document_timeout_seconds: int = 60

    @property
    def portal_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.portal_path}"

    def year_url(self, year: int) -> str:
        return f"{self.base_url.rstrip('/')}{self.year_path.format(year=year)}"

    @classmethod
    def from_env(cls) -> "ArchiveSiteConfig":
        defaults = cls()
        return cls(
            base_url=get_env("ARCHIVE_BASE_URL", defaults.base_url),
            portal_path=get_env("ARCHIVE_PORTAL_PATH", defaults.portal_path),
            year_path=get_env("ARCHIVE_YEAR_PATH", defaults.year_path),
            magazine_name=get_env("ARCHIVE_MAGAZINE_NAME", defaults.magazine_name),
            language=get_env("RECORD_LANGUAGE", defaults.language),
            creator_email=get_env("RECORD_CREATOR_EMAIL"),
            creator_name=get_env("RECORD_CREATOR_NAME"),
            navigation_timeout_seconds=validate_int_env(
                "NAVIGATION_TIMEOUT_SECONDS", defaults.navigation_timeout_seconds, *_TIMEOUT_BOUNDS
            ),
            document_timeout_seconds=validate_int_env(
                "DOCUMENT_TIMEOUT_SECONDS", defaults.document_timeout_seconds, *_TIMEOUT_BOUNDS
            ),
        )


@dataclass
class EnrichmentConfig:
    """Connection details for the OpenAI-compatible generation endpoint."""

    api_key: str
    base_url: Optional[str] = "https://api.sarvam.ai/v1"
    model: str = "sarvam-m"
    timeout_seconds: int = 90

    @classmethod
    def from_env(cls) -> "EnrichmentConfig":
        return cls(
            api_key=first_env(
                ("ENRICHMENT_API_KEY", "SARVAM_API_KEY", "OPENAI_API_KEY"),
                "text-generation service credential",
            ),
            base_url=get_env("ENRICHMENT_BASE_URL", cls.base_url),
            model=get_env("ENRICHMENT_MODEL", cls.model),
            timeout_seconds=validate_int_env("ENRICHMENT_TIMEOUT_SECONDS", cls.timeout_seconds, 10, 300),
        )


@dataclass
class IngestionConfig:
    """Concurrency ceilings, retry budgets and the timeout log location."""

    article_concurrency: int = 3
    ai_concurrency: int = 4
    relation_concurrency: int = 8
    timeout_log_path: Path = field(default_factory=lambda: Path("logs") / "timeouts.log")
    period_retry_attempts: int = 2
    article_retry_attempts: int = 3
    retry_backoff_seconds: float = 2.0

    def validate(self) -> "IngestionConfig":
        check_bounds("article_concurrency", self.article_concurrency, *_CONCURRENCY_BOUNDS)
        check_bounds("ai_concurrency", self.ai_concurrency, *_CONCURRENCY_BOUNDS)
        check_bounds("relation_concurrency", self.relation_concurrency, *_RELATION_BOUNDS)
        check_bounds("period_retry_attempts", self.period_retry_attempts, 1, MAX_RETRY_ATTEMPTS)
        check_bounds("article_retry_attempts", self.article_retry_attempts, 1, MAX_RETRY_ATTEMPTS)
        if self.retry_backoff_seconds < 0:
            raise ConfigurationError("retry_backoff_seconds must not be negative")
        self.timeout_log_path = Path(self.timeout_log_path)
        return self

    def with_article_concurrency(self, value: Optional[int]) -> "IngestionConfig":
        """Apply the operator's concurrency override, if any."""
        if value is None:
            return self
        self.article_concurrency = check_bounds("concurrency", value, *_CONCURRENCY_BOUNDS)
        return self

    @classmethod
    def from_env(cls) -> "IngestionConfig":
        defaults = cls()
        return cls(
            article_concurrency=validate_int_env(
                "ARTICLE_CONCURRENCY", defaults.article_concurrency, *_CONCURRENCY_BOUNDS
            ),
            ai_concurrency=validate_int_env("AI_CONCURRENCY", defaults.ai_concurrency, *_CONCURRENCY_BOUNDS),
            relation_concurrency=validate_int_env(
                "RELATION_CONCURRENCY", defaults.relation_concurrency, *_RELATION_BOUNDS
            ),
            timeout_log_path=Path(os.getenv("TIMEOUT_LOG_PATH") or defaults.timeout_log_path),
            period_retry_attempts=validate_int_env(
                "PERIOD_RETRY_ATTEMPTS", defaults.period_retry_attempts, 1, MAX_RETRY_ATTEMPTS
            ),
            article_retry_attempts=validate_int_env(
                "ARTICLE_RETRY_ATTEMPTS", defaults.article_retry_attempts, 1, MAX_RETRY_ATTEMPTS
            ),
            retry_backoff_seconds=validate_float_env(
                "RETRY_BACKOFF_SECONDS", defaults.retry_backoff_seconds, min_value=0.0
            ),
        ).validate()
