"""Fakes shared by the archive ingestion tests."""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Union

from src.functions.archive_ingestion.core.config import ArchiveSiteConfig, IngestionConfig
from src.functions.archive_ingestion.core.contracts.article import ArticleLocator, ExtractionResult

ARTICLE_TEXT = (
    "Swami Vivekananda addressed the Parliament of Religions in Chicago and spoke "
    "about the harmony of religions and the message of Vedanta for the modern world."
)


def make_config(tmp_path: Path, **overrides) -> IngestionConfig:
    values = {
        "article_concurrency": 3,
        "ai_concurrency": 4,
        "relation_concurrency": 8,
        "timeout_log_path": tmp_path / "logs" / "timeouts.log",
        "period_retry_attempts": 2,
        "article_retry_attempts": 3,
        "retry_backoff_seconds": 0.0,
    }
    values.update(overrides)
    return IngestionConfig(**values).validate()


def make_site() -> ArchiveSiteConfig:
    return ArchiveSiteConfig(
        base_url="https://archive.example.org",
        magazine_name="Vedanta Kesari",
        creator_email="editor@example.org",
        creator_name="Archive Bot",
    )


def text_result(title: str = "The Message of Vedanta", document_url: Optional[str] = None) -> ExtractionResult:
    return ExtractionResult(
        title=title,
        document_url=document_url,
        raw_text=ARTICLE_TEXT,
        source="document" if document_url else "page",
    )


Behaviour = Union[ExtractionResult, BaseException, Callable[[int], ExtractionResult]]


class FakeExtractor:
    """Returns scripted results per URL; exceptions are raised, callables get the call number."""

    def __init__(self, behaviours: Dict[str, Behaviour], *, delay: float = 0.0):
        self.behaviours = behaviours
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.peak = 0

    async def extract(self, locator_url: str) -> ExtractionResult:
        self.calls[locator_url] += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            behaviour = self.behaviours.get(locator_url, ExtractionResult())
            if isinstance(behaviour, BaseException):
                raise behaviour
            if callable(behaviour):
                return behaviour(self.calls[locator_url])
            return behaviour
        finally:
            self.in_flight -= 1


class FakeDiscovery:
    def __init__(self, locators: Union[List[ArticleLocator], BaseException]):
        self.locators = locators
        self.calls = 0

    async def collect_locators(self, year: int) -> List[ArticleLocator]:
        self.calls += 1
        if isinstance(self.locators, BaseException):
            raise self.locators
        return list(self.locators)


class FakeEnrichment:
    """Stands in for EnrichmentClient, tracking how many calls run at once."""

    def __init__(
        self,
        *,
        tags: Optional[List[str]] = None,
        authors: Optional[List[str]] = None,
        fail_mode: Optional[str] = None,
        fail_error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        self.tags = tags if tags is not None else ["Ramakrishna Mission", "Swami Vivekananda"]
        self.authors = authors if authors is not None else ["Swami Vivekananda"]
        self.fail_mode = fail_mode
        self.fail_error = fail_error
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.peak = 0

    async def _call(self, mode: str, value):
        self.calls[mode] += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if mode == self.fail_mode:
                raise self.fail_error or RuntimeError(f"{mode} generation returned malformed output")
            return value
        finally:
            self.in_flight -= 1

    async def summarize(self, text: str, title: Optional[str]) -> str:
        return await self._call("summary", "A short summary.")

    async def conclude(self, text: str, title: Optional[str]) -> str:
        return await self._call("conclusion", "A short conclusion.")

    async def tag(self, text: str, title: Optional[str]) -> List[str]:
        return await self._call("tags", list(self.tags))

    async def attribute_authors(self, text: str, title: Optional[str]) -> List[str]:
        return await self._call("authors", list(self.authors))


class FakeDocuments:
    def __init__(self, texts: Dict[str, Union[str, BaseException]]):
        self.texts = texts
        self.calls: List[str] = []

    async def extract_text(self, url: str) -> str:
        self.calls.append(url)
        value = self.texts.get(url, "")
        if isinstance(value, BaseException):
            raise value
        return value


def completion(content: Optional[str]) -> SimpleNamespace:
    """Shape of an OpenAI chat completion response, reduced to what the client reads."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeChatClient:
    """Minimal AsyncOpenAI replacement exposing ``chat.completions.create``."""

    def __init__(self, contents: List[Optional[str]]):
        self._contents = list(contents)
        self.requests: List[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.requests.append(kwargs)
        return completion(self._contents.pop(0))
