"""Playwright-backed discovery and article extraction for the archive."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from src.shared.batch.timeouts import is_timeout_error

from ..config import ArchiveSiteConfig
from ..contracts.article import ArticleLocator, ExtractionResult, has_text
from .document_extractor import DocumentTextExtractor
from .page_text import collect_article_links, extract_page_text, extract_title, find_document_link

_ANCHOR_READY_SCRIPT = (
    "marker => Array.from(document.querySelectorAll('a'))"
    ".some(a => (a.getAttribute('href') || '').includes(marker))"
)


class ArchiveBrowser:
    """Owns one headless Chromium and opens a fresh page per navigation.

    The site is client-side rendered, so both the period index and the article
    pages are read from the live DOM after the network settles.

    Example:
        async with ArchiveBrowser(site) as browser:
            locators = await browser.collect_locators(2023)
            result = await browser.extract(locators[0].url)
    """

    _LAUNCH_ARGS = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--no-sandbox",
        "--disable-setuid-sandbox",
    ]
    _USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    _MAX_SCROLL_ROUNDS = 25

    def __init__(
        self,
        site: ArchiveSiteConfig,
        *,
        documents: Optional[DocumentTextExtractor] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._site = site
        self._documents = documents or DocumentTextExtractor(timeout_seconds=site.document_timeout_seconds)
        self._logger = logger or logging.getLogger(__name__)
        self._timeout_ms = site.navigation_timeout_seconds * 1000
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "ArchiveBrowser":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True, args=self._LAUNCH_ARGS)
        self._context = await self._browser.new_context(
            user_agent=self._USER_AGENT,
            locale="en-US",
            viewport={"width": 1280, "height": 1600},
            ignore_https_errors=True,
        )
        self._context.set_default_navigation_timeout(self._timeout_ms)
        self._context.set_default_timeout(self._timeout_ms)
        self._logger.debug("Browser started")

    async def close(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as exc:
            self._logger.warning("Error while closing browser: %s", exc)
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._context = self._browser = self._playwright = None

    async def _new_page(self) -> Any:
        if self._context is None:
            raise RuntimeError("ArchiveBrowser is not started")
        return await self._context.new_page()

    async def collect_locators(self, year: int) -> List[ArticleLocator]:
        """Load the year index, scroll until no new links appear, and collect them."""
        page = await self._new_page()
        try:
            await page.goto(self._site.portal_url, wait_until="networkidle")
            await page.goto(self._site.year_url(year), wait_until="networkidle")
            await page.wait_for_function(
                _ANCHOR_READY_SCRIPT,
                arg=self._site.article_marker,
                timeout=self._timeout_ms,
            )
            await self._scroll_until_stable(page)
            html = await page.content()
        finally:
            await page.close()

        locators = collect_article_links(
            html,
            base_url=self._site.base_url,
            marker=self._site.article_marker,
        )
        self._logger.info("Discovered %d article links for %s", len(locators), year)
        return locators

    async def _scroll_until_stable(self, page: Any) -> None:
        selector = f"a[href*='{self._site.article_marker}']"
        previous = -1
        for _ in range(self._MAX_SCROLL_ROUNDS):
            count = await page.eval_on_selector_all(selector, "nodes => nodes.length")
            if count == previous:
                return
            previous = count
            await page.mouse.wheel(0, 2400)
            await page.wait_for_timeout(600)
        self._logger.debug("Index still growing after %d scroll rounds", self._MAX_SCROLL_ROUNDS)

    async def extract(self, locator_url: str) -> ExtractionResult:
        """Render the article and return its text, preferring the attached PDF.

        Navigation timeouts are raised so the caller can retry; every other
        failure yields an empty result.
        """
        try:
            html, page_url = await self._render(locator_url)
        except Exception as exc:
            if is_timeout_error(exc):
                raise
            self._logger.warning("Could not render %s: %s", locator_url, exc)
            return ExtractionResult()

        title = extract_title(html)
        document_url = find_document_link(html, page_url)
        page_text = extract_page_text(html)

        if document_url:
            try:
                document_text = await self._documents.extract_text(document_url)
            except Exception as exc:
                self._logger.info("Document extraction failed for %s, using page text: %s", document_url, exc)
                document_text = ""
            if has_text(document_text):
                return ExtractionResult(
                    title=title,
                    document_url=document_url,
                    raw_text=document_text,
                    source="document",
                )

        return ExtractionResult(
            title=title,
            document_url=document_url,
            raw_text=page_text if has_text(page_text) else "",
            source="page" if has_text(page_text) else "none",
        )

    async def _render(self, url: str) -> tuple[str, str]:
        page = await self._new_page()
        try:
            await page.goto(url, wait_until="networkidle")
            return await page.content(), page.url
        finally:
            await page.close()
