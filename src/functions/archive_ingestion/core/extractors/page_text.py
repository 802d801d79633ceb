"""HTML helpers for article pages and period index pages."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..contracts.article import ArticleLocator
from ..utils.periods import month_from_text

# Article headings on the archive carry utility classes rather than semantic tags.
_TITLE_SELECTORS = (
    'div[class~="z-fs:22"][class~="z-fw:700"]',
    "h1",
    "h2",
)
_TEXT_ROOT_SELECTORS = ("main", "article", '[role="main"]')
_STRIPPED_TAGS = ("script", "style", "noscript", "template")
_DIGITS = re.compile(r"\d+")


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def clean_title(raw: Optional[str]) -> Optional[str]:
    """Drop page numbers and collapse whitespace; blank titles become ``None``."""
    if not raw:
        return None
    cleaned = " ".join(_DIGITS.sub("", raw).split())
    return cleaned or None


def extract_title(html: str) -> Optional[str]:
    soup = _soup(html)
    for selector in _TITLE_SELECTORS:
        node = soup.select_one(selector)
        if node:
            title = clean_title(node.get_text(" ", strip=True))
            if title:
                return title
    return None


def find_document_link(html: str, page_url: str) -> Optional[str]:
    """Return the absolute URL of the first anchor that looks like a PDF."""
    soup = _soup(html)
    hrefs = [(anchor.get("href") or "").strip() for anchor in soup.find_all("a")]
    hrefs = [href for href in hrefs if href]
    lowered = [href.lower() for href in hrefs]

    checks = (
        lambda value: value.split("?", 1)[0].endswith(".pdf"),
        lambda value: ".pdf" in value,
        lambda value: "/pdf" in value,
    )
    for check in checks:
        for href, low in zip(hrefs, lowered):
            if check(low):
                return urljoin(page_url, href)
    return None


def extract_page_text(html: str) -> str:
    """Visible text of the main content region, scripts and styles removed."""
    soup = _soup(html)
    for tag_name in _STRIPPED_TAGS:
        for node in soup.find_all(tag_name):
            node.decompose()

    root = None
    for selector in _TEXT_ROOT_SELECTORS:
        root = soup.select_one(selector)
        if root:
            break
    root = root or soup.body or soup
    text = root.get_text("\n", strip=True)
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line).strip()


def collect_article_links(html: str, *, base_url: str, marker: str) -> List[ArticleLocator]:
    """Unique article locators on an index page, with a month guess per link."""
    soup = _soup(html)
    locators: List[ArticleLocator] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a"):
        href = (anchor.get("href") or "").strip()
        text = anchor.get_text(" ", strip=True)
        if marker not in href or not text:
            continue
        url = href if href.startswith("http") else urljoin(base_url, href)
        if url in seen:
            continue
        seen.add(url)
        guess = month_from_text(text) or month_from_text(href)
        locators.append(ArticleLocator(url=url, period_label_guess=guess, label=text))
    return locators
