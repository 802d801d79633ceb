"""Download attached PDFs and extract their text."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Optional

import httpx
from pypdf import PdfReader


class DocumentTextExtractor:
    """Fetches a document over HTTP and returns its plain text."""

    _DEFAULT_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_4) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/119.0.0.0 Safari/537.36"
        ),
        "Accept": "application/pdf,*/*;q=0.8",
    }

    def __init__(self, *, timeout_seconds: float = 60.0, logger: Optional[logging.Logger] = None) -> None:
        self._timeout = timeout_seconds
        self._logger = logger or logging.getLogger(__name__)

    async def download(self, url: str) -> bytes:
        async with httpx.AsyncClient(
            headers=self._DEFAULT_HEADERS,
            follow_redirects=True,
            timeout=self._timeout,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    async def extract_text(self, url: str) -> str:
        data = await self.download(url)
        self._logger.debug("Downloaded %d bytes from %s", len(data), url)
        return await asyncio.to_thread(pdf_bytes_to_text, data)


def pdf_bytes_to_text(data: bytes) -> str:
    """Concatenate the text layer of every page, blank line between pages."""
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        text = page.extract_text() or ""
        text = text.replace("\x00", "").strip()
        if text:
            pages.append(text)
    return "\n\n".join(pages).strip()
