"""Async client for the text-generation service used to enrich articles."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Union

from openai import APIError, AsyncOpenAI

from src.shared.batch.timeouts import HardFailure

from ..config import EnrichmentConfig
from ..processors.output_normalizer import normalize_authors, normalize_tags, trim_context
from ..prompts import MODE_SETTINGS, EnrichmentMode, build_messages

_REASONING_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)


class EnrichmentError(HardFailure, RuntimeError):
    """Raised when the generation service returns unusable output."""


class EnrichmentClient:
    """Wraps an OpenAI-compatible chat endpoint behind four typed operations.

    The client performs no retries of its own: a timeout surfaces as the SDK's
    timeout error and the article-level retry policy decides what happens next.
    """

    def __init__(
        self,
        config: EnrichmentConfig,
        *,
        client: Optional[AsyncOpenAI] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=float(config.timeout_seconds),
            max_retries=0,
        )
        self._logger = logger or logging.getLogger(__name__)

    @property
    def model(self) -> str:
        return self._config.model

    async def summarize(self, text: str, title: Optional[str]) -> str:
        return await self.generate(EnrichmentMode.SUMMARY, text, title)  # type: ignore[return-value]

    async def conclude(self, text: str, title: Optional[str]) -> str:
        return await self.generate(EnrichmentMode.CONCLUSION, text, title)  # type: ignore[return-value]

    async def tag(self, text: str, title: Optional[str]) -> List[str]:
        return await self.generate(EnrichmentMode.TAGS, text, title)  # type: ignore[return-value]

    async def attribute_authors(self, text: str, title: Optional[str]) -> List[str]:
        return await self.generate(EnrichmentMode.AUTHORS, text, title)  # type: ignore[return-value]

    async def generate(
        self,
        mode: Union[EnrichmentMode, str],
        text: str,
        title: Optional[str],
    ) -> Union[str, List[str]]:
        """Run one enrichment *mode* over *text* and post-process the completion."""
        mode = EnrichmentMode(mode)
        settings = MODE_SETTINGS[mode]
        messages = build_messages(mode, trim_context(text, settings.context_chars), title)

        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=messages,
                temperature=settings.temperature,
                top_p=settings.top_p,
                max_tokens=settings.max_tokens,
                n=1,
            )
        except APIError as exc:
            self._logger.warning("Generation request failed for mode=%s: %s", mode.value, exc)
            raise

        content = self._extract_content(response)
        if not content:
            raise EnrichmentError(f"Generation service returned empty output for {mode.value}")

        if mode is EnrichmentMode.TAGS:
            tags = normalize_tags(content)
            if not tags:
                raise EnrichmentError(f"No usable tags in generation output: {content[:120]!r}")
            return tags
        if mode is EnrichmentMode.AUTHORS:
            return normalize_authors(content)
        return content

    @staticmethod
    def _extract_content(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) or ""
        return _REASONING_BLOCK.sub("", content).strip()
