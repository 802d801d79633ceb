"""Prompt templates and per-mode generation settings for article enrichment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class EnrichmentMode(str, Enum):
    SUMMARY = "summary"
    CONCLUSION = "conclusion"
    TAGS = "tags"
    AUTHORS = "authors"


@dataclass(frozen=True)
class ModeSettings:
    context_chars: int
    temperature: float
    max_tokens: int
    top_p: float = 0.9


# Prose modes see more of the article than the list modes.
MODE_SETTINGS: Dict[EnrichmentMode, ModeSettings] = {
    EnrichmentMode.SUMMARY: ModeSettings(context_chars=12000, temperature=0.25, max_tokens=420),
    EnrichmentMode.CONCLUSION: ModeSettings(context_chars=12000, temperature=0.25, max_tokens=220),
    EnrichmentMode.TAGS: ModeSettings(context_chars=8000, temperature=0.1, max_tokens=96),
    EnrichmentMode.AUTHORS: ModeSettings(context_chars=8000, temperature=0.1, max_tokens=96),
}

SYSTEM_PROMPT = (
    "You are an expert editor for academic and magazine PDF content. "
    "Use only the provided extracted text. Do not make up facts, add disclaimers, "
    "or include pre/post text. Keep output concise and accurate."
)

_INSTRUCTIONS: Dict[EnrichmentMode, str] = {
    EnrichmentMode.SUMMARY: (
        "Create a short accurate summary (~300 words) of all details mentioned in {label}. "
        "Ensure no details are false, inaccurate, or hallucinated. "
        "Avoid bullet points and introductions."
    ),
    EnrichmentMode.CONCLUSION: (
        "Write a short, unique and distinctive conclusion (110-140 words) from {label}. "
        "Focus on key implications, outcomes, and significance rather than repeating summary content. "
        "Output only the conclusion paragraph."
    ),
    EnrichmentMode.TAGS: (
        "Generate exactly 5 tags that best capture the essence of {label}. "
        "Each tag must be 2-3 words, Title Case, no punctuation. "
        "Return one tag per line, no extra text."
    ),
    EnrichmentMode.AUTHORS: (
        "Extract the author(s) of {label} from the text. Return only author names, one per line. "
        "Use exact spellings from the text. If no author is present, return \"Unknown\"."
    ),
}


def build_messages(mode: EnrichmentMode, context: str, title: Optional[str]) -> List[Dict[str, str]]:
    """Return the chat messages for *mode* over an already trimmed *context*."""
    label = (title or "").strip() or "the article"
    instruction = _INSTRUCTIONS[mode].format(label=label)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"{instruction}\n\nExtracted text:\n{context}"},
    ]
