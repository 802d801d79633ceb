"""Normalisation of raw generation output into tag and author lists."""

from __future__ import annotations

import re
from typing import List

from ..contracts.article import MAX_AUTHORS, MAX_TAGS

_ITEM_SPLIT = re.compile(r"[\n,;]+")
_LEADING_NOISE = re.compile(r"^[\s\-•*#>\d.)\]]+")
_NON_WORD = re.compile(r"[\W\d_]+", re.UNICODE)
_UNKNOWN = re.compile(r"^(unknown|n/?a|none)(\s+authors?)?\.?$", re.IGNORECASE)


def _items(raw: str) -> List[str]:
    return [_LEADING_NOISE.sub("", part).strip() for part in _ITEM_SPLIT.split(raw or "")]


def title_case(words: List[str]) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def is_unknown_author(name: str) -> bool:
    """True for the placeholder the model returns when no author is named."""
    return bool(_UNKNOWN.match((name or "").strip()))


def normalize_tags(raw: str, *, limit: int = MAX_TAGS) -> List[str]:
    """Turn model output into at most *limit* unique 2-3 word Title Case tags.

    Punctuation and digits are dropped, longer phrases are cut to their first
    three words, and single words are discarded.
    """
    tags: List[str] = []
    seen: set[str] = set()
    for item in _items(raw):
        words = _NON_WORD.sub(" ", item).split()[:3]
        if len(words) < 2:
            continue
        tag = title_case(words)
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
        if len(tags) >= limit:
            break
    return tags


def normalize_authors(raw: str, *, limit: int = MAX_AUTHORS) -> List[str]:
    """Split model output into unique author names, dropping the unknown marker."""
    authors: List[str] = []
    seen: set[str] = set()
    for item in _items(raw):
        name = " ".join(item.strip(" \"'").split())
        if not name or is_unknown_author(name):
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        authors.append(name)
        if len(authors) >= limit:
            break
    return authors


def trim_context(text: str, max_chars: int) -> str:
    """Collapse whitespace and keep the first *max_chars* characters."""
    return " ".join((text or "").split())[:max_chars]
