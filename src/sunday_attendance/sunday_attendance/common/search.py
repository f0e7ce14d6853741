"""Accent-insensitive fuzzy search over names.

Scores follow the 0 (perfect) .. 1 (anything) convention, so a threshold of
0.3 keeps close matches only.
"""
from __future__ import annotations

import unicodedata
from difflib import SequenceMatcher
from typing import Callable, Iterable, List, Sequence, TypeVar

from ..core.constants import SEARCH_THRESHOLD

T = TypeVar("T")


def fold(text: str) -> str:
    """Lowercase and strip diacritics ("João" -> "joao")."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower().strip()


def score(query: str, candidate: str) -> float:
    q = fold(query)
    c = fold(candidate)
    if not q:
        return 0.0
    if c.startswith(q):
        return 0.0
    if q in c:
        return 0.1
    best = SequenceMatcher(None, q, c).ratio()
    for word in c.split():
        best = max(best, SequenceMatcher(None, q, word[: max(len(q), 1)]).ratio())
    return 1.0 - best


def fuzzy_filter(
    items: Iterable[T],
    query: str,
    *,
    key: Callable[[T], str],
    threshold: float = SEARCH_THRESHOLD,
) -> List[T]:
    """Items matching ``query``, best first. An empty query returns everything unchanged."""
    items = list(items)
    if not (query or "").strip():
        return items

    scored = [(score(query, key(item)), index, item) for index, item in enumerate(items)]
    return [item for s, _, item in sorted(scored, key=lambda t: (t[0], t[1])) if s <= threshold]


def sort_by_name(items: Sequence[T], *, key: Callable[[T], str]) -> List[T]:
    return sorted(items, key=lambda item: fold(key(item)))
