"""
Fuzzy name matching for voice commands.

Matching is case and accent insensitive and succeeds when either string
contains the other, so "causa" finds "Causa Limeña" and "pon lomo saltado"
still finds "Lomo Saltado". There is no ranking: every caller that needs a
single item takes the first match in menu order.

An empty fragment matches everything; callers must reject empty fragments
before matching.
"""

from __future__ import annotations

import unicodedata
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def normalize(text: str) -> str:
    """Lower-case and strip combining diacritical marks."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def matches(candidate: str, fragment: str) -> bool:
    """Bidirectional substring test on normalized strings."""
    a = normalize(candidate)
    b = normalize(fragment)
    return b in a or a in b


def first_match(
    items: Iterable[T],
    fragment: str,
    key: Callable[[T], str],
) -> Optional[T]:
    """Return the first item whose key matches the fragment."""
    for item in items:
        if matches(key(item), fragment):
            return item
    return None
