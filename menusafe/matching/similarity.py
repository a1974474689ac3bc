from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between ``a`` and ``b`` (case-sensitive)."""
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str, b: str) -> float:
    """
    Case-insensitive normalized Levenshtein similarity in ``[0, 1]``.

    Two empty strings count as identical (1.0); one empty string against a
    non-empty one scores 0.0.
    """
    s1 = (a or "").lower()
    s2 = (b or "").lower()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    return Levenshtein.normalized_similarity(s1, s2)
