from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/replace/delete edit distance."""
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    """
    `1 - distance / len(longer)`; two empty strings are a perfect match.
    """
    return Levenshtein.normalized_similarity(a, b)
