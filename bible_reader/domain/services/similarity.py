"""Similarity scoring between normalized strings."""

from rapidfuzz import fuzz


def similarity(a: str, b: str) -> float:
    """Score two normalized strings from 0 (nothing shared) to 100 (identical).

    Uses the normalized Indel distance, which is symmetric and degrades
    smoothly as the lengths drift apart.
    """
    return float(fuzz.ratio(a, b))
