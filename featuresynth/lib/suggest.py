"""
Fuzzy matching for "Did you mean?" suggestions.
"""

from difflib import SequenceMatcher
from typing import Iterable, Optional


def find_similar(query: str, candidates: Iterable[str], threshold: float = 0.6) -> Optional[str]:
    """
    Find the most similar candidate to query.

    Args:
        query: The user's input
        candidates: Valid options
        threshold: Minimum similarity ratio (0-1) to suggest

    Returns:
        Best match if above threshold, None otherwise
    """
    best_match = None
    best_ratio = 0.0

    query_lower = query.lower()

    for candidate in candidates:
        ratio = SequenceMatcher(None, query_lower, candidate.lower()).ratio()
        if ratio > best_ratio:
            best_ratio = ratio
            best_match = candidate

    if best_ratio >= threshold:
        return best_match

    return None


def suggest_epic(query: str, epics) -> Optional[str]:
    """Find the epic slug closest to query, or None."""
    return find_similar(query, [epic.slug for epic in epics])
