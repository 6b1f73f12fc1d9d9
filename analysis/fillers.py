"""Filler-word detection for coaching feedback ("um", "you know", ...)."""

from typing import Iterable

from analysis.sentiment import count_whole_word
from config.schemas import FillerWordStats


def count_filler_words(text: str, filler_words: Iterable[str]) -> dict[str, int]:
    """Whole-word, case-insensitive count per filler term. Zero counts are omitted."""
    lower = text.lower()
    counts: dict[str, int] = {}
    for term in filler_words:
        n = count_whole_word(term, lower)
        if n > 0:
            counts[term] = n
    return counts


def detect_filler_words(text: str, filler_words: Iterable[str], duration_seconds: float) -> FillerWordStats:
    """Filler counts plus their rate per minute of `duration_seconds` (must be > 0)."""
    breakdown = count_filler_words(text, filler_words)
    total = sum(breakdown.values())
    return FillerWordStats(
        count=total,
        per_minute=total / (duration_seconds / 60),
        breakdown=breakdown,
    )
