"""Keyword extraction — frequency-ranked content words."""

import re
from typing import Iterable

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3


def extract_keywords(text: str, stop_words: Iterable[str], limit: int = MAX_KEYWORDS) -> list[str]:
    """Return up to `limit` lowercase tokens ranked by descending frequency.

    Ties keep first-seen order. Stop words and tokens shorter than
    MIN_KEYWORD_LENGTH characters are excluded.
    """
    stop = set(stop_words)
    frequency: dict[str, int] = {}
    for word in re.findall(r"\b\w+\b", text.lower()):
        if word in stop or len(word) < MIN_KEYWORD_LENGTH:
            continue
        frequency[word] = frequency.get(word, 0) + 1

    # sorted() is stable, so equal counts stay in insertion (first-seen) order
    ranked = sorted(frequency.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]
