"""Heuristic call score (0-100) with a small, reproducible jitter."""

import hashlib
import random
from typing import Callable, Iterable

from config.schemas import SentimentLabel

BASE_SCORE = 70
POSITIVE_BONUS = 15
NEGATIVE_PENALTY = 10
GOOD_PHRASE_BONUS = 2

# (cache_key) -> jitter to add to the raw score
JitterSource = Callable[[str], int]


class SeededJitter:
    """Deterministic jitter in [-bound, +bound], seeded by a SHA-256 of the key.

    The same key always yields the same offset, in any process.
    """

    def __init__(self, bound: int = 3):
        self.bound = bound

    def __call__(self, key: str) -> int:
        if self.bound <= 0:
            return 0
        seed = int.from_bytes(hashlib.sha256(key.encode("utf-8")).digest()[:8], "big")
        return random.Random(seed).randint(-self.bound, self.bound)


def score_call(
    text: str,
    sentiment: SentimentLabel | str,
    good_phrases: Iterable[str],
    jitter: JitterSource,
    key: str | None = None,
) -> int:
    """Score a call from its sentiment and good-service phrases.

    Base 70, +15 positive / -10 negative, +2 per good phrase found as a
    case-insensitive substring, then jitter once and clamp to [0, 100].
    """
    score = BASE_SCORE
    label = SentimentLabel(sentiment)
    if label == SentimentLabel.POSITIVE:
        score += POSITIVE_BONUS
    elif label == SentimentLabel.NEGATIVE:
        score -= NEGATIVE_PENALTY

    lower = text.lower()
    score += sum(GOOD_PHRASE_BONUS for phrase in good_phrases if phrase in lower)

    score += jitter(key if key is not None else f"{text}-{label.value}")
    return max(0, min(100, score))
