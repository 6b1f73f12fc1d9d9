"""Sales objection detection — substring scan for known resistance phrases."""

from typing import Iterable

from config.schemas import ObjectionStats

CONTEXT_CHARS = 20


def detect_objections(text: str, phrases: Iterable[str]) -> ObjectionStats:
    """Find objection phrases and capture evidence around each one.

    Each phrase counts once, at its first occurrence. The evidence string
    quotes 20 characters of original text either side of the match.
    """
    lower = text.lower()
    instances = []

    for phrase in phrases:
        index = lower.find(phrase)
        if index < 0:
            continue
        start = max(0, index - CONTEXT_CHARS)
        end = min(len(text), index + len(phrase) + CONTEXT_CHARS)
        context = text[start:end].strip()
        instances.append(f'"{context}" (contains "{phrase}")')

    return ObjectionStats(count=len(instances), instances=instances)
