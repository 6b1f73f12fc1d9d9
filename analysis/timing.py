"""Word-timing analysis — interruptions, pauses and emphasized words.

All three need word-level timestamps and return empty results without them.
Speaker attribution uses the word's own speaker when present, otherwise the
segment whose time span contains the word.
"""

import string
from typing import Iterable, Sequence

from loguru import logger

from config.schemas import (
    EmphasisStats,
    Interruption,
    InterruptionStats,
    LongPause,
    PauseStats,
    Segment,
    Speaker,
    WordTimestamp,
)

INTERRUPTION_GAP = 0.3      # Speaker change within this gap is an interruption
PAUSE_THRESHOLD = 0.5       # Same-speaker gap counted as a pause
LONG_PAUSE_THRESHOLD = 2.0  # Pause reported individually
EMPHASIS_DURATION_FACTOR = 1.5
MIN_EMPHASIS_WORDS = 3


def _segment_speaker(word: WordTimestamp, segments: Sequence[Segment]) -> Speaker | None:
    for seg in segments:
        if word.start >= seg.start and word.end <= seg.end:
            return seg.speaker
    return None


def _word_speaker(word: WordTimestamp, segments: Sequence[Segment]) -> Speaker | None:
    if word.speaker is not None:
        return word.speaker
    return _segment_speaker(word, segments)


# ── Interruptions ──

def detect_interruptions(segments: Sequence[Segment], words: Sequence[WordTimestamp]) -> InterruptionStats:
    """Flag speaker changes between adjacent words separated by < 0.3s.

    Needs at least 2 words and 2 segments. Word pairs where either speaker
    can't be determined are skipped.
    """
    if len(words) < 2 or len(segments) < 2:
        return InterruptionStats()

    instances = []
    for prev, current in zip(words, words[1:]):
        prev_speaker = _word_speaker(prev, segments)
        current_speaker = _word_speaker(current, segments)
        if prev_speaker is None or current_speaker is None:
            continue
        if prev_speaker == current_speaker:
            continue
        if current.start - prev.end < INTERRUPTION_GAP:
            instances.append(Interruption(
                time=prev.end,
                interrupted_speaker=prev_speaker,
                interrupting_speaker=current_speaker,
                interrupted_word=prev.word,
                interrupting_word=current.word,
            ))

    if instances:
        logger.debug(f"Interruptions: {len(instances)} across {len(words)} words")
    return InterruptionStats(count=len(instances), instances=instances)


# ── Pauses ──

def analyze_pauses(words: Sequence[WordTimestamp]) -> PauseStats:
    """Measure same-speaker gaps between consecutive words.

    A missing speaker on either word counts as the same speaker. Gaps >= 0.5s
    are pauses; gaps >= 2.0s are also listed as long pauses.
    """
    if len(words) < 2:
        return PauseStats()

    count = 0
    total = 0.0
    long_pauses = []

    for prev, current in zip(words, words[1:]):
        same_speaker = prev.speaker is None or current.speaker is None or prev.speaker == current.speaker
        if not same_speaker:
            continue

        gap = current.start - prev.end
        if gap < PAUSE_THRESHOLD:
            continue
        count += 1
        total += gap

        if gap >= LONG_PAUSE_THRESHOLD:
            long_pauses.append(LongPause(
                start=prev.end,
                end=current.start,
                duration=gap,
                prev_word=prev.word,
                next_word=current.word,
                speaker=prev.speaker.value if prev.speaker else "unknown",
            ))

    return PauseStats(
        count=count,
        avg_duration=total / count if count else 0.0,
        long_pauses=long_pauses,
    )


# ── Emphasis ──

def _is_all_caps(word: str) -> bool:
    return len(word) > 1 and word.isupper()


def detect_emphasis(words: Sequence[WordTimestamp], indicators: Iterable[str]) -> EmphasisStats:
    """Find words stressed by duration, capitalization, or a preceding intensifier.

    A word is emphasized if it lasts more than 1.5x the average word, is
    written in all caps, or follows an indicator like "very" or "crucial".
    Needs at least 3 words. Results are unique, in first-seen order.
    """
    if len(words) < MIN_EMPHASIS_WORDS:
        return EmphasisStats()

    indicator_set = {i.lower() for i in indicators}
    avg_duration = sum(w.duration for w in words) / len(words)
    threshold = avg_duration * EMPHASIS_DURATION_FACTOR

    emphasized: dict[str, None] = {}
    for i, word in enumerate(words):
        follows_indicator = (
            i > 0 and words[i - 1].word.lower().strip(string.punctuation) in indicator_set
        )
        if word.duration > threshold or _is_all_caps(word.word) or follows_indicator:
            emphasized.setdefault(word.word, None)

    found = list(emphasized)
    return EmphasisStats(words=found, count=len(found))
