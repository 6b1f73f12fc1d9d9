"""Composite scores — customer engagement (0-100) and metrics confidence (0-1)."""

from typing import Sequence

from config.schemas import Segment, SentimentLabel, TalkRatio, WordTimestamp


def score_engagement(talk_ratio: TalkRatio, sentiment: SentimentLabel, objection_count: int) -> int:
    """Customer engagement from participation, sentiment and objections.

    Base 70. A customer share of 40-60% adds 15; under 30% or over 70%
    subtracts 10. Positive sentiment adds 10, negative subtracts 15. Each
    objection subtracts 5. Clamped to [0, 100].
    """
    engagement = 70

    if 40 <= talk_ratio.customer <= 60:
        engagement += 15
    elif talk_ratio.customer < 30 or talk_ratio.customer > 70:
        engagement -= 10

    if sentiment == SentimentLabel.POSITIVE:
        engagement += 10
    elif sentiment == SentimentLabel.NEGATIVE:
        engagement -= 15

    engagement -= objection_count * 5
    return max(0, min(100, engagement))


def score_confidence(
    text: str,
    segments: Sequence[Segment],
    words: Sequence[WordTimestamp],
) -> float:
    """How far the metrics can be trusted given the input the caller supplied.

    `segments` are the caller's segments, before normalization.
    """
    confidence = 0.7

    if len(text) < 10:
        confidence -= 0.3
    if not segments:
        confidence -= 0.2
    if words:
        confidence += 0.2
    if any(seg.speaker for seg in segments):
        confidence += 0.1

    # Rounded so the float steps above don't leave 0.7999999999999999
    return round(max(0.0, min(1.0, confidence)), 6)
