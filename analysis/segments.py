"""Segment normalization — every transcript gets speaker-labeled time segments.

When the caller supplies segments, missing speakers are filled in by
alternation. When it doesn't, the text is split into sentences spread evenly
over a nominal 30 seconds. Only the Agent/Customer roles exist: with more than
two speakers every non-zero alternation index collapses to Customer.
"""

import re
from typing import Sequence

from config.schemas import InvalidInputError, Segment, Speaker

# Nominal span for segments synthesized from bare text
SYNTHETIC_SPAN_SECONDS = 30.0
SENTENCE_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.9

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def speaker_for_index(index: int, speaker_count: int = 2) -> Speaker:
    return Speaker.AGENT if index % speaker_count == 0 else Speaker.CUSTOMER


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def split_by_speaker(
    text: str,
    segments: Sequence[Segment] | None = None,
    speaker_count: int = 2,
) -> list[Segment]:
    """Return speaker-labeled segments for a transcript. Never empty.

    Args:
        text: Full transcript text
        segments: Caller-supplied segments (not mutated; copies are returned)
        speaker_count: Speakers to alternate between when assigning roles

    Returns:
        Caller segments with speakers filled in, or sentence segments of
        30/n seconds each, or a single [0, 30) Agent segment for text with
        no sentences.
    """
    if speaker_count < 1:
        raise InvalidInputError(f"speaker_count must be >= 1, got {speaker_count}")

    if segments:
        return [
            seg if seg.speaker is not None
            else seg.model_copy(update={"speaker": speaker_for_index(i, speaker_count)})
            for i, seg in enumerate(segments)
        ]

    sentences = split_sentences(text)
    if not sentences:
        return [Segment(
            id=1,
            start=0.0,
            end=SYNTHETIC_SPAN_SECONDS,
            text=text,
            speaker=Speaker.AGENT,
            confidence=FALLBACK_CONFIDENCE,
        )]

    span = SYNTHETIC_SPAN_SECONDS / len(sentences)
    return [
        Segment(
            id=i + 1,
            start=i * span,
            end=(i + 1) * span,
            text=sentence,
            speaker=speaker_for_index(i, speaker_count),
            confidence=SENTENCE_CONFIDENCE,
        )
        for i, sentence in enumerate(sentences)
    ]
