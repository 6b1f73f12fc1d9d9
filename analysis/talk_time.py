"""Talk-time ratio and speaking speed (words per minute).

Segment-level figures come from normalized segments. When word timestamps are
available, speaking speed is refined from the words themselves, which measure
actual speech rather than segment boundaries.
"""

from typing import Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict

from config.schemas import Segment, SpeakingSpeed, Speaker, TalkRatio, WordTimestamp

# Effective duration when neither the caller nor the segments provide one
FALLBACK_DURATION_SECONDS = 60.0
# Per-speaker talk time floor for words-per-minute
MIN_TALK_SECONDS = 1.0


class TalkTime(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_seconds: float
    customer_seconds: float
    agent_words: int
    customer_words: int
    total_words: int
    duration_seconds: float
    talk_ratio: TalkRatio
    speaking_speed: SpeakingSpeed


def count_words(text: str) -> int:
    return len(text.split())


def effective_duration(duration_seconds: float, talk_seconds: float) -> float:
    if duration_seconds > 0:
        return duration_seconds
    if talk_seconds > 0:
        return talk_seconds
    return FALLBACK_DURATION_SECONDS


def talk_ratio(agent_seconds: float, customer_seconds: float) -> TalkRatio:
    total = agent_seconds + customer_seconds
    if total <= 0:
        return TalkRatio(agent=50.0, customer=50.0)
    agent = agent_seconds / total * 100
    return TalkRatio(agent=agent, customer=100 - agent)


def compute_talk_time(
    segments: Sequence[Segment],
    duration_seconds: float = 0.0,
    measured: bool = True,
) -> TalkTime:
    """Accumulate per-speaker talk time and words over normalized segments.

    Args:
        segments: Speaker-labeled segments (see analysis.segments.split_by_speaker)
        duration_seconds: Caller-provided call duration, used when > 0
        measured: False for segments synthesized from bare text. Their spans
            still drive speed and duration, but the talk ratio stays 50/50.

    Returns:
        TalkTime with talk ratio (agent + customer == 100) and speaking speed.
    """
    agent_seconds = customer_seconds = 0.0
    agent_words = customer_words = 0

    for seg in segments:
        words = count_words(seg.text)
        if seg.speaker == Speaker.AGENT:
            agent_seconds += seg.duration
            agent_words += words
        else:
            customer_seconds += seg.duration
            customer_words += words

    total_words = agent_words + customer_words
    duration = effective_duration(duration_seconds, agent_seconds + customer_seconds)
    # Synthesized spans are evenly spread estimates, not who actually talked
    ratio = talk_ratio(agent_seconds, customer_seconds) if measured else talk_ratio(0.0, 0.0)

    return TalkTime(
        agent_seconds=agent_seconds,
        customer_seconds=customer_seconds,
        agent_words=agent_words,
        customer_words=customer_words,
        total_words=total_words,
        duration_seconds=duration,
        talk_ratio=ratio,
        speaking_speed=SpeakingSpeed(
            overall=total_words / duration * 60,
            agent=agent_words / max(agent_seconds, MIN_TALK_SECONDS) * 60,
            customer=customer_words / max(customer_seconds, MIN_TALK_SECONDS) * 60,
        ),
    )


# ── Word-level refinement ──

def word_level_speaking_speed(words: Sequence[WordTimestamp]) -> SpeakingSpeed:
    """Words per minute measured from word timestamps.

    Overall rate spans first word start to last word end. Per-speaker rates
    need a speaker on the first word; each contiguous speaker run lasts until
    the next run begins (the final run until the last word ends). Rates that
    can't be measured are 0.
    """
    if not words:
        return SpeakingSpeed(overall=0.0, agent=0.0, customer=0.0)

    span_minutes = (words[-1].end - words[0].start) / 60
    overall = len(words) / span_minutes if span_minutes > 0 else 0.0

    if words[0].speaker is None:
        return SpeakingSpeed(overall=overall, agent=0.0, customer=0.0)

    seconds = {Speaker.AGENT: 0.0, Speaker.CUSTOMER: 0.0}
    counts = {Speaker.AGENT: 0, Speaker.CUSTOMER: 0}
    current = words[0].speaker
    run_start = words[0].start

    for word in words:
        if word.speaker in counts:
            counts[word.speaker] += 1
        if word.speaker != current:
            if current in seconds:
                seconds[current] += word.start - run_start
            current = word.speaker
            run_start = word.start
    if current in seconds:
        seconds[current] += words[-1].end - run_start

    def _rate(speaker: Speaker) -> float:
        minutes = seconds[speaker] / 60
        return counts[speaker] / minutes if minutes > 0 else 0.0

    return SpeakingSpeed(overall=overall, agent=_rate(Speaker.AGENT), customer=_rate(Speaker.CUSTOMER))


def refine_speaking_speed(speed: SpeakingSpeed, words: Sequence[WordTimestamp]) -> SpeakingSpeed:
    """Prefer word-level rates over segment-level ones wherever they are non-zero."""
    if not words:
        return speed
    measured = word_level_speaking_speed(words)
    refined = SpeakingSpeed(
        # A zero word-level rate (single instant, no span) keeps the segment-level value
        overall=measured.overall or speed.overall,
        agent=measured.agent or speed.agent,
        customer=measured.customer or speed.customer,
    )
    logger.debug(
        f"Speaking speed refined from {len(words)} words: "
        f"overall {speed.overall:.1f} -> {refined.overall:.1f} wpm"
    )
    return refined
