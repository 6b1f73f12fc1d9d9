"""Metrics Orchestrator — turns one transcript into a MetricsBundle.

Stage order is fixed:
  1. Normalize segments (synthesize them from sentences if absent)
  2. Talk time + speaking speed
  3. Filler words, objections, sentiment
  4. Customer engagement
  5. Word-level analysis (interruptions, pauses, emphasis) when timestamps exist
  6. Keywords, call score, confidence → bundle

The engine owns its lexicon, jitter source and memo tables. Tables only grow
until clear_caches() is called; long-running callers should clear them
periodically. Inserts are serialized by a lock, reads are lock-free, and two
threads racing on the same key may both compute but always observe the first
stored value.
"""

import threading
from typing import Any, Callable, Iterable, Sequence, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from analysis.call_score import JitterSource, SeededJitter, score_call
from analysis.fillers import detect_filler_words
from analysis.keywords import extract_keywords
from analysis.objections import detect_objections
from analysis.scoring import score_confidence, score_engagement
from analysis.segments import split_by_speaker
from analysis.sentiment import classify_sentiment, sentiment_score
from analysis.talk_time import compute_talk_time, refine_speaking_speed
from analysis.timing import analyze_pauses, detect_emphasis, detect_interruptions
from analysis.vocab_loader import Lexicon, load_lexicon
from config.schemas import (
    CallAnalysis,
    EmphasisStats,
    InterruptionStats,
    InvalidInputError,
    MetricsBundle,
    PauseStats,
    Segment,
    SentimentLabel,
    Transcript,
    WordTimestamp,
)
from config.settings import Settings, load_settings

# Texts shorter than this are not worth analyzing
MIN_ANALYZABLE_CHARS = 10
SKIPPED_KEYWORD = "skipped_short_transcript"

M = TypeVar("M", bound=BaseModel)
V = TypeVar("V")


def _require_text(text: Any) -> str:
    if not isinstance(text, str):
        logger.warning(f"Rejected transcript: text must be str, got {type(text).__name__}")
        raise InvalidInputError(f"transcript text must be a string, got {type(text).__name__}")
    return text


def _coerce(model: type[M], items: Iterable[Any] | None, what: str) -> list[M]:
    """Accept model instances or plain dicts (as produced by ASR/diarization)."""
    try:
        return [item if isinstance(item, model) else model.model_validate(item) for item in items or []]
    except ValidationError as e:
        logger.warning(f"Rejected transcript: invalid {what} ({e.error_count()} errors)")
        raise InvalidInputError(f"invalid {what}: {e}") from e


class TranscriptMetricsEngine:
    """Lexical/heuristic call metrics with per-engine memoization.

    Construct once and share. `lexicon`, `jitter` and `settings` are injectable;
    by default they come from the environment (see config.settings).
    """

    def __init__(
        self,
        lexicon: Lexicon | None = None,
        jitter: JitterSource | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or load_settings()
        self.lexicon = lexicon or load_lexicon(self.settings.lang, self.settings.vocab_dir)
        self.jitter = jitter or SeededJitter(self.settings.jitter_bound)

        self._lock = threading.Lock()
        self._sentiments: dict[str, SentimentLabel] = {}
        self._keywords: dict[str, tuple[str, ...]] = {}
        self._scores: dict[tuple[str, SentimentLabel], int] = {}
        self._metrics: dict[str, MetricsBundle] = {}

    def _memoize(self, table: dict, key, compute: Callable[[], V]) -> V:
        cached = table.get(key)
        if cached is not None:
            return cached
        value = compute()
        with self._lock:
            return table.setdefault(key, value)

    # ── Lexical analyzers ──

    def analyze_sentiment(self, text: str) -> SentimentLabel:
        text = _require_text(text)
        return self._memoize(
            self._sentiments, text,
            lambda: classify_sentiment(text, self.lexicon.positive_words, self.lexicon.negative_words),
        )

    def extract_keywords(self, text: str) -> list[str]:
        text = _require_text(text)
        keywords = self._memoize(
            self._keywords, text,
            lambda: tuple(extract_keywords(text, self.lexicon.stop_words)),
        )
        return list(keywords)

    def generate_call_score(self, text: str, sentiment: SentimentLabel | str) -> int:
        """Call score, stable for a given (text, sentiment) until caches are cleared."""
        text = _require_text(text)
        try:
            label = SentimentLabel(sentiment)
        except ValueError as e:
            raise InvalidInputError(f"unknown sentiment '{sentiment}'") from e
        return self._memoize(
            self._scores, (text, label),
            lambda: score_call(
                text, label, self.lexicon.good_service_phrases, self.jitter,
                key=f"{text}-{label.value}",
            ),
        )

    def split_by_speaker(
        self,
        text: str,
        segments: Sequence[Segment | dict] | None = None,
        speaker_count: int = 2,
    ) -> list[Segment]:
        text = _require_text(text)
        return split_by_speaker(text, _coerce(Segment, segments, "segments"), speaker_count)

    # ── Full metrics ──

    def metrics_cache_key(self, text: str, duration_seconds: float) -> str:
        return f"metrics-{text[:self.settings.metrics_key_prefix]}-{duration_seconds}"

    def calculate_call_metrics(
        self,
        text: str,
        segments: Sequence[Segment | dict] | None = None,
        words: Sequence[WordTimestamp | dict] | None = None,
        duration_seconds: float | None = 0.0,
    ) -> MetricsBundle:
        """Compute the full metrics bundle for a transcript.

        Args:
            text: Full transcript text
            segments: Speaker segments (optional; synthesized from sentences if absent)
            words: Word-level timestamps (optional; enables word-level metrics)
            duration_seconds: Call duration (optional; 0 means unknown)

        Returns:
            MetricsBundle, memoized by (text prefix, duration). Repeat calls with
            the same key return the cached bundle even if segments/words differ.

        Raises:
            InvalidInputError: text is not a string, duration is negative, or a
                segment/word fails validation.
        """
        text = _require_text(text)
        duration = float(duration_seconds or 0.0)
        if duration < 0:
            logger.warning(f"Rejected transcript: negative duration {duration}")
            raise InvalidInputError(f"duration_seconds must be >= 0, got {duration}")

        input_segments = _coerce(Segment, segments, "segments")
        input_words = _coerce(WordTimestamp, words, "words")

        key = self.metrics_cache_key(text, duration)
        cached = self._metrics.get(key)
        if cached is not None:
            logger.debug(f"Metrics cache hit ({len(self._metrics)} entries)")
            return cached

        bundle = self._compute_metrics(text, input_segments, input_words, duration)

        with self._lock:
            return self._metrics.setdefault(key, bundle)

    def _compute_metrics(
        self,
        text: str,
        segments: list[Segment],
        words: list[WordTimestamp],
        duration: float,
    ) -> MetricsBundle:
        normalized = split_by_speaker(text, segments)
        talk = compute_talk_time(normalized, duration, measured=bool(segments))

        fillers = detect_filler_words(text, self.lexicon.filler_words, talk.duration_seconds)
        objections = detect_objections(text, self.lexicon.objection_phrases)
        sentiment = self.analyze_sentiment(text)
        engagement = score_engagement(talk.talk_ratio, sentiment, objections.count)

        speed = talk.speaking_speed
        interruptions, pauses, emphasis = InterruptionStats(), PauseStats(), EmphasisStats()
        if words:
            interruptions = detect_interruptions(normalized, words)
            pauses = analyze_pauses(words)
            emphasis = detect_emphasis(words, self.lexicon.emphasis_indicators)
            speed = refine_speaking_speed(speed, words)

        bundle = MetricsBundle(
            duration_seconds=talk.duration_seconds,
            word_count=talk.total_words,
            sentiment=sentiment,
            keywords=self.extract_keywords(text),
            call_score=self.generate_call_score(text, sentiment),
            talk_ratio=talk.talk_ratio,
            speaking_speed=speed,
            filler_words=fillers,
            objections=objections,
            customer_engagement=engagement,
            confidence=score_confidence(text, segments, words),
            interruptions=interruptions,
            pauses=pauses,
            emphasis=emphasis,
        )

        logger.info(
            f"Call metrics: {bundle.word_count} words over {bundle.duration_seconds:.0f}s, "
            f"sentiment={sentiment.value}, score={bundle.call_score}, "
            f"talk={bundle.talk_ratio.agent:.0f}/{bundle.talk_ratio.customer:.0f}, "
            f"fillers={fillers.count}, objections={objections.count}, "
            f"engagement={engagement}, confidence={bundle.confidence:.2f}"
        )
        return bundle

    def analyze_transcript(self, transcript: Transcript | dict) -> CallAnalysis:
        """Sentiment, keywords, score and metrics for one uploaded transcript.

        Transcripts under 10 characters are skipped with a neutral, zero-score result.
        """
        if not isinstance(transcript, Transcript):
            try:
                transcript = Transcript.model_validate(transcript)
            except ValidationError as e:
                logger.warning(f"Rejected transcript: {e.error_count()} validation errors")
                raise InvalidInputError(f"invalid transcript: {e}") from e

        if len(transcript.text) < MIN_ANALYZABLE_CHARS:
            logger.info(f"Transcript too short ({len(transcript.text)} chars) — skipping analysis")
            return CallAnalysis(
                sentiment=SentimentLabel.NEUTRAL,
                sentiment_score=sentiment_score(SentimentLabel.NEUTRAL),
                keywords=[SKIPPED_KEYWORD],
                call_score=0,
                skipped=True,
            )

        metrics = self.calculate_call_metrics(
            transcript.text, transcript.segments, transcript.words, transcript.duration_seconds,
        )
        return CallAnalysis(
            sentiment=metrics.sentiment,
            sentiment_score=sentiment_score(metrics.sentiment),
            keywords=metrics.keywords,
            call_score=metrics.call_score,
            metrics=metrics,
        )

    def clear_caches(self) -> None:
        with self._lock:
            sizes = (len(self._sentiments), len(self._keywords), len(self._scores), len(self._metrics))
            self._sentiments.clear()
            self._keywords.clear()
            self._scores.clear()
            self._metrics.clear()
        logger.debug(
            f"Cleared caches: {sizes[0]} sentiments, {sizes[1]} keywords, "
            f"{sizes[2]} scores, {sizes[3]} metrics"
        )
