"""Tests for the metrics orchestrator: end-to-end bundles, memoization, errors."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from config.schemas import (
    CallAnalysis,
    InvalidInputError,
    MetricsBundle,
    Segment,
    SentimentLabel,
    Speaker,
    Transcript,
)
from pipeline.orchestrator import TranscriptMetricsEngine

GREAT_CALL = "This is great, thank you for your help"


@pytest.fixture
def engine():
    return TranscriptMetricsEngine(jitter=lambda key: 0)


def _sales_call_segments() -> list[dict]:
    return [
        {"id": 1, "start": 0, "end": 30, "text": "Hi, how can I help you today?", "speaker": "Agent"},
        {"id": 2, "start": 30, "end": 40, "text": "I need to think about it, it's too expensive",
         "speaker": "customer"},
    ]


def _timed_call() -> dict:
    return {
        "text": "Hi there. Yes please.",
        "segments": [
            {"id": 1, "start": 0, "end": 1.05, "text": "Hi there", "speaker": "Agent"},
            {"id": 2, "start": 1.05, "end": 4, "text": "Yes please", "speaker": "Customer"},
        ],
        "words": [
            {"word": "Hi", "start": 0.0, "end": 0.5, "speaker": "Agent"},
            {"word": "there", "start": 0.5, "end": 1.0, "speaker": "Agent"},
            {"word": "Yes", "start": 1.1, "end": 1.5, "speaker": "Customer"},
            {"word": "please", "start": 1.5, "end": 4.0, "speaker": "Customer"},
        ],
        "duration_seconds": 4,
    }


# ── End-to-end Metrics ──

class TestCalculateCallMetrics:
    def test_text_only_scenario(self, engine):
        bundle = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        assert isinstance(bundle, MetricsBundle)
        assert bundle.sentiment == SentimentLabel.POSITIVE
        assert bundle.call_score >= 70
        assert (bundle.talk_ratio.agent, bundle.talk_ratio.customer) == (50.0, 50.0)
        assert bundle.duration_seconds == 40
        assert bundle.word_count == 8
        assert bundle.speaking_speed.overall == pytest.approx(12.0)
        assert bundle.speaking_speed.agent == pytest.approx(16.0)
        assert bundle.speaking_speed.customer == 0.0
        assert bundle.confidence == pytest.approx(0.5)

    def test_text_only_scenario_with_seeded_jitter(self):
        bundle = TranscriptMetricsEngine().calculate_call_metrics(GREAT_CALL, [], None, 40)
        # base 70 + positive 15 + "thank you" 2, jitter within ±3
        assert 84 <= bundle.call_score <= 90

    def test_word_level_metrics_empty_without_words(self, engine):
        bundle = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        assert bundle.interruptions.count == 0
        assert bundle.pauses.count == 0
        assert bundle.emphasis.words == []

    def test_segments_from_dicts(self, engine):
        text = "Hi, how can I help you today? I need to think about it, it's too expensive."
        bundle = engine.calculate_call_metrics(text, _sales_call_segments(), None, 0)
        assert bundle.talk_ratio.agent == pytest.approx(75.0)
        assert bundle.talk_ratio.customer == pytest.approx(25.0)
        assert bundle.duration_seconds == 40
        assert bundle.objections.count == 2
        assert bundle.sentiment == SentimentLabel.NEUTRAL
        # 70 - 10 (customer under 30%) - 2 objections * 5
        assert bundle.customer_engagement == 50
        assert bundle.confidence == pytest.approx(0.8)

    def test_filler_rate_uses_effective_duration(self, engine):
        bundle = engine.calculate_call_metrics("um, so, like, I think um this is good", None, None, 0)
        assert bundle.filler_words.count == 4
        # one synthesized sentence spans 30 s
        assert bundle.duration_seconds == 30
        assert bundle.filler_words.per_minute == pytest.approx(8.0)

    def test_text_only_duration_from_synthesized_segments(self, engine):
        bundle = engine.calculate_call_metrics("Hello there. How are you today. Fine thanks.", [], None, 0)
        assert bundle.duration_seconds == 30
        assert (bundle.talk_ratio.agent, bundle.talk_ratio.customer) == (50.0, 50.0)
        assert bundle.speaking_speed.overall == pytest.approx(16.0)

    def test_word_level_metrics(self, engine):
        call = _timed_call()
        bundle = engine.calculate_call_metrics(
            call["text"], call["segments"], call["words"], call["duration_seconds"],
        )
        assert bundle.interruptions.count == 1
        assert bundle.interruptions.instances[0].interrupting_word == "Yes"
        assert bundle.pauses.count == 0
        assert bundle.emphasis.words == ["please"]
        assert bundle.speaking_speed.overall == pytest.approx(60.0)
        assert bundle.speaking_speed.agent == pytest.approx(2 / (1.1 / 60))
        assert bundle.speaking_speed.customer == pytest.approx(2 / (2.9 / 60))
        assert bundle.confidence == pytest.approx(1.0)

    def test_talk_ratio_always_sums_to_100(self, engine):
        call = _timed_call()
        for text, segments in [(GREAT_CALL, []), (call["text"], call["segments"])]:
            ratio = engine.calculate_call_metrics(text, segments, None, 0).talk_ratio
            assert ratio.agent + ratio.customer == pytest.approx(100.0, abs=1e-6)

    def test_keywords_bounded(self, engine):
        text = " ".join(f"keyword{i} keyword{i}" for i in range(20))
        bundle = engine.calculate_call_metrics(text, None, None, 0)
        assert len(bundle.keywords) == 10


# ── Memoization ──

class TestMemoization:
    def test_same_key_returns_cached_bundle(self, engine):
        first = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        second = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        assert first is second

    def test_key_ignores_segments(self, engine):
        first = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        other_segments = [Segment(start=0, end=10, text=GREAT_CALL, speaker=Speaker.CUSTOMER)]
        assert engine.calculate_call_metrics(GREAT_CALL, other_segments, None, 40) is first

    def test_duration_is_part_of_key(self, engine):
        first = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        assert engine.calculate_call_metrics(GREAT_CALL, [], None, 41) is not first

    def test_call_score_jitter_memoized(self):
        jitter = Mock(return_value=1)
        engine = TranscriptMetricsEngine(jitter=jitter)
        scores = {engine.generate_call_score(GREAT_CALL, "positive") for _ in range(5)}
        assert scores == {88}
        assert jitter.call_count == 1

    def test_clear_caches_forces_recompute(self):
        jitter = Mock(return_value=0)
        engine = TranscriptMetricsEngine(jitter=jitter)
        engine.generate_call_score(GREAT_CALL, SentimentLabel.POSITIVE)
        engine.generate_call_score(GREAT_CALL, SentimentLabel.POSITIVE)
        assert jitter.call_count == 1

        engine.clear_caches()
        engine.generate_call_score(GREAT_CALL, SentimentLabel.POSITIVE)
        assert jitter.call_count == 2

    def test_clear_caches_recomputes_metrics(self):
        jitter = Mock(return_value=0)
        engine = TranscriptMetricsEngine(jitter=jitter)
        first = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        engine.clear_caches()
        second = engine.calculate_call_metrics(GREAT_CALL, [], None, 40)
        assert first is not second
        assert first == second
        assert jitter.call_count == 2

    def test_sentiment_stable(self, engine):
        labels = {engine.analyze_sentiment("I am disappointed with this problem") for _ in range(3)}
        assert labels == {SentimentLabel.NEGATIVE}

    def test_keywords_copy_returned(self, engine):
        keywords = engine.extract_keywords("pricing pricing onboarding")
        keywords.append("tampered")
        assert engine.extract_keywords("pricing pricing onboarding") == ["pricing", "onboarding"]

    def test_concurrent_callers_share_one_bundle(self, engine):
        with ThreadPoolExecutor(max_workers=8) as pool:
            bundles = list(pool.map(
                lambda _: engine.calculate_call_metrics(GREAT_CALL, [], None, 40), range(32),
            ))
        assert all(b is bundles[0] for b in bundles)


# ── Input Validation ──

class TestInvalidInput:
    def test_none_text(self, engine):
        with pytest.raises(InvalidInputError):
            engine.calculate_call_metrics(None, [], None, 40)

    def test_none_text_sentiment(self, engine):
        with pytest.raises(InvalidInputError):
            engine.analyze_sentiment(None)

    def test_negative_duration(self, engine):
        with pytest.raises(InvalidInputError):
            engine.calculate_call_metrics(GREAT_CALL, [], None, -1)

    def test_bad_segment(self, engine):
        with pytest.raises(InvalidInputError):
            engine.calculate_call_metrics(GREAT_CALL, [{"start": 5, "end": 1}], None, 0)

    def test_bad_word(self, engine):
        with pytest.raises(InvalidInputError):
            engine.calculate_call_metrics(GREAT_CALL, [], [{"word": "hi", "start": 2, "end": 1}], 0)

    def test_unknown_sentiment(self, engine):
        with pytest.raises(InvalidInputError):
            engine.generate_call_score(GREAT_CALL, "ecstatic")

    def test_is_value_error(self):
        assert issubclass(InvalidInputError, ValueError)

    def test_missing_duration_treated_as_unknown(self, engine):
        bundle = engine.calculate_call_metrics(GREAT_CALL, [], None, None)
        assert bundle.duration_seconds == 30


# ── Speaker Splitting ──

class TestSplitBySpeaker:
    def test_empty_transcript(self, engine):
        result = engine.split_by_speaker("", [], 2)
        assert len(result) == 1
        assert (result[0].start, result[0].end, result[0].speaker) == (0, 30, Speaker.AGENT)

    def test_dict_segments(self, engine):
        segments = [{"id": 1, "start": 0, "end": 2, "text": "hi"}, {"id": 2, "start": 2, "end": 3, "text": "yo"}]
        result = engine.split_by_speaker("hi yo", segments)
        assert [s.speaker for s in result] == [Speaker.AGENT, Speaker.CUSTOMER]


# ── Transcript Analysis ──

class TestAnalyzeTranscript:
    def test_short_transcript_skipped(self, engine):
        result = engine.analyze_transcript(Transcript(text="Hi"))
        assert isinstance(result, CallAnalysis)
        assert result.skipped is True
        assert result.call_score == 0
        assert result.sentiment == SentimentLabel.NEUTRAL
        assert result.keywords == ["skipped_short_transcript"]
        assert result.metrics is None

    def test_full_analysis(self, engine):
        result = engine.analyze_transcript(Transcript(text=GREAT_CALL, duration_seconds=40))
        assert result.skipped is False
        assert result.sentiment == SentimentLabel.POSITIVE
        assert result.sentiment_score == 0.85
        assert result.metrics is not None
        assert result.call_score == result.metrics.call_score
        assert result.keywords == result.metrics.keywords

    def test_dict_transcript(self, engine):
        result = engine.analyze_transcript(_timed_call())
        assert result.metrics.interruptions.count == 1

    def test_invalid_transcript(self, engine):
        with pytest.raises(InvalidInputError):
            engine.analyze_transcript({"text": None})
