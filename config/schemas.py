"""Call metrics pydantic schemas — transcript input and metrics bundle output."""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


class InvalidInputError(ValueError):
    """Raised when a transcript is structurally invalid (e.g. text is None)."""


class Speaker(str, Enum):
    AGENT = "Agent"
    CUSTOMER = "Customer"


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


_AGENT_LABELS = {"agent", "speaker_00", "speaker 0", "spk_0"}
_CUSTOMER_LABELS = {"customer", "speaker_01", "speaker 1", "spk_1"}


def normalize_speaker(value):
    """Map diarizer labels ('agent', 'SPEAKER_01', ...) onto Speaker. Blank means unset."""
    if value is None or isinstance(value, Speaker):
        return value
    label = str(value).strip().lower()
    if not label:
        return None
    if label in _AGENT_LABELS:
        return Speaker.AGENT
    if label in _CUSTOMER_LABELS:
        return Speaker.CUSTOMER
    raise ValueError(f"unknown speaker label '{value}' (expected Agent or Customer)")


SpeakerLabel = Annotated[Optional[Speaker], BeforeValidator(normalize_speaker)]


# ── TRANSCRIPT INPUT ──

class Segment(BaseModel):
    """A time-bounded, speaker-attributed span of transcript text."""
    id: int = 0
    start: float = Field(ge=0, description="Segment start in seconds")
    end: float = Field(ge=0, description="Segment end in seconds")
    text: str = ""
    speaker: SpeakerLabel = None
    confidence: float = Field(default=0.9, ge=0, le=1)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.end < self.start:
            raise ValueError(f"segment {self.id} ends ({self.end}) before it starts ({self.start})")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start


class WordTimestamp(BaseModel):
    """A single transcribed word with timing and an optional speaker."""
    word: str
    start: float = Field(ge=0)
    end: float = Field(ge=0)
    speaker: SpeakerLabel = None

    @model_validator(mode="after")
    def check_bounds(self):
        if self.end < self.start:
            raise ValueError(f"word '{self.word}' ends ({self.end}) before it starts ({self.start})")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start


class Transcript(BaseModel):
    """Raw transcript handed to the engine by the upload or recording pipeline."""
    text: str
    segments: list[Segment] = Field(default_factory=list)
    words: list[WordTimestamp] = Field(default_factory=list)
    duration_seconds: float = Field(default=0.0, ge=0)


# ── METRIC COMPONENTS ──

class TalkRatio(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent: float = Field(description="% of talk time spoken by the agent")
    customer: float = Field(description="% of talk time spoken by the customer")


class SpeakingSpeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: float = Field(description="Words per minute across the whole call")
    agent: float
    customer: float


class FillerWordStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    per_minute: float = 0.0
    breakdown: dict[str, int] = Field(default_factory=dict, description="Only terms that occurred")


class ObjectionStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    instances: list[str] = Field(
        default_factory=list,
        description='Evidence strings: "<context>" (contains "<phrase>")',
    )


class Interruption(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float = Field(description="End time of the interrupted word")
    interrupted_speaker: Speaker
    interrupting_speaker: Speaker
    interrupted_word: str
    interrupting_word: str


class InterruptionStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    instances: list[Interruption] = Field(default_factory=list)


class LongPause(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: float
    end: float
    duration: float
    prev_word: str
    next_word: str
    speaker: str = Field(description="'Agent', 'Customer' or 'unknown'")


class PauseStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    avg_duration: float = 0.0
    long_pauses: list[LongPause] = Field(default_factory=list)


class EmphasisStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    words: list[str] = Field(default_factory=list)
    count: int = 0


# ── MASTER OUTPUT ──

class MetricsBundle(BaseModel):
    """Sales-coaching metrics for one (transcript, duration) combination. Read-only."""
    model_config = ConfigDict(frozen=True)

    duration_seconds: float = Field(description="Effective duration used for per-minute rates")
    word_count: int
    sentiment: SentimentLabel
    keywords: list[str] = Field(max_length=10)
    call_score: int = Field(ge=0, le=100)
    talk_ratio: TalkRatio
    speaking_speed: SpeakingSpeed
    filler_words: FillerWordStats
    objections: ObjectionStats
    customer_engagement: int = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=1)

    # Word-level metrics (empty when no word timestamps are supplied)
    interruptions: InterruptionStats = Field(default_factory=InterruptionStats)
    pauses: PauseStats = Field(default_factory=PauseStats)
    emphasis: EmphasisStats = Field(default_factory=EmphasisStats)


class CallAnalysis(BaseModel):
    """Upload-pipeline view of one analyzed call."""
    model_config = ConfigDict(frozen=True)

    sentiment: SentimentLabel
    sentiment_score: float = Field(ge=0, le=1)
    keywords: list[str]
    call_score: int = Field(ge=0, le=100)
    metrics: Optional[MetricsBundle] = None
    skipped: bool = Field(default=False, description="True if the text was too short to analyze")


# ── BATCH SUMMARY ──

class CallOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: str
    count: int
    percentage: int


class CallMetricsSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome_stats: list[CallOutcome]
    sentiment_breakdown: dict[str, int]
    average_call_score: float
