"""Batch summaries over analyzed calls — outcome stats and daily call volume.

Accepts both CallAnalysis objects and raw dicts (e.g. rows loaded from storage
with 'sentiment' and 'call_score' keys).
"""

from datetime import date, datetime, timedelta
from typing import Iterable

from loguru import logger

from config.schemas import (
    CallAnalysis,
    CallMetricsSummary,
    CallOutcome,
    InvalidInputError,
    SentimentLabel,
)

# Sentiment → sales outcome bucket
OUTCOME_BY_SENTIMENT = {
    SentimentLabel.POSITIVE: "Qualified Leads",
    SentimentLabel.NEUTRAL: "Follow Up Required",
    SentimentLabel.NEGATIVE: "No Interest",
}


def _to_dict(record) -> dict:
    if isinstance(record, CallAnalysis):
        return record.model_dump()
    return record


def _percentage(count: int, total: int) -> int:
    return round(count / total * 100) if total > 0 else 0


def summarize_calls(records: Iterable[CallAnalysis | dict]) -> CallMetricsSummary:
    """Outcome buckets, sentiment counts and average call score for a batch.

    Missing sentiment counts as neutral. Missing or zero scores add nothing
    to the total but the call still counts toward the average.
    """
    counts = {label: 0 for label in SentimentLabel}
    total_score = 0.0
    total = 0

    for record in records:
        data = _to_dict(record)
        raw = data.get("sentiment") or SentimentLabel.NEUTRAL
        try:
            sentiment = SentimentLabel(raw)
        except ValueError as e:
            logger.warning(f"Rejected call record: unknown sentiment '{raw}'")
            raise InvalidInputError(f"unknown sentiment '{raw}'") from e
        counts[sentiment] += 1
        total_score += data.get("call_score") or 0
        total += 1

    outcome_stats = [
        CallOutcome(outcome=name, count=counts[label], percentage=_percentage(counts[label], total))
        for label, name in OUTCOME_BY_SENTIMENT.items()
    ]
    outcome_stats.append(CallOutcome(outcome="Total", count=total, percentage=100))

    summary = CallMetricsSummary(
        outcome_stats=outcome_stats,
        sentiment_breakdown={label.value: counts[label] for label in SentimentLabel},
        average_call_score=total_score / total if total > 0 else 0.0,
    )
    logger.info(
        f"Summarized {total} calls: "
        + ", ".join(f"{o.outcome}={o.count}" for o in outcome_stats[:-1])
        + f", avg score={summary.average_call_score:.1f}"
    )
    return summary


def daily_call_distribution(
    timestamps: Iterable[str | datetime | date | None],
    days: int = 7,
    today: date | None = None,
) -> list[dict]:
    """Calls per day for the last `days` days (oldest first), ending today.

    Timestamps may be ISO strings, datetimes or dates; ones outside the window
    or missing are ignored.
    """
    today = today or date.today()
    window = {(today - timedelta(days=i)).isoformat(): 0 for i in range(days - 1, -1, -1)}

    for ts in timestamps:
        if not ts:
            continue
        day = ts.isoformat()[:10] if isinstance(ts, (datetime, date)) else str(ts)[:10]
        if day in window:
            window[day] += 1

    return [{"name": day, "calls": count} for day, count in window.items()]
