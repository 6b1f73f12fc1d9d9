"""Lexical Sentiment Classification — positive/neutral/negative by word counts.

Counts whole-word, case-insensitive matches against a positive and a negative
word list. The 1.5x margin biases the decision toward neutral so short
transcripts don't flip between labels on a single word.
"""

import re
from typing import Iterable

from config.schemas import SentimentLabel

# A side must outweigh the other by this factor to win
SENTIMENT_MARGIN = 1.5

# Score reported to the upload pipeline for each label
SENTIMENT_SCORES = {
    SentimentLabel.POSITIVE: 0.85,
    SentimentLabel.NEGATIVE: 0.15,
    SentimentLabel.NEUTRAL: 0.5,
}


def count_whole_word(term: str, text: str) -> int:
    """Count whole-word, case-insensitive occurrences of `term` in `text`."""
    return len(re.findall(rf"\b{re.escape(term)}\b", text, re.IGNORECASE))


def count_terms(terms: Iterable[str], text: str) -> int:
    lower = text.lower()
    return sum(count_whole_word(term, lower) for term in terms)


def classify_sentiment(
    text: str,
    positive_words: Iterable[str],
    negative_words: Iterable[str],
) -> SentimentLabel:
    """Classify text as positive/neutral/negative.

    Args:
        text: Transcript text (empty text is neutral)
        positive_words: Words counted toward positive sentiment
        negative_words: Words counted toward negative sentiment

    Returns:
        POSITIVE if positive > negative * 1.5, NEGATIVE if negative > positive * 1.5,
        NEUTRAL otherwise.
    """
    positive = count_terms(positive_words, text)
    negative = count_terms(negative_words, text)

    if positive > negative * SENTIMENT_MARGIN:
        return SentimentLabel.POSITIVE
    if negative > positive * SENTIMENT_MARGIN:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


def sentiment_score(label: SentimentLabel) -> float:
    return SENTIMENT_SCORES[label]
