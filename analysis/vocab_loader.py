"""Lexicon tables loaded from data/vocab/{lang}.json.

Each language file holds the word lists every analyzer consumes:
positive/negative sentiment words, stop words, filler words, objection
phrases, emphasis indicators and good-service phrases. Files are read once
per (directory, language) and cached; a missing language yields empty tables.
"""

import json
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict

from config.settings import DEFAULT_VOCAB_DIR

_cache: dict[tuple[str, str], dict] = {}


class Lexicon(BaseModel):
    """Immutable bundle of the lexicon tables for one language."""
    model_config = ConfigDict(frozen=True)

    positive_words: tuple[str, ...] = ()
    negative_words: tuple[str, ...] = ()
    stop_words: frozenset[str] = frozenset()
    filler_words: tuple[str, ...] = ()
    objection_phrases: tuple[str, ...] = ()
    emphasis_indicators: frozenset[str] = frozenset()
    good_service_phrases: tuple[str, ...] = ()


def _load(lang: str, vocab_dir: Path | None = None) -> dict:
    vocab_dir = Path(vocab_dir or DEFAULT_VOCAB_DIR)
    key = (str(vocab_dir), lang)
    if key in _cache:
        return _cache[key]

    path = vocab_dir / f"{lang}.json"
    if not path.exists():
        logger.warning(f"No vocab file for '{lang}' at {path} — using empty lexicon")
        _cache[key] = {}
        return _cache[key]

    with open(path, encoding="utf-8") as f:
        _cache[key] = json.load(f)
    logger.debug(f"Loaded vocab '{lang}' from {path} ({len(_cache[key])} tables)")
    return _cache[key]


def has_vocab(lang: str, vocab_dir: Path | None = None) -> bool:
    return (Path(vocab_dir or DEFAULT_VOCAB_DIR) / f"{lang}.json").exists()


def clear_cache() -> None:
    _cache.clear()


def get_positive_words(lang: str = "en", vocab_dir: Path | None = None) -> list[str]:
    return list(_load(lang, vocab_dir).get("positive_words", []))


def get_negative_words(lang: str = "en", vocab_dir: Path | None = None) -> list[str]:
    return list(_load(lang, vocab_dir).get("negative_words", []))


def get_stop_words(lang: str = "en", vocab_dir: Path | None = None) -> set[str]:
    return set(_load(lang, vocab_dir).get("stop_words", []))


def get_filler_words(lang: str = "en", vocab_dir: Path | None = None) -> list[str]:
    return list(_load(lang, vocab_dir).get("filler_words", []))


def get_objection_phrases(lang: str = "en", vocab_dir: Path | None = None) -> list[str]:
    return list(_load(lang, vocab_dir).get("objection_phrases", []))


def get_emphasis_indicators(lang: str = "en", vocab_dir: Path | None = None) -> set[str]:
    return set(_load(lang, vocab_dir).get("emphasis_indicators", []))


def get_good_service_phrases(lang: str = "en", vocab_dir: Path | None = None) -> list[str]:
    return list(_load(lang, vocab_dir).get("good_service_phrases", []))


def load_lexicon(lang: str = "en", vocab_dir: Path | None = None) -> Lexicon:
    """Assemble every table for `lang` into one Lexicon."""
    return Lexicon(
        positive_words=tuple(get_positive_words(lang, vocab_dir)),
        negative_words=tuple(get_negative_words(lang, vocab_dir)),
        stop_words=frozenset(get_stop_words(lang, vocab_dir)),
        filler_words=tuple(get_filler_words(lang, vocab_dir)),
        objection_phrases=tuple(get_objection_phrases(lang, vocab_dir)),
        emphasis_indicators=frozenset(get_emphasis_indicators(lang, vocab_dir)),
        good_service_phrases=tuple(get_good_service_phrases(lang, vocab_dir)),
    )
