"""Environment-driven settings for the call metrics engine."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_VOCAB_DIR = Path(__file__).resolve().parent.parent / "data" / "vocab"


class Settings(BaseModel):
    vocab_dir: Path = DEFAULT_VOCAB_DIR
    lang: str = "en"
    jitter_bound: int = Field(default=3, ge=0, description="Call score jitter is drawn from [-bound, +bound]")
    metrics_key_prefix: int = Field(default=100, gt=0, description="Chars of text used in the metrics cache key")
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from CALL_METRICS_* / CALL_SCORE_JITTER / LOG_LEVEL env vars."""
    return Settings(
        vocab_dir=Path(os.getenv("CALL_METRICS_VOCAB_DIR", str(DEFAULT_VOCAB_DIR))),
        lang=os.getenv("CALL_METRICS_LANG", "en"),
        jitter_bound=int(os.getenv("CALL_SCORE_JITTER", "3")),
        metrics_key_prefix=int(os.getenv("CALL_METRICS_KEY_PREFIX", "100")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink at LOG_LEVEL."""
    logger.remove()
    logger.add(sys.stderr, level=(level or load_settings().log_level).upper())
