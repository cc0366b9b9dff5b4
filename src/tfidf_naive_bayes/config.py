"""Run-time defaults, overridable from the environment or a ``.env`` file.

Recognized variables:

- ``TFIDF_NB_SEED`` -- shuffle seed for train/test splits (default 42)
- ``TFIDF_NB_TEST_RATIO`` -- fraction held out for testing (default 0.2)
- ``TFIDF_NB_TRAIN_FRACTION`` -- fraction of a training file used in
  holdout mode (default 0.8)
- ``TFIDF_NB_MIN_PROBABILITY`` -- confidence threshold for filtered
  predictions (default 0.7)
- ``TFIDF_NB_LOG_LEVEL`` -- logging level for the CLI (default WARNING)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional

from dotenv import find_dotenv, load_dotenv

from .models import InvalidInputError

ENV_PREFIX = "TFIDF_NB_"


@dataclass(frozen=True)
class Settings:
    """Defaults for splitting, filtering and logging."""

    seed: int = 42
    test_ratio: float = 0.2
    train_fraction: float = 0.8
    min_probability: float = 0.7
    log_level: str = "WARNING"


def _read(name: str, parse: Callable[[str], object], default: object) -> object:
    key = ENV_PREFIX + name
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise InvalidInputError(f"Invalid value for {key}: {raw!r}") from exc


def _level(raw: str) -> str:
    level = raw.upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(level)
    return level


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Load ``.env`` (without overriding the real environment) and build Settings."""
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))
    defaults = Settings()
    return Settings(
        seed=_read("SEED", int, defaults.seed),
        test_ratio=_read("TEST_RATIO", float, defaults.test_ratio),
        train_fraction=_read("TRAIN_FRACTION", float, defaults.train_fraction),
        min_probability=_read("MIN_PROBABILITY", float, defaults.min_probability),
        log_level=_read("LOG_LEVEL", _level, defaults.log_level),
    )
