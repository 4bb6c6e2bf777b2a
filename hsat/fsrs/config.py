"""
Scheduler configuration.

One SchedulerConfig is built at process start and passed explicitly to
Scheduler and AttemptRecorder. Nothing in the package reads it from a global.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

from hsat.fsrs.constants import DEFAULT_WEIGHTS


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Global, immutable memory-model settings.

    Attributes:
        request_retention: Target recall probability when a card comes due
        maximum_interval: Longest interval ever scheduled, in days
        enable_fuzz: Perturb long intervals to avoid due-date clustering
        enable_short_term: Use sub-day learning/relearning steps
        weights: FSRS model weights
        learning_steps: Step durations for new/learning cards
        relearning_steps: Step durations for lapsed cards
    """
    request_retention: float = 0.90
    maximum_interval: int = 21
    enable_fuzz: bool = False
    enable_short_term: bool = True
    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    learning_steps: tuple[timedelta, ...] = (timedelta(minutes=1), timedelta(minutes=10))
    relearning_steps: tuple[timedelta, ...] = (timedelta(minutes=10),)

    def __post_init__(self):
        if not 0.0 < self.request_retention < 1.0:
            raise ValueError(
                f"request_retention must be in (0, 1), got {self.request_retention}"
            )
        if self.maximum_interval < 1:
            raise ValueError(
                f"maximum_interval must be at least 1 day, got {self.maximum_interval}"
            )
        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(
                f"expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}"
            )

    @classmethod
    def from_env(cls) -> "SchedulerConfig":
        """
        Build a config from environment variables (and a .env file if present).

        Recognized variables:
            HSAT_REQUEST_RETENTION  float, default 0.90
            HSAT_MAXIMUM_INTERVAL   int, default 21
            HSAT_ENABLE_FUZZ        bool, default false
            HSAT_ENABLE_SHORT_TERM  bool, default true
        """
        load_dotenv()
        return cls(
            request_retention=float(os.getenv("HSAT_REQUEST_RETENTION", "0.90")),
            maximum_interval=int(os.getenv("HSAT_MAXIMUM_INTERVAL", "21")),
            enable_fuzz=_env_flag("HSAT_ENABLE_FUZZ", False),
            enable_short_term=_env_flag("HSAT_ENABLE_SHORT_TERM", True),
        )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")
