"""
Memory State - Card State and Retrievability

Defines the in-memory card representation used by the memory model and the
time helpers around it.

Key concepts:
- Stability (S): Days until recall probability decays to the retention target
- Difficulty (D): How hard the item is to learn (1-10 scale)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from hsat.fsrs.constants import DECAY, FACTOR, S_MAX, S_MIN, State


Clock = Callable[[], datetime]

SECONDS_PER_DAY = 86400.0


@dataclass
class Card:
    """
    Scheduling state for a single (user, item) pair.

    elapsed_days and scheduled_days are cache fields: the scheduler
    recomputes them on every review, persisted values are only historical.
    """
    due: datetime
    stability: float  # S, in days
    difficulty: float  # D, range 1-10 (0 until first review)

    elapsed_days: float  # Days between the last two reviews
    scheduled_days: int  # Interval chosen at the last review (0 for sub-day steps)
    learning_steps: int  # Index of the current (re)learning step

    reps: int  # Non-failure reviews
    lapses: int  # Failures while in review/relearning
    state: State
    last_review: Optional[datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse a stored ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing 'Z'; naive values are taken as UTC.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime) -> str:
    """
    Canonical stored form: UTC, microsecond precision, '+00:00' offset.

    Fixed width, so stored timestamps sort lexicographically by instant.
    """
    return ensure_utc(value).isoformat(timespec="microseconds")


def create_empty_card(now: Optional[datetime] = None) -> Card:
    """
    Card for an item that has never been reviewed: due immediately.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    return Card(
        due=now,
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0.0,
        scheduled_days=0,
        learning_steps=0,
        reps=0,
        lapses=0,
        state=State.NEW,
        last_review=None,
    )


def days_between(start: Optional[datetime], end: datetime) -> float:
    """
    Fractional days from start to end, 0 if start is missing or in the future.
    """
    if start is None:
        return 0.0
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def calculate_retrievability(stability: float, elapsed_days: float) -> float:
    """
    Probability of recall after elapsed_days.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    - Immediately after review: R = 1.0
    - At t = S: R = 0.9
    - Decays slowly (power law) afterwards

    Args:
        stability: Current stability in days
        elapsed_days: Time since the last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if not math.isfinite(elapsed_days) or elapsed_days <= 0:
        return 1.0
    stability = safe_stability(stability)
    return math.pow(1.0 + FACTOR * elapsed_days / stability, DECAY)


def safe_stability(stability: float) -> float:
    """Stability usable in a reciprocal or power: within [S_MIN, S_MAX]."""
    if math.isnan(stability) or stability < S_MIN:
        return S_MIN
    return min(stability, S_MAX)
