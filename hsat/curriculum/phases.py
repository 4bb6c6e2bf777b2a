"""
Week-based topic weighting.

Early weeks favour fundamentals, the middle of the plan weights every topic
equally, and the final stretch favours applied, multi-step topics.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from hsat.curriculum.constants import (
    BALANCED_LAST_WEEK,
    BALANCED_PHASE_WEIGHT,
    DAYS_PER_WEEK,
    FUNDAMENTALS_LAST_WEEK,
    MATCHING_PHASE_WEIGHT,
    OFF_PHASE_WEIGHT,
    TOPIC_PHASES,
    WeekPhase,
)
from hsat.fsrs.memory_state import ensure_utc, utc_now


def calculate_week_number(study_start: Union[date, datetime], now: Optional[datetime] = None) -> int:
    """
    1-based week of the study plan.

    Week 1 covers the first seven days; a start date in the future still
    counts as week 1. A plain date starts at midnight UTC.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    elapsed = now - _start_instant(study_start)
    weeks = math.floor(elapsed / timedelta(days=DAYS_PER_WEEK))
    return max(1, weeks + 1)


def phase_for_week(week_number: int) -> WeekPhase:
    """Weeks 1-4 fundamentals, 5-20 balanced, 21+ applications."""
    if week_number <= FUNDAMENTALS_LAST_WEEK:
        return WeekPhase.FUNDAMENTALS
    if week_number <= BALANCED_LAST_WEEK:
        return WeekPhase.BALANCED
    return WeekPhase.APPLICATIONS


def current_phase(study_start: Union[date, datetime], now: Optional[datetime] = None) -> WeekPhase:
    return phase_for_week(calculate_week_number(study_start, now))


def topic_phase(topic: str) -> WeekPhase:
    """Phase a topic belongs to; unknown topics count as balanced."""
    return TOPIC_PHASES.get(topic, WeekPhase.BALANCED)


def topic_weight(topic: str, phase: Union[WeekPhase, str]) -> float:
    """
    Selection multiplier for a topic during the given phase.

    Returns:
        2.0 when the topic matches the phase, 1.0 for anything during the
        balanced phase, 0.5 for off-phase topics otherwise
    """
    phase = WeekPhase(phase)
    if topic_phase(topic) == phase:
        return MATCHING_PHASE_WEIGHT
    if phase == WeekPhase.BALANCED:
        return BALANCED_PHASE_WEIGHT
    return OFF_PHASE_WEIGHT


def _start_instant(study_start: Union[date, datetime]) -> datetime:
    if isinstance(study_start, datetime):
        return ensure_utc(study_start)
    return datetime.combine(study_start, time.min, tzinfo=timezone.utc)
