"""
Types for attempt aggregation and progress dashboards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

import pandas as pd


@dataclass(frozen=True)
class TopicStatSnapshot:
    """
    Running aggregates for one (user, subject, topic).
    """
    total_attempts: int = 0
    total_correct: int = 0
    recent_attempts: int = 0
    recent_correct: int = 0
    avg_time_seconds: Optional[float] = None
    mastery_score: Optional[float] = None
    last_attempted_at: Optional[datetime] = None


@dataclass(frozen=True)
class DailyStatSnapshot:
    """
    Per-user totals for one UTC day.
    """
    stat_date: date
    items_studied: int = 0
    items_correct: int = 0
    items_incorrect: int = 0
    new_items_seen: int = 0
    reviews_completed: int = 0
    total_seconds: float = 0.0
    math_correct: int = 0
    math_total: int = 0
    reading_correct: int = 0
    reading_total: int = 0


@dataclass(frozen=True)
class ProgressSummary:
    """
    Precomputed metrics and series for a learner's progress page.
    """
    total_attempts: int
    overall_accuracy: Optional[float]
    items_seen: int
    due_now: int
    mean_retrievability: Optional[float]
    daily_accuracy: pd.Series
    daily_attempts: pd.Series
    topic_mastery: pd.DataFrame
