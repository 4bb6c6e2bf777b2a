"""
Pure updates of the per-topic and per-day aggregates after one attempt.

Nothing here touches the database; the repository module loads and stores
the snapshots.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Union

from hsat.analytics.constants import MASTERY_MIN_ATTEMPTS, RECENT_WINDOW_DAYS
from hsat.analytics.types import DailyStatSnapshot, TopicStatSnapshot
from hsat.fsrs.memory_state import ensure_utc
from hsat.schemas import Subject


def mastery_score(total_correct: int, total_attempts: int) -> Optional[float]:
    """
    Percentage correct, or None while there are too few attempts to tell.
    """
    if total_attempts < MASTERY_MIN_ATTEMPTS:
        return None
    return total_correct / total_attempts * 100.0


def update_topic_stat(
    previous: Optional[TopicStatSnapshot],
    is_correct: bool,
    seconds_spent: float,
    now: datetime
) -> TopicStatSnapshot:
    """
    Fold one attempt into a topic's running aggregates.

    The average time is updated incrementally:
        new_avg = (old_avg * (n - 1) + seconds_spent) / n

    Recent counters restart when the previous attempt is older than the
    recent window.

    Args:
        previous: Current aggregates (None for a topic never attempted)
        is_correct: Whether the answer was correct
        seconds_spent: Time taken on the item
        now: Instant of the attempt

    Returns:
        New TopicStatSnapshot (previous is not modified)
    """
    now = ensure_utc(now)
    previous = previous or TopicStatSnapshot()
    correct = 1 if is_correct else 0

    total_attempts = previous.total_attempts + 1
    total_correct = previous.total_correct + correct

    recent_attempts = previous.recent_attempts
    recent_correct = previous.recent_correct
    if _outside_recent_window(previous.last_attempted_at, now):
        recent_attempts = 0
        recent_correct = 0

    prev_avg = previous.avg_time_seconds if previous.avg_time_seconds is not None else seconds_spent
    avg_time = (prev_avg * (total_attempts - 1) + seconds_spent) / total_attempts

    return TopicStatSnapshot(
        total_attempts=total_attempts,
        total_correct=total_correct,
        recent_attempts=recent_attempts + 1,
        recent_correct=recent_correct + correct,
        avg_time_seconds=avg_time,
        mastery_score=mastery_score(total_correct, total_attempts),
        last_attempted_at=now,
    )


def update_daily_stat(
    previous: Optional[DailyStatSnapshot],
    subject: Union[Subject, str],
    is_correct: bool,
    seconds_spent: float,
    was_new: bool,
    stat_date: date
) -> DailyStatSnapshot:
    """
    Fold one attempt into the learner's totals for stat_date.

    was_new marks the first attempt ever on the item; every other attempt
    counts as a completed review.
    """
    stats = previous or DailyStatSnapshot(stat_date=stat_date)
    subject = Subject(subject)
    correct = 1 if is_correct else 0

    stats = replace(
        stats,
        items_studied=stats.items_studied + 1,
        items_correct=stats.items_correct + correct,
        items_incorrect=stats.items_incorrect + (1 - correct),
        new_items_seen=stats.new_items_seen + (1 if was_new else 0),
        reviews_completed=stats.reviews_completed + (0 if was_new else 1),
        total_seconds=stats.total_seconds + seconds_spent,
    )

    if subject == Subject.MATH:
        return replace(
            stats,
            math_correct=stats.math_correct + correct,
            math_total=stats.math_total + 1,
        )
    return replace(
        stats,
        reading_correct=stats.reading_correct + correct,
        reading_total=stats.reading_total + 1,
    )


def _outside_recent_window(last_attempted_at: Optional[datetime], now: datetime) -> bool:
    if last_attempted_at is None:
        return False
    return now - ensure_utc(last_attempted_at) > timedelta(days=RECENT_WINDOW_DAYS)
