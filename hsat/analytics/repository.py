"""
Load and store aggregate stat rows.

Loads create the zero row first and then lock it, so two concurrent attempts
on the same topic or day always serialize on one row and cannot lose an
increment.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date

from sqlalchemy.orm import Session

from hsat.analytics.types import DailyStatSnapshot, TopicStatSnapshot
from hsat.database import insert_if_absent
from hsat.fsrs.memory_state import format_timestamp, parse_timestamp
from hsat.models import DailyStat, TopicStat


def load_topic_stat(session: Session, user_id: str, subject: str, topic: str) -> TopicStatSnapshot:
    """
    Locked read of a topic's aggregates (all zero for a topic never attempted).
    """
    insert_if_absent(session, TopicStat, user_id=user_id, subject=subject, topic=topic)
    row = (
        session.query(TopicStat)
        .filter(
            TopicStat.user_id == user_id,
            TopicStat.subject == subject,
            TopicStat.topic == topic,
        )
        .with_for_update()
        .populate_existing()
        .one()
    )

    return TopicStatSnapshot(
        total_attempts=row.total_attempts,
        total_correct=row.total_correct,
        recent_attempts=row.recent_attempts,
        recent_correct=row.recent_correct,
        avg_time_seconds=row.avg_time_seconds,
        mastery_score=row.mastery_score,
        last_attempted_at=parse_timestamp(row.last_attempted_at) if row.last_attempted_at else None,
    )


def save_topic_stat(session: Session, user_id: str, subject: str, topic: str, stats: TopicStatSnapshot):
    row = session.get(TopicStat, (user_id, subject, topic))
    if row is None:
        row = TopicStat(user_id=user_id, subject=subject, topic=topic)
        session.add(row)

    row.total_attempts = stats.total_attempts
    row.total_correct = stats.total_correct
    row.recent_attempts = stats.recent_attempts
    row.recent_correct = stats.recent_correct
    row.avg_time_seconds = stats.avg_time_seconds
    row.mastery_score = stats.mastery_score
    row.last_attempted_at = (
        format_timestamp(stats.last_attempted_at) if stats.last_attempted_at else None
    )
    session.flush()


def load_daily_stat(session: Session, user_id: str, stat_date: date) -> DailyStatSnapshot:
    """
    Locked read of one day's totals (all zero for a day without attempts).
    """
    insert_if_absent(session, DailyStat, user_id=user_id, stat_date=stat_date)
    row = (
        session.query(DailyStat)
        .filter(DailyStat.user_id == user_id, DailyStat.stat_date == stat_date)
        .with_for_update()
        .populate_existing()
        .one()
    )

    return DailyStatSnapshot(
        stat_date=row.stat_date,
        items_studied=row.items_studied,
        items_correct=row.items_correct,
        items_incorrect=row.items_incorrect,
        new_items_seen=row.new_items_seen,
        reviews_completed=row.reviews_completed,
        total_seconds=row.total_seconds,
        math_correct=row.math_correct,
        math_total=row.math_total,
        reading_correct=row.reading_correct,
        reading_total=row.reading_total,
    )


def save_daily_stat(session: Session, user_id: str, stats: DailyStatSnapshot):
    row = session.get(DailyStat, (user_id, stats.stat_date))
    if row is None:
        row = DailyStat(user_id=user_id, stat_date=stats.stat_date)
        session.add(row)

    for field, value in asdict(stats).items():
        setattr(row, field, value)
    session.flush()
