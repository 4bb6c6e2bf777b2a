from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from hsat.analytics.aggregation import update_topic_stat
from hsat.analytics.repository import (
    load_daily_stat,
    load_topic_stat,
    save_daily_stat,
    save_topic_stat,
)
from hsat.analytics.types import DailyStatSnapshot, TopicStatSnapshot
from hsat.attempts import AttemptRecorder
from hsat.database import session_scope
from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.scheduling import Scheduler
from hsat.models import DailyStat, Item, TopicStat

from tests.conftest import T0


def test_load_topic_stat_starts_from_zero_row(session_factory):
    with session_scope(session_factory) as session:
        assert load_topic_stat(session, "u1", "math", "ratios") == TopicStatSnapshot()
        assert session.query(TopicStat).count() == 1


def test_load_daily_stat_starts_from_zero_row(session_factory):
    day = date(2025, 3, 1)
    with session_scope(session_factory) as session:
        assert load_daily_stat(session, "u1", day) == DailyStatSnapshot(stat_date=day)
        assert session.query(DailyStat).count() == 1


def test_topic_stat_round_trip(session_factory):
    stats = update_topic_stat(None, True, 42.0, T0)
    with session_scope(session_factory) as session:
        save_topic_stat(session, "u1", "math", "ratios", stats)

    with session_scope(session_factory) as session:
        assert load_topic_stat(session, "u1", "math", "ratios") == stats


def test_daily_stat_save_overwrites_counters(session_factory):
    day = date(2025, 3, 1)
    with session_scope(session_factory) as session:
        save_daily_stat(session, "u1", DailyStatSnapshot(stat_date=day, items_studied=3, math_total=3))

    with session_scope(session_factory) as session:
        loaded = load_daily_stat(session, "u1", day)
        assert loaded.items_studied == 3
        assert loaded.math_total == 3


def test_concurrent_attempts_on_one_topic_keep_both_increments(file_session_factory):
    with session_scope(file_session_factory) as session:
        session.add_all([
            Item(id="m1", subject="math", topic="linear_equations", answer_key="B"),
            Item(id="m2", subject="math", topic="linear_equations", answer_key="C"),
        ])
    recorder = AttemptRecorder(file_session_factory, Scheduler(SchedulerConfig()), clock=lambda: T0)

    first = file_session_factory()
    try:
        previous = load_topic_stat(first, "u1", "math", "linear_equations")

        with pytest.raises(OperationalError):
            recorder.record_attempt("u1", "m2", "C", 30.0, "good")

        save_topic_stat(
            first, "u1", "math", "linear_equations",
            update_topic_stat(previous, True, 20.0, T0),
        )
        first.commit()
    finally:
        first.close()

    recorder.record_attempt("u1", "m2", "C", 30.0, "good")

    with session_scope(file_session_factory) as session:
        row = session.get(TopicStat, ("u1", "math", "linear_equations"))
        assert row.total_attempts == 2
        assert row.total_correct == 2
        assert row.avg_time_seconds == pytest.approx(25.0)
