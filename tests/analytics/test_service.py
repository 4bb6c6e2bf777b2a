from datetime import timedelta

import pandas as pd
import pytest

from hsat.analytics import build_progress_summary
from hsat.analytics.metrics import build_day_index, compute_topic_mastery
from hsat.analytics.queries import load_attempts_df
from hsat.attempts import AttemptRecorder
from hsat.database import session_scope
from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.scheduling import Scheduler
from hsat.models import Item

from tests.conftest import T0


class ListClock:
    def __init__(self, times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


@pytest.fixture
def seeded(session_factory):
    with session_scope(session_factory) as session:
        session.add_all([
            Item(id="m1", subject="math", topic="linear_equations", answer_key="B"),
            Item(id="m2", subject="math", topic="linear_equations", answer_key="C"),
            Item(id="r1", subject="reading", topic="main_idea", answer_key="A"),
        ])

    times = [
        T0,
        T0 + timedelta(minutes=2),
        T0 + timedelta(minutes=4),
        T0 + timedelta(days=2),
        T0 + timedelta(days=2, minutes=1),
    ]
    recorder = AttemptRecorder(session_factory, Scheduler(SchedulerConfig()), clock=ListClock(times))
    recorder.record_attempt("u1", "m1", "B", 30.0, "good")
    recorder.record_attempt("u1", "m2", "A", 50.0, "again")
    recorder.record_attempt("u1", "r1", "A", 40.0, "easy")
    recorder.record_attempt("u1", "m1", "B", 20.0, "good")
    recorder.record_attempt("u1", "m2", "C", 60.0, "hard")


def test_empty_summary(session_factory):
    with session_scope(session_factory) as session:
        summary = build_progress_summary(session, "nobody", T0)

    assert summary.total_attempts == 0
    assert summary.overall_accuracy is None
    assert summary.items_seen == 0
    assert summary.due_now == 0
    assert summary.mean_retrievability is None
    assert summary.daily_accuracy.empty
    assert summary.topic_mastery.empty


def test_progress_summary(session_factory, seeded):
    with session_scope(session_factory) as session:
        summary = build_progress_summary(session, "u1", T0 + timedelta(days=3))

    assert summary.total_attempts == 5
    assert summary.overall_accuracy == pytest.approx(0.8)
    assert summary.items_seen == 3
    assert 0 < summary.mean_retrievability <= 1.0

    assert len(summary.daily_accuracy) == 3
    assert summary.daily_accuracy.iloc[0] == pytest.approx(2 / 3)
    assert pd.isna(summary.daily_accuracy.iloc[1])
    assert summary.daily_accuracy.iloc[2] == pytest.approx(1.0)
    assert summary.daily_attempts.tolist() == [3, 0, 2]


def test_topic_mastery_table(session_factory, seeded):
    with session_scope(session_factory) as session:
        table = compute_topic_mastery(load_attempts_df(session, "u1"))

    math = table[table["topic"] == "linear_equations"].iloc[0]
    assert math["attempts"] == 4
    assert math["correct"] == 3
    assert math["avg_seconds"] == pytest.approx(40.0)
    assert math["mastery_score"] == pytest.approx(75.0)

    reading = table[table["topic"] == "main_idea"].iloc[0]
    assert reading["attempts"] == 1
    assert pd.isna(reading["mastery_score"])


def test_day_index_is_dense(session_factory, seeded):
    with session_scope(session_factory) as session:
        df = load_attempts_df(session, "u1")

    index = build_day_index(df)
    assert len(index) == 3
    assert str(index.tz) == "UTC"
