from datetime import timedelta

import pytest

from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.constants import Grade, State
from hsat.fsrs.scheduling import Scheduler

from tests.conftest import T0, make_record


def test_schedule_review_new_item(scheduler, t0):
    result = scheduler.schedule_review(None, Grade.GOOD, t0)
    assert result.new_state == State.LEARNING
    assert result.next_due > t0
    assert result.new_reps == 1
    assert result.new_lapses == 0
    assert result.new_stability > 0


def test_schedule_review_uses_clock_by_default(scheduler, t0):
    result = scheduler.schedule_review(None, "good")
    assert result.next_due == t0 + timedelta(minutes=10)


def test_schedule_review_accepts_rating_strings(scheduler, t0):
    record = make_record(last_review=t0 - timedelta(days=5))
    by_grade = scheduler.schedule_review(record, Grade.HARD, t0)
    by_rating = scheduler.schedule_review(record, "hard", t0)
    assert by_grade == by_rating


def test_schedule_review_rejects_unknown_rating(scheduler, t0):
    with pytest.raises(ValueError):
        scheduler.schedule_review(None, "medium", t0)


def test_schedule_update_returns_full_record(scheduler, t0):
    record = make_record(last_review=t0 - timedelta(days=5), reps=4, lapses=1)
    updated = scheduler.schedule_update(record, Grade.AGAIN, t0)
    assert updated.state == "relearning"
    assert updated.lapses == 2
    assert updated.reps == 4
    assert updated.last_review == "2025-03-01T12:00:00.000000+00:00"
    assert updated.elapsed_days == 5.0


def test_schedule_update_matches_schedule_review(scheduler, t0):
    record = make_record(last_review=t0 - timedelta(days=5))
    result = scheduler.schedule_review(record, Grade.GOOD, t0)
    updated = scheduler.schedule_update(record, Grade.GOOD, t0)
    assert updated.scheduled_days == result.scheduled_days
    assert updated.stability == result.new_stability
    assert updated.state == result.new_state


def test_scheduling_is_idempotent(scheduler, t0):
    record = make_record(last_review=t0 - timedelta(days=5))
    assert scheduler.schedule_review(record, Grade.GOOD, t0) == scheduler.schedule_review(record, Grade.GOOD, t0)


def test_is_due_boundary(scheduler, t0):
    record = make_record(due=t0)
    assert scheduler.is_due(record, t0)
    assert not scheduler.is_due(record, t0 - timedelta(seconds=1))
    assert scheduler.is_due(record, t0 + timedelta(days=1))


def test_priority_prefers_relearning_over_review(scheduler, t0):
    relearning = make_record(state="relearning", due=t0, stability=2.0)
    review = make_record(state="review", due=t0, stability=2.0)
    assert scheduler.get_review_priority(relearning, t0) > scheduler.get_review_priority(review, t0)


def test_priority_state_order(scheduler, t0):
    scores = [
        scheduler.get_review_priority(make_record(state=s, due=t0, stability=1.0), t0)
        for s in ("relearning", "learning", "review", "new")
    ]
    assert scores == sorted(scores, reverse=True)


def test_priority_grows_with_overdue_days(scheduler, t0):
    recent = make_record(due=t0 - timedelta(days=1))
    older = make_record(due=t0 - timedelta(days=3))
    assert scheduler.get_review_priority(older, t0) > scheduler.get_review_priority(recent, t0)


def test_priority_prefers_fragile_cards(scheduler, t0):
    fragile = make_record(due=t0, stability=0.5)
    solid = make_record(due=t0, stability=50.0)
    assert scheduler.get_review_priority(fragile, t0) > scheduler.get_review_priority(solid, t0)


def test_priority_not_yet_due_is_lower(scheduler, t0):
    due_now = make_record(due=t0)
    future = make_record(due=t0 + timedelta(days=2))
    assert scheduler.get_review_priority(future, t0) < scheduler.get_review_priority(due_now, t0)


def test_priority_handles_zero_stability(scheduler, t0):
    record = make_record(state="new", due=t0, stability=0.0, difficulty=0.0)
    assert scheduler.get_review_priority(record, t0) == pytest.approx(-50.0 + 10.0 / 1.01)


def test_order_review_queue(scheduler, t0):
    records = [
        make_record(state="review", due=t0 - timedelta(days=1), stability=10.0),
        make_record(state="relearning", due=t0 - timedelta(minutes=5), stability=1.0),
        make_record(state="review", due=t0 + timedelta(days=1)),
    ]
    queue = scheduler.order_review_queue(records, t0)
    assert [r.state for r in queue] == ["relearning", "review"]


def test_preview_matches_real_schedule(scheduler, t0):
    record = make_record(last_review=t0 - timedelta(days=5))
    preview = scheduler.get_schedule_preview(record, t0)
    assert set(preview) == set(Grade)
    for grade, entry in preview.items():
        result = scheduler.schedule_review(record, grade, t0)
        assert entry.next_due == result.next_due
        assert entry.scheduled_days == result.scheduled_days


def test_preview_matches_real_schedule_with_fuzz(t0):
    scheduler = Scheduler(SchedulerConfig(enable_fuzz=True, maximum_interval=365))
    record = make_record(stability=40.0, last_review=t0 - timedelta(days=40))
    preview = scheduler.get_schedule_preview(record, t0)
    for grade in Grade:
        assert preview[grade].next_due == scheduler.schedule_review(record, grade, t0).next_due


def test_preview_is_ordered(scheduler, t0):
    record = make_record(stability=3.0, last_review=t0 - timedelta(days=3))
    preview = scheduler.get_schedule_preview(record, t0)
    dues = [preview[g].next_due for g in Grade]
    assert dues == sorted(dues)


def test_preview_for_new_item(scheduler, t0):
    preview = scheduler.get_schedule_preview(None, t0)
    assert preview[Grade.AGAIN].next_due == t0 + timedelta(minutes=1)
    assert preview[Grade.GOOD].next_due == t0 + timedelta(minutes=10)
    assert preview[Grade.EASY].scheduled_days >= 1


def test_retrievability(scheduler, t0):
    assert scheduler.retrievability(make_record(state="new", last_review=None), t0) is None
    record = make_record(stability=10.0, last_review=t0 - timedelta(days=10))
    assert scheduler.retrievability(record, t0) == pytest.approx(0.9)


def test_naive_review_date_is_treated_as_utc(scheduler):
    naive = T0.replace(tzinfo=None)
    assert scheduler.schedule_review(None, "good", naive) == scheduler.schedule_review(None, "good", T0)


def test_preview_matches_real_schedule_with_fuzz_per_item(t0):
    scheduler = Scheduler(SchedulerConfig(enable_fuzz=True, maximum_interval=365))
    record = make_record(stability=40.0, last_review=t0 - timedelta(days=40))
    preview = scheduler.get_schedule_preview(record, t0, item_id="m1")
    for grade in Grade:
        result = scheduler.schedule_review(record, grade, t0, item_id="m1")
        assert preview[grade].next_due == result.next_due
