import math
import random

import pytest

from hsat.fsrs.constants import D_MAX, D_MIN, DEFAULT_WEIGHTS, S_MAX, S_MIN, Grade
from hsat.fsrs.ltm_updates import (
    apply_fuzz,
    initial_difficulty,
    initial_stability,
    long_term_intervals,
    next_difficulty,
    next_interval,
    order_intervals,
    raw_interval,
    update_stability_on_failure,
    update_stability_on_success,
)
from hsat.fsrs.memory_state import calculate_retrievability

W = DEFAULT_WEIGHTS


def test_retrievability_is_target_at_stability():
    assert calculate_retrievability(10.0, 10.0) == pytest.approx(0.9)
    assert calculate_retrievability(10.0, 0.0) == 1.0


def test_retrievability_decays_with_time():
    values = [calculate_retrievability(5.0, t) for t in (1, 5, 20, 100)]
    assert values == sorted(values, reverse=True)
    assert all(0.0 < r < 1.0 for r in values)


def test_initial_stability_grows_with_grade():
    values = [initial_stability(g, W) for g in Grade]
    assert values == sorted(values)
    assert values[2] == pytest.approx(W[2])


def test_initial_difficulty_falls_with_grade():
    values = [initial_difficulty(g, W) for g in Grade]
    assert values == sorted(values, reverse=True)
    assert all(D_MIN <= d <= D_MAX for d in values)


def test_next_difficulty_moves_with_grade():
    d = 5.0
    assert next_difficulty(d, Grade.AGAIN, W) > d
    assert next_difficulty(d, Grade.EASY, W) < d


def test_next_difficulty_stays_in_bounds():
    d = D_MAX
    for _ in range(50):
        d = next_difficulty(d, Grade.AGAIN, W)
    assert d <= D_MAX

    d = D_MIN
    for _ in range(50):
        d = next_difficulty(d, Grade.EASY, W)
    assert d >= D_MIN


def test_next_difficulty_nan_is_clamped():
    d = next_difficulty(float("nan"), Grade.GOOD, W)
    assert D_MIN <= d <= D_MAX


def test_success_grows_stability_and_respects_grade_order():
    s, d, r = 5.0, 5.0, 0.85
    hard = update_stability_on_success(s, d, r, Grade.HARD, W)
    good = update_stability_on_success(s, d, r, Grade.GOOD, W)
    easy = update_stability_on_success(s, d, r, Grade.EASY, W)
    assert s < hard < good < easy


def test_success_rejects_again():
    with pytest.raises(ValueError):
        update_stability_on_success(5.0, 5.0, 0.9, Grade.AGAIN, W)


def test_failure_shrinks_stability():
    s = 20.0
    after = update_stability_on_failure(s, 5.0, 0.7, W)
    assert S_MIN <= after < s


def test_failure_with_degenerate_inputs_is_finite():
    after = update_stability_on_failure(float("nan"), float("nan"), 0.5, W)
    assert math.isfinite(after)
    assert S_MIN <= after <= S_MAX


def test_raw_interval_equals_stability_at_ninety_percent():
    assert raw_interval(7.0, 0.9) == pytest.approx(7.0)
    assert raw_interval(7.0, 0.95) < 7.0


def test_next_interval_is_clipped():
    assert next_interval(0.1, 0.9, 21) == 1
    assert next_interval(1000.0, 0.9, 21) == 21
    assert next_interval(10.0, 0.9, 21) == 10


def test_apply_fuzz_stays_in_window():
    rng = random.Random(42)
    results = {apply_fuzz(10.0, 0.0, 21, rng) for _ in range(200)}
    assert min(results) >= 8
    assert max(results) <= 12
    assert len(results) > 1


def test_apply_fuzz_never_exceeds_cap():
    rng = random.Random(7)
    assert all(apply_fuzz(20.0, 0.0, 21, rng) <= 21 for _ in range(100))


def test_long_term_intervals_are_ordered():
    stabilities = {Grade.AGAIN: 1.0, Grade.HARD: 1.0, Grade.GOOD: 1.0, Grade.EASY: 1.0}
    intervals = long_term_intervals(stabilities, 0.9, 21)
    assert intervals[Grade.AGAIN] < intervals[Grade.HARD] < intervals[Grade.GOOD] < intervals[Grade.EASY]


def test_order_intervals_without_again_caps_hard_at_good():
    ordered = order_intervals({Grade.HARD: 9, Grade.GOOD: 5, Grade.EASY: 6}, 21)
    assert ordered[Grade.HARD] == 5
    assert ordered[Grade.GOOD] == 6
    assert ordered[Grade.EASY] == 7


def test_order_intervals_respects_cap():
    ordered = order_intervals({Grade.HARD: 21, Grade.GOOD: 21, Grade.EASY: 21}, 21)
    assert all(days <= 21 for days in ordered.values())
