"""
Long-Term Memory (LTM) Updates

Stability and difficulty formulas applied when a card is reviewed on the
day-scale schedule, plus the interval that follows from a stability.

Key principles:
- Successful recall grows stability, more when recall was harder to achieve
  (low R) and when the item is easy
- A lapse shrinks stability sharply
- Difficulty rises on failure and "hard", falls on "easy", and drifts back
  towards a reference value over time
"""

from __future__ import annotations

import math
import random
from typing import Optional

from hsat.fsrs.constants import (
    DECAY,
    D_MAX,
    D_MIN,
    FACTOR,
    FUZZ_MIN_INTERVAL,
    FUZZ_RANGES,
    Grade,
)
from hsat.fsrs.memory_state import safe_stability


def clamp_difficulty(difficulty: float) -> float:
    """Clip difficulty to [D_MIN, D_MAX]; NaN becomes the midpoint."""
    if math.isnan(difficulty):
        return (D_MIN + D_MAX) / 2.0
    return max(D_MIN, min(D_MAX, difficulty))


def clamp_stability(stability: float) -> float:
    """Clip stability to [S_MIN, S_MAX]."""
    return safe_stability(stability)


def initial_stability(grade: Grade, weights: tuple[float, ...]) -> float:
    """
    Stability after the very first review.

    Formula: S0(G) = w[G-1]
    """
    return clamp_stability(weights[int(grade) - 1])


def initial_difficulty(grade: Grade, weights: tuple[float, ...]) -> float:
    """
    Difficulty after the very first review.

    Formula: D0(G) = w4 - exp(w5 * (G - 1)) + 1, clipped to [1, 10]
    """
    return clamp_difficulty(weights[4] - math.exp(weights[5] * (int(grade) - 1)) + 1.0)


def next_difficulty(difficulty: float, grade: Grade, weights: tuple[float, ...]) -> float:
    """
    Update difficulty after a review.

    Formula:
        delta  = -w6 * (G - 3)
        D'     = D + delta * (10 - D) / 9            (linear damping)
        D''    = w7 * D0(EASY) + (1 - w7) * D'       (mean reversion)

    Damping keeps difficulty from running into the upper bound; mean
    reversion pulls long-lived cards back towards the easy baseline.
    """
    difficulty = clamp_difficulty(difficulty)
    delta = -weights[6] * (int(grade) - 3)
    damped = difficulty + delta * (D_MAX - difficulty) / 9.0
    reverted = weights[7] * initial_difficulty(Grade.EASY, weights) + (1.0 - weights[7]) * damped
    return clamp_difficulty(reverted)


def update_stability_on_success(
    stability: float,
    difficulty: float,
    retrievability: float,
    grade: Grade,
    weights: tuple[float, ...]
) -> float:
    """
    Stability after a successful recall (Hard/Good/Easy) in review.

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1)
                  * hard_penalty * easy_bonus)

    Where:
        - (11 - D) rewards easy items
        - S^-w9 gives diminishing returns for already-stable memories
        - (e^(w10 * (1 - R)) - 1) rewards well-spaced (risky) success
    """
    if grade == Grade.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN")

    stability = safe_stability(stability)
    difficulty = clamp_difficulty(difficulty)
    retrievability = max(0.0, min(1.0, retrievability))

    hard_penalty = weights[15] if grade == Grade.HARD else 1.0
    easy_bonus = weights[16] if grade == Grade.EASY else 1.0

    growth = (
        math.exp(weights[8])
        * (11.0 - difficulty)
        * math.pow(stability, -weights[9])
        * (math.exp(weights[10] * (1.0 - retrievability)) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    return clamp_stability(stability * (1.0 + growth))


def update_stability_on_failure(
    stability: float,
    difficulty: float,
    retrievability: float,
    weights: tuple[float, ...]
) -> float:
    """
    Stability after a lapse (Again) in review.

    Formula:
        S_f = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))
        S'  = min(S_f, S / e^(w17 * w18))

    The second bound keeps a lapse from ever leaving the card more stable
    than a same-day "again" would.
    """
    stability = safe_stability(stability)
    difficulty = clamp_difficulty(difficulty)
    retrievability = max(0.0, min(1.0, retrievability))

    forget = (
        weights[11]
        * math.pow(difficulty, -weights[12])
        * (math.pow(stability + 1.0, weights[13]) - 1.0)
        * math.exp(weights[14] * (1.0 - retrievability))
    )
    ceiling = stability / math.exp(weights[17] * weights[18])
    return clamp_stability(min(forget, ceiling))


def raw_interval(stability: float, request_retention: float) -> float:
    """
    Days until recall probability falls to the retention target.

    Formula: I = S / FACTOR * (R_target^(1/DECAY) - 1)
    With R_target = 0.9 this is exactly S.
    """
    stability = safe_stability(stability)
    return stability / FACTOR * (math.pow(request_retention, 1.0 / DECAY) - 1.0)


def next_interval(
    stability: float,
    request_retention: float,
    maximum_interval: int,
    elapsed_days: float = 0.0,
    rng: Optional[random.Random] = None
) -> int:
    """
    Whole-day interval for a stability, clipped to [1, maximum_interval].

    If rng is given, intervals of FUZZ_MIN_INTERVAL days or more are fuzzed.
    """
    interval = raw_interval(stability, request_retention)
    if not math.isfinite(interval):
        return maximum_interval
    if rng is not None and interval >= FUZZ_MIN_INTERVAL:
        return apply_fuzz(interval, elapsed_days, maximum_interval, rng)
    return int(max(1, min(maximum_interval, round(interval))))


def apply_fuzz(
    interval: float,
    elapsed_days: float,
    maximum_interval: int,
    rng: random.Random
) -> int:
    """
    Pick a day uniformly from a window around the interval.

    The window half-width is 1 day plus a share of the interval taken from
    FUZZ_RANGES. The result never leaves [2, maximum_interval] and, once
    the card has waited longer than the interval, never lands before
    elapsed_days + 1.
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    interval = min(interval, float(maximum_interval))
    min_ivl = max(2, int(round(interval - delta)))
    max_ivl = min(int(round(interval + delta)), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, int(elapsed_days) + 1)
    min_ivl = min(min_ivl, max_ivl)

    fuzzed = int(math.floor(rng.random() * (max_ivl - min_ivl + 1) + min_ivl))
    return max(1, min(fuzzed, maximum_interval))


def long_term_intervals(
    stabilities: dict[Grade, float],
    request_retention: float,
    maximum_interval: int,
    elapsed_days: float = 0.0,
    rng: Optional[random.Random] = None
) -> dict[Grade, int]:
    """
    Intervals for every grade, forced into again < hard <= good < easy.

    `stabilities` must hold HARD, GOOD and EASY; AGAIN is optional (it is
    absent when "again" goes to a relearning step instead of a day interval).
    Grades are fuzzed in ascending order so a seeded rng gives the same
    result for every caller.
    """
    raw = {
        grade: next_interval(stabilities[grade], request_retention, maximum_interval, elapsed_days, rng)
        for grade in sorted(stabilities)
    }
    return order_intervals(raw, maximum_interval)


def order_intervals(raw: dict[Grade, int], maximum_interval: int) -> dict[Grade, int]:
    """Enforce grade monotonicity on a set of intervals, then re-apply the cap."""
    ordered = dict(raw)
    if Grade.AGAIN in ordered:
        ordered[Grade.AGAIN] = min(ordered[Grade.AGAIN], ordered[Grade.HARD])
        ordered[Grade.HARD] = max(ordered[Grade.HARD], ordered[Grade.AGAIN] + 1)
    else:
        ordered[Grade.HARD] = min(ordered[Grade.HARD], ordered[Grade.GOOD])
    ordered[Grade.GOOD] = max(ordered[Grade.GOOD], ordered[Grade.HARD] + 1)
    ordered[Grade.EASY] = max(ordered[Grade.EASY], ordered[Grade.GOOD] + 1)
    return {grade: max(1, min(maximum_interval, days)) for grade, days in ordered.items()}
