"""
Short-Term Memory (STM) Updates

Sub-day learning and relearning steps for cards that are not yet (or no
longer) on the day-scale schedule.

STM exists to:
- Give brand-new items a few quick repetitions before spacing them out
- Repair a lapse the same day it happens

Stability still moves during STM, but through the short-term formula
rather than the forgetting curve.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from hsat.fsrs.constants import Grade
from hsat.fsrs.ltm_updates import clamp_stability


# A "hard" on a single-step sequence waits 1.5x the step, but never
# more than one day longer than the step itself.
HARD_SINGLE_STEP_FACTOR = 1.5
HARD_SINGLE_STEP_CAP = timedelta(days=1)


@dataclass(frozen=True)
class StepOutcome:
    """
    Result of applying a grade to a step sequence.

    `graduated` means the sequence is exhausted and the card moves to the
    day-scale schedule; `delay` is then None.
    """
    graduated: bool
    next_step: int
    delay: Optional[timedelta]


def short_term_stability(stability: float, grade: Grade, weights: tuple[float, ...]) -> float:
    """
    Stability after a same-day (step) review.

    Formula: S' = S * e^(w17 * (G - 3 + w18))

    Good and Easy never lower stability.
    """
    stability = clamp_stability(stability)
    factor = math.exp(weights[17] * (int(grade) - 3 + weights[18]))
    if grade >= Grade.GOOD:
        factor = max(factor, 1.0)
    return clamp_stability(stability * factor)


def apply_step(
    steps: tuple[timedelta, ...],
    current_step: int,
    grade: Grade
) -> StepOutcome:
    """
    Move through a (re)learning step sequence.

    - AGAIN: restart at the first step
    - HARD: repeat the current step (first of several steps waits the mean
      of the first two)
    - GOOD: advance one step, graduate past the last one
    - EASY: graduate immediately

    An empty sequence graduates on every non-failure grade and restarts
    at a zero delay on AGAIN.
    """
    if not steps:
        if grade == Grade.AGAIN:
            return StepOutcome(graduated=False, next_step=0, delay=timedelta(0))
        return StepOutcome(graduated=True, next_step=0, delay=None)

    current_step = max(0, min(current_step, len(steps) - 1))

    if grade == Grade.AGAIN:
        return StepOutcome(graduated=False, next_step=0, delay=steps[0])

    if grade == Grade.HARD:
        return StepOutcome(graduated=False, next_step=current_step, delay=_hard_delay(steps, current_step))

    if grade == Grade.GOOD:
        next_step = current_step + 1
        if next_step >= len(steps):
            return StepOutcome(graduated=True, next_step=0, delay=None)
        return StepOutcome(graduated=False, next_step=next_step, delay=steps[next_step])

    return StepOutcome(graduated=True, next_step=0, delay=None)


def _hard_delay(steps: tuple[timedelta, ...], current_step: int) -> timedelta:
    if current_step == 0 and len(steps) == 1:
        return min(steps[0] * HARD_SINGLE_STEP_FACTOR, steps[0] + HARD_SINGLE_STEP_CAP)
    if current_step == 0:
        return (steps[0] + steps[1]) / 2
    return steps[current_step]
