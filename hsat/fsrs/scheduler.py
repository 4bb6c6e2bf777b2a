"""
Scheduler - FSRS Algorithm Logic

Pure scheduling and state updates (no database calls).

Main workflow:
1. Receive a card (caller loads it, or starts from an empty card)
2. Measure the gap since the last review
3. Dispatch on the card's state (new / learning / review / relearning)
4. Apply the short-term or long-term update rules
5. Return a new card; the input card is never modified

This module handles ONLY the algorithm logic.
Conversion to and from stored rows lives in the mappers module.
"""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from hsat.fsrs import ltm_updates, stm_updates
from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.constants import Grade, State
from hsat.fsrs.memory_state import (
    Card,
    calculate_retrievability,
    days_between,
    ensure_utc,
)


SUCCESS_GRADES = (Grade.HARD, Grade.GOOD, Grade.EASY)


def process_review(
    card: Card,
    grade: Grade,
    review_date: datetime,
    config: SchedulerConfig,
    fuzz_key: Optional[str] = None
) -> Card:
    """
    Apply one graded review to a card and return the next card state.

    Args:
        card: Current card (an empty card for never-seen items)
        grade: Learner's grade for this attempt
        review_date: Instant of the review
        config: Global model configuration
        fuzz_key: Identity of the item, mixed into the fuzz seed so cards in
            identical states reviewed together still spread out

    Returns:
        A new Card with updated stability, difficulty, counters, state,
        elapsed/scheduled days and due date (due >= review_date)
    """
    grade = Grade(grade)
    review_date = ensure_utc(review_date)
    elapsed_days = days_between(card.last_review, review_date)
    rng = _fuzz_rng(card, review_date, fuzz_key) if config.enable_fuzz else None

    updated = replace(
        card,
        elapsed_days=elapsed_days,
        last_review=review_date,
        reps=max(0, card.reps),
        lapses=max(0, card.lapses),
    )

    if card.state == State.NEW:
        _review_new(updated, grade, review_date, config, rng)
    elif card.state in (State.LEARNING, State.RELEARNING):
        _review_learning(updated, grade, review_date, config, rng)
    else:
        _review_review(updated, grade, review_date, config, rng)

    if grade == Grade.AGAIN:
        if card.state in (State.REVIEW, State.RELEARNING):
            updated.lapses += 1
    else:
        updated.reps += 1

    return updated


def _review_new(
    card: Card,
    grade: Grade,
    now: datetime,
    config: SchedulerConfig,
    rng: Optional[random.Random]
):
    """
    First review ever: initial S and D come straight from the grade.

    Modifies card in place (card is already a private copy).
    """
    weights = config.weights
    stabilities = {g: ltm_updates.initial_stability(g, weights) for g in Grade}

    card.difficulty = ltm_updates.initial_difficulty(grade, weights)
    card.stability = stabilities[grade]

    if config.enable_short_term:
        _advance_steps(card, grade, State.LEARNING, config.learning_steps, 0, stabilities, now, config, rng)
        return

    intervals = ltm_updates.long_term_intervals(
        stabilities, config.request_retention, config.maximum_interval, card.elapsed_days, rng
    )
    _schedule_days(card, State.REVIEW, intervals[grade], now)


def _review_learning(
    card: Card,
    grade: Grade,
    now: datetime,
    config: SchedulerConfig,
    rng: Optional[random.Random]
):
    """
    Review of a card sitting in a learning or relearning step.
    """
    weights = config.weights
    step_state = card.state
    card.difficulty = ltm_updates.next_difficulty(card.difficulty, grade, weights)

    if config.enable_short_term:
        stabilities = {
            g: stm_updates.short_term_stability(card.stability, g, weights) for g in Grade
        }
        card.stability = stabilities[grade]
        steps = config.learning_steps if step_state == State.LEARNING else config.relearning_steps
        _advance_steps(card, grade, step_state, steps, card.learning_steps, stabilities, now, config, rng)
        return

    # Steps are off (config changed after the card entered a step state):
    # treat the card like a review, but a failure keeps its current state.
    stabilities = _review_stabilities(card, weights)
    intervals = ltm_updates.long_term_intervals(
        stabilities, config.request_retention, config.maximum_interval, card.elapsed_days, rng
    )
    card.stability = stabilities[grade]
    next_state = step_state if grade == Grade.AGAIN else State.REVIEW
    _schedule_days(card, next_state, intervals[grade], now)


def _review_review(
    card: Card,
    grade: Grade,
    now: datetime,
    config: SchedulerConfig,
    rng: Optional[random.Random]
):
    """
    Review of a graduated card: forgetting-curve update.

    AGAIN is a lapse and sends the card to relearning.
    """
    weights = config.weights
    stabilities = _review_stabilities(card, weights)
    if config.enable_short_term and card.elapsed_days < 1.0:
        # Same-day repeat of a review card: the curve has not decayed yet.
        stabilities = {
            g: stm_updates.short_term_stability(card.stability, g, weights) for g in Grade
        }

    card.difficulty = ltm_updates.next_difficulty(card.difficulty, grade, weights)
    card.stability = stabilities[grade]

    if config.enable_short_term and config.relearning_steps:
        if grade == Grade.AGAIN:
            outcome = stm_updates.apply_step(config.relearning_steps, 0, grade)
            _schedule_step(card, State.RELEARNING, outcome, now)
            return
        intervals = ltm_updates.long_term_intervals(
            {g: stabilities[g] for g in SUCCESS_GRADES},
            config.request_retention,
            config.maximum_interval,
            card.elapsed_days,
            rng,
        )
        _schedule_days(card, State.REVIEW, intervals[grade], now)
        return

    intervals = ltm_updates.long_term_intervals(
        stabilities, config.request_retention, config.maximum_interval, card.elapsed_days, rng
    )
    next_state = State.RELEARNING if grade == Grade.AGAIN else State.REVIEW
    _schedule_days(card, next_state, intervals[grade], now)


def _review_stabilities(card: Card, weights: tuple[float, ...]) -> dict[Grade, float]:
    """Candidate stabilities for every grade from the forgetting curve."""
    retrievability = calculate_retrievability(card.stability, card.elapsed_days)
    stabilities = {
        g: ltm_updates.update_stability_on_success(
            card.stability, card.difficulty, retrievability, g, weights
        )
        for g in SUCCESS_GRADES
    }
    stabilities[Grade.AGAIN] = ltm_updates.update_stability_on_failure(
        card.stability, card.difficulty, retrievability, weights
    )
    return stabilities


def _advance_steps(
    card: Card,
    grade: Grade,
    step_state: State,
    steps: tuple[timedelta, ...],
    current_step: int,
    stabilities: dict[Grade, float],
    now: datetime,
    config: SchedulerConfig,
    rng: Optional[random.Random]
):
    """
    Move the card through its step sequence, or graduate it to review.

    Graduation intervals are computed for every grade that would graduate
    from this step so that EASY always lands later than GOOD.
    """
    outcome = stm_updates.apply_step(steps, current_step, grade)
    if not outcome.graduated:
        _schedule_step(card, step_state, outcome, now)
        return

    graduating = [
        g for g in SUCCESS_GRADES
        if stm_updates.apply_step(steps, current_step, g).graduated
    ]
    intervals = {
        g: ltm_updates.next_interval(
            stabilities[g], config.request_retention, config.maximum_interval, card.elapsed_days, rng
        )
        for g in graduating
    }
    if Grade.GOOD in intervals:
        intervals[Grade.EASY] = min(
            config.maximum_interval,
            max(intervals[Grade.EASY], intervals[Grade.GOOD] + 1),
        )
    _schedule_days(card, State.REVIEW, intervals[grade], now)


def _schedule_step(card: Card, state: State, outcome: stm_updates.StepOutcome, now: datetime):
    card.state = state
    card.learning_steps = outcome.next_step
    card.scheduled_days = 0
    card.due = now + max(outcome.delay, timedelta(0))


def _schedule_days(card: Card, state: State, days: int, now: datetime):
    card.state = state
    card.learning_steps = 0
    card.scheduled_days = days
    card.due = now + timedelta(days=days)


def _fuzz_rng(card: Card, review_date: datetime, fuzz_key: Optional[str]) -> random.Random:
    """
    Random source seeded from the review itself.

    Identical (item, card, review instant) triples always fuzz identically,
    so a preview and the real review agree.
    """
    seed = (
        f"{fuzz_key or ''}_{review_date.isoformat()}_{card.due.isoformat()}"
        f"_{card.reps}_{card.difficulty * card.stability}"
    )
    return random.Random(seed)
