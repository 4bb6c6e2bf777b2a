"""
Scheduling - Main FSRS API for Review Management

Ties the memory model to stored card records and exposes the operations
the rest of the application calls:

- schedule_review / schedule_update: next state after a graded attempt
- is_due / get_review_priority / order_review_queue: review queue building
- get_schedule_preview: outcome of every grade before the learner commits

All operations are side-effect free; persisting results is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.constants import (
    OVERDUE_WEIGHT,
    STABILITY_WEIGHT,
    STATE_PRIORITY,
    Grade,
    State,
)
from hsat.fsrs.mappers import card_to_record, coerce_grade, record_to_card
from hsat.fsrs.memory_state import (
    SECONDS_PER_DAY,
    Card,
    Clock,
    calculate_retrievability,
    days_between,
    ensure_utc,
    safe_stability,
    utc_now,
)
from hsat.fsrs.scheduler import process_review
from hsat.schemas import CardRecord, Rating

logger = logging.getLogger(__name__)

GradeLike = Union[Grade, Rating, str]


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of one scheduled review."""
    next_due: datetime
    scheduled_days: int
    new_stability: float
    new_difficulty: float
    new_state: State
    new_reps: int
    new_lapses: int


@dataclass(frozen=True)
class SchedulePreview:
    """What a single grade would do, shown before the learner commits."""
    next_due: datetime
    scheduled_days: int


class Scheduler:
    """
    Applies the memory model to stored card records.

    Stateless apart from its configuration, so one instance can serve
    concurrent requests.
    """

    def __init__(self, config: SchedulerConfig, clock: Clock = utc_now):
        self.config = config
        self._clock = clock

    def next_card(
        self,
        current: Optional[CardRecord],
        grade: GradeLike,
        review_date: Optional[datetime] = None,
        item_id: Optional[str] = None
    ) -> Card:
        """Run the memory model and return the next in-memory card."""
        review_date = self._resolve(review_date)
        card = record_to_card(current, review_date)
        return process_review(card, coerce_grade(grade), review_date, self.config, fuzz_key=item_id)

    def schedule_review(
        self,
        current: Optional[CardRecord],
        grade: GradeLike,
        review_date: Optional[datetime] = None,
        item_id: Optional[str] = None
    ) -> ScheduleResult:
        """
        Schedule the next review for an item based on the learner's grade.

        Args:
            current: Stored card state, or None for a never-seen item
            grade: Grade (or stored rating string) for this attempt
            review_date: Instant of the review (defaults to the clock)
            item_id: Item being reviewed, seeds the fuzz when it is enabled

        Returns:
            ScheduleResult with due date, interval, S/D, state and counters
        """
        card = self.next_card(current, grade, review_date, item_id)
        logger.debug(
            "Scheduled review: grade=%s state=%s interval=%sd S=%.2f D=%.2f",
            coerce_grade(grade).name, card.state.value, card.scheduled_days,
            card.stability, card.difficulty,
        )
        return ScheduleResult(
            next_due=card.due,
            scheduled_days=card.scheduled_days,
            new_stability=card.stability,
            new_difficulty=card.difficulty,
            new_state=card.state,
            new_reps=card.reps,
            new_lapses=card.lapses,
        )

    def schedule_update(
        self,
        current: Optional[CardRecord],
        grade: GradeLike,
        review_date: Optional[datetime] = None,
        item_id: Optional[str] = None
    ) -> CardRecord:
        """
        Full stored record after scheduling, ready for a whole-row upsert.
        """
        return card_to_record(self.next_card(current, grade, review_date, item_id))

    def is_due(self, record: CardRecord, as_of: Optional[datetime] = None) -> bool:
        """True iff the card's due instant is at or before as_of."""
        as_of = self._resolve(as_of)
        return record_to_card(record, as_of).due <= as_of

    def get_review_priority(self, record: CardRecord, now: Optional[datetime] = None) -> float:
        """
        Sortable score for review queues (higher = review first).

        Components:
        - state: relearning > learning > review > new, gaps of 50
        - overdue: 10 points per day past due (negative before due)
        - fragility: up to 10 points, falling as stability grows
        """
        now = self._resolve(now)
        card = record_to_card(record, now)

        overdue_days = (now - card.due).total_seconds() / SECONDS_PER_DAY
        stability_factor = STABILITY_WEIGHT / (1.0 + safe_stability(card.stability))

        return overdue_days * OVERDUE_WEIGHT + STATE_PRIORITY[card.state] + stability_factor

    def order_review_queue(
        self,
        records: Iterable[CardRecord],
        now: Optional[datetime] = None
    ) -> list[CardRecord]:
        """
        Due records only, most urgent first.
        """
        now = self._resolve(now)
        due = [r for r in records if self.is_due(r, now)]
        due.sort(key=lambda r: self.get_review_priority(r, now), reverse=True)
        return due

    def get_schedule_preview(
        self,
        current: Optional[CardRecord],
        review_date: Optional[datetime] = None,
        item_id: Optional[str] = None
    ) -> dict[Grade, SchedulePreview]:
        """
        Outcome of every grade for this card, computed without side effects.

        Each entry equals what schedule_review would return for that grade
        at the same review_date and item_id.
        """
        review_date = self._resolve(review_date)
        card = record_to_card(current, review_date)

        preview: dict[Grade, SchedulePreview] = {}
        for grade in Grade:
            outcome = process_review(card, grade, review_date, self.config, fuzz_key=item_id)
            preview[grade] = SchedulePreview(
                next_due=outcome.due,
                scheduled_days=outcome.scheduled_days,
            )
        return preview

    def retrievability(self, record: CardRecord, now: Optional[datetime] = None) -> Optional[float]:
        """
        Current recall probability, None for cards never reviewed.
        """
        now = self._resolve(now)
        card = record_to_card(record, now)
        if card.state == State.NEW or card.last_review is None:
            return None
        return calculate_retrievability(card.stability, days_between(card.last_review, now))

    def _resolve(self, when: Optional[datetime]) -> datetime:
        return ensure_utc(when) if when is not None else ensure_utc(self._clock())
