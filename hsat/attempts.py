"""
Attempt Recording

Checks a learner's answer, reschedules the card and updates the aggregate
stats, all inside one transaction per attempt.

Workflow for a practice attempt:
1. Load the item (answer key, subject, topic)
2. Lock and load the card state (created as new on first sight)
3. Schedule the next review from the learner's rating
4. Append the attempt with before/after card snapshots
5. Replace the card state row
6. Fold the attempt into topic and daily stats
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session, sessionmaker

from hsat.analytics.aggregation import update_daily_stat, update_topic_stat
from hsat.analytics.repository import (
    load_daily_stat,
    load_topic_stat,
    save_daily_stat,
    save_topic_stat,
)
from hsat.database import session_scope
from hsat.fsrs.constants import Grade, State
from hsat.fsrs.mappers import coerce_grade, grade_to_rating
from hsat.fsrs.memory_state import Clock, ensure_utc, format_timestamp, parse_timestamp, utc_now
from hsat.fsrs.scheduling import Scheduler
from hsat.models import Attempt, Item
from hsat.schemas import AttemptResult, CardRecord, Rating
from hsat.store import SqlCardStore

logger = logging.getLogger(__name__)


class ItemNotFoundError(LookupError):
    """Raised when an attempt references an item that does not exist."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


@dataclass(frozen=True)
class AttemptOutcome:
    """What the learner sees after submitting an answer."""
    is_correct: bool
    correct_answer: str
    rationale: str
    next_due: Optional[datetime] = None
    scheduled_days: Optional[int] = None


def check_answer(response: str, answer_key: str) -> bool:
    """Case-insensitive comparison of the response with the answer key."""
    return response.strip().upper() == answer_key.strip().upper()


class AttemptRecorder:
    """
    Records practice and exam attempts.

    Args:
        session_factory: Factory for database sessions (one per attempt)
        scheduler: Scheduler used to compute the next card state
        clock: Source of the current time
    """

    def __init__(self, session_factory: sessionmaker, scheduler: Scheduler, clock: Clock = utc_now):
        self.session_factory = session_factory
        self.scheduler = scheduler
        self.clock = clock

    def record_attempt(
        self,
        user_id: str,
        item_id: str,
        response: str,
        seconds_spent: float,
        rating: Union[Grade, Rating, str],
        session_id: Optional[str] = None
    ) -> AttemptOutcome:
        """
        Record a practice attempt and reschedule the item.

        Raises:
            ItemNotFoundError: If item_id does not exist
            ValueError: If rating is not a known grade
        """
        grade = coerce_grade(rating)
        now = ensure_utc(self.clock())

        with session_scope(self.session_factory) as session:
            item = _get_item(session, item_id)
            is_correct = check_answer(response, item.answer_key)

            store = SqlCardStore(session)
            current = store.get_or_create_for_update(user_id, item_id, now)
            was_new = current.state == State.NEW.value
            updated = self.scheduler.schedule_update(current, grade, now, item_id=item_id)

            session.add(_build_attempt(
                user_id=user_id,
                item_id=item_id,
                session_id=session_id,
                response=response,
                is_correct=is_correct,
                seconds_spent=seconds_spent,
                rating=grade_to_rating(grade),
                answered_at=now,
                before=current,
                after=updated,
            ))
            store.upsert(user_id, item_id, updated)
            self._update_stats(session, user_id, item, is_correct, seconds_spent, was_new, now)

        logger.info(
            "Recorded attempt user=%s item=%s correct=%s rating=%s next_due=%s",
            user_id, item_id, is_correct, grade.name, updated.due,
        )
        return AttemptOutcome(
            is_correct=is_correct,
            correct_answer=item.answer_key,
            rationale=item.rationale,
            next_due=parse_timestamp(updated.due),
            scheduled_days=updated.scheduled_days,
        )

    def record_exam_attempt(
        self,
        user_id: str,
        item_id: str,
        response: str,
        seconds_spent: float,
        session_id: Optional[str] = None
    ) -> AttemptOutcome:
        """
        Record an exam attempt. Exams do not touch scheduling or stats.

        Raises:
            ItemNotFoundError: If item_id does not exist
        """
        now = ensure_utc(self.clock())

        with session_scope(self.session_factory) as session:
            item = _get_item(session, item_id)
            is_correct = check_answer(response, item.answer_key)
            session.add(_build_attempt(
                user_id=user_id,
                item_id=item_id,
                session_id=session_id,
                response=response,
                is_correct=is_correct,
                seconds_spent=seconds_spent,
                rating=None,
                answered_at=now,
            ))

        logger.info("Recorded exam attempt user=%s item=%s correct=%s", user_id, item_id, is_correct)
        return AttemptOutcome(
            is_correct=is_correct,
            correct_answer=item.answer_key,
            rationale=item.rationale,
        )

    def get_item_attempts(self, user_id: str, item_id: str, limit: int = 10) -> list[dict]:
        """
        Get a user's recent attempts on one item (newest first).
        """
        with session_scope(self.session_factory) as session:
            attempts = (
                session.query(Attempt)
                .filter(Attempt.user_id == user_id, Attempt.item_id == item_id)
                .order_by(Attempt.answered_at.desc(), Attempt.id.desc())
                .limit(limit)
                .all()
            )
            return [_attempt_to_dict(a) for a in attempts]

    def _update_stats(
        self,
        session: Session,
        user_id: str,
        item: Item,
        is_correct: bool,
        seconds_spent: float,
        was_new: bool,
        now: datetime
    ):
        topic_stats = update_topic_stat(
            load_topic_stat(session, user_id, item.subject, item.topic),
            is_correct,
            seconds_spent,
            now,
        )
        save_topic_stat(session, user_id, item.subject, item.topic, topic_stats)

        stat_date = now.date()
        daily_stats = update_daily_stat(
            load_daily_stat(session, user_id, stat_date),
            item.subject,
            is_correct,
            seconds_spent,
            was_new,
            stat_date,
        )
        save_daily_stat(session, user_id, daily_stats)


def _get_item(session: Session, item_id: str) -> Item:
    item = session.get(Item, item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


def _build_attempt(
    user_id: str,
    item_id: str,
    session_id: Optional[str],
    response: str,
    is_correct: bool,
    seconds_spent: float,
    rating: Optional[Rating],
    answered_at: datetime,
    before: Optional[CardRecord] = None,
    after: Optional[CardRecord] = None
) -> Attempt:
    timestamp = format_timestamp(answered_at)
    result = AttemptResult.CORRECT if is_correct else AttemptResult.INCORRECT

    attempt = Attempt(
        user_id=user_id,
        item_id=item_id,
        session_id=session_id,
        presented_at=timestamp,
        answered_at=timestamp,
        seconds_spent=seconds_spent,
        response=response,
        result=result.value,
        rating=rating.value if rating is not None else None,
    )
    if after is not None:
        attempt.state_before = before.state if before is not None else State.NEW.value
        attempt.stability_before = before.stability if before is not None else 0.0
        attempt.difficulty_before = before.difficulty if before is not None else 0.0
        attempt.state_after = after.state
        attempt.stability_after = after.stability
        attempt.difficulty_after = after.difficulty
        attempt.scheduled_days_after = after.scheduled_days
    return attempt


def _attempt_to_dict(attempt: Attempt) -> dict:
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "item_id": attempt.item_id,
        "session_id": attempt.session_id,
        "presented_at": attempt.presented_at,
        "answered_at": attempt.answered_at,
        "seconds_spent": attempt.seconds_spent,
        "response": attempt.response,
        "result": attempt.result,
        "rating": attempt.rating,
        "state_before": attempt.state_before,
        "stability_before": attempt.stability_before,
        "difficulty_before": attempt.difficulty_before,
        "state_after": attempt.state_after,
        "stability_after": attempt.stability_after,
        "difficulty_after": attempt.difficulty_after,
        "scheduled_days_after": attempt.scheduled_days_after,
    }
