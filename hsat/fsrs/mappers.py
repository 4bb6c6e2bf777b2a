"""
Conversions between stored records and the in-memory card.

The stored shape (CardRecord) uses strings for the state and timestamps;
the memory model uses State/Grade enums and aware datetimes. These are the
only two places where one becomes the other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from hsat.fsrs.constants import Grade, State
from hsat.fsrs.memory_state import (
    Card,
    create_empty_card,
    format_timestamp,
    parse_timestamp,
)
from hsat.schemas import CardRecord, Rating


_RATING_TO_GRADE = {
    Rating.AGAIN: Grade.AGAIN,
    Rating.HARD: Grade.HARD,
    Rating.GOOD: Grade.GOOD,
    Rating.EASY: Grade.EASY,
}
_GRADE_TO_RATING = {grade: rating for rating, grade in _RATING_TO_GRADE.items()}


def record_to_card(record: Optional[CardRecord], now: Optional[datetime] = None) -> Card:
    """
    Convert a stored card state to a Card.

    A missing record maps to the empty card (new, due now). Every stored
    field is carried over as-is, including for cards in the new state.
    """
    if record is None:
        return create_empty_card(now)

    return Card(
        due=parse_timestamp(record.due),
        stability=record.stability,
        difficulty=record.difficulty,
        elapsed_days=record.elapsed_days,
        scheduled_days=record.scheduled_days,
        learning_steps=record.learning_steps,
        reps=record.reps,
        lapses=record.lapses,
        state=state_from_db(record.state),
        last_review=parse_timestamp(record.last_review) if record.last_review else None,
    )


def card_to_record(card: Card) -> CardRecord:
    """
    Convert a Card to its stored form.
    """
    return CardRecord(
        due=format_timestamp(card.due),
        stability=card.stability,
        difficulty=card.difficulty,
        elapsed_days=card.elapsed_days,
        scheduled_days=card.scheduled_days,
        learning_steps=card.learning_steps,
        reps=card.reps,
        lapses=card.lapses,
        state=state_to_db(card.state),
        last_review=format_timestamp(card.last_review) if card.last_review else None,
    )


def rating_to_grade(rating: Union[Rating, str]) -> Grade:
    """
    Map a stored rating ('again'..'easy') to a Grade.

    Raises:
        ValueError: If the rating is not one of the four known values
    """
    return _RATING_TO_GRADE[Rating(rating)]


def grade_to_rating(grade: Grade) -> Rating:
    """Map a Grade to its stored rating."""
    return _GRADE_TO_RATING[Grade(grade)]


def state_from_db(value: Union[State, str]) -> State:
    """
    Map a stored state string to a State.

    Raises:
        ValueError: If the state string is unknown
    """
    return State(value)


def state_to_db(state: State) -> str:
    """Map a State to its stored string."""
    return State(state).value


def coerce_grade(value: Union[Grade, Rating, str, int]) -> Grade:
    """
    Accept a Grade, its stored rating, or its integer value.
    """
    if isinstance(value, Grade):
        return value
    if isinstance(value, (Rating, str)):
        return rating_to_grade(value)
    return Grade(value)
