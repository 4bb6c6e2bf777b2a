"""
Pydantic models for records crossing the persistence boundary.

These define the flat, string-encoded shape of a stored card state and the
confidence choices offered to a learner after answering an item.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hsat.fsrs.constants import State
from hsat.fsrs.memory_state import format_timestamp, parse_timestamp


class Rating(str, Enum):
    """Stored form of a grade."""
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class Subject(str, Enum):
    """Test sections an item can belong to."""
    MATH = "math"
    READING = "reading"


class AttemptResult(str, Enum):
    """Outcome of answering an item."""
    CORRECT = "correct"
    INCORRECT = "incorrect"


# ---- Card State ----

class CardRecord(BaseModel):
    """
    Stored scheduling state for one (user, item) pair.

    Timestamps are kept as ISO-8601 strings and normalized on validation to
    the canonical UTC form, so equal instants always compare equal.
    elapsed_days and scheduled_days are historical: the scheduler
    recomputes them on every review.
    """
    model_config = ConfigDict(use_enum_values=True)

    due: str = Field(..., description="When the card becomes eligible for review")
    stability: float = Field(..., description="Days until recall drops to the retention target")
    difficulty: float = Field(..., description="Intrinsic hardness, 1-10 once reviewed")
    elapsed_days: float = Field(..., description="Days between the last two reviews")
    scheduled_days: int = Field(..., description="Interval chosen at the last review")
    learning_steps: int = Field(..., description="Current (re)learning step index")
    reps: int = Field(..., description="Non-failure reviews")
    lapses: int = Field(..., description="Failed reviews after graduation")
    state: State
    last_review: Optional[str] = None

    @field_validator("due", mode="before")
    @classmethod
    def _normalize_due(cls, value: Union[str, datetime]) -> str:
        return _canonical_timestamp(value)

    @field_validator("last_review", mode="before")
    @classmethod
    def _normalize_last_review(cls, value: Union[str, datetime, None]) -> Optional[str]:
        if value is None:
            return None
        return _canonical_timestamp(value)


def _canonical_timestamp(value: Union[str, datetime]) -> str:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return format_timestamp(parse_timestamp(value))


# ---- Confidence Options ----

class ConfidenceOption(BaseModel):
    """A grade choice shown to the learner after answering."""
    label: str
    description: str
    rating: Rating

    model_config = ConfigDict(frozen=True)


# Options for correct answers
CORRECT_CONFIDENCE_OPTIONS: tuple[ConfidenceOption, ...] = (
    ConfidenceOption(label="Too Easy", description="I knew it instantly", rating=Rating.EASY),
    ConfidenceOption(label="Just Right", description="I had to think about it", rating=Rating.GOOD),
    ConfidenceOption(label="Tricky", description="I almost got it wrong", rating=Rating.HARD),
)

# Options for incorrect answers
INCORRECT_CONFIDENCE_OPTIONS: tuple[ConfidenceOption, ...] = (
    ConfidenceOption(label="Total Guess", description="I didn't know this at all", rating=Rating.AGAIN),
    ConfidenceOption(label="Almost Had It", description="I was close / knew the concept", rating=Rating.HARD),
)


def confidence_options(is_correct: bool) -> tuple[ConfidenceOption, ...]:
    """Grade choices that make sense for the answer the learner gave."""
    return CORRECT_CONFIDENCE_OPTIONS if is_correct else INCORRECT_CONFIDENCE_OPTIONS
