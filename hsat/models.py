"""
SQLAlchemy ORM Models for the HSAT Practice Database

Defines the item bank, per-user card state, the attempt log and the
aggregate stat tables.

Timestamps on card state and attempts are stored as canonical ISO-8601 UTC
strings (fixed width), so string comparison orders them by instant.
"""

from sqlalchemy import Column, Date, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

TIMESTAMP_LENGTH = 32


class Item(Base):
    """
    A single practice question from the item bank.
    """
    __tablename__ = 'items'

    id = Column(String(255), primary_key=True)
    subject = Column(String(20), nullable=False)  # "math" or "reading"
    topic = Column(String(100), nullable=False)
    subtopic = Column(String(100), nullable=True)

    stem = Column(Text, nullable=False, default="")
    answer_key = Column(String(20), nullable=False)
    rationale = Column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<Item({self.id}, {self.subject}/{self.topic})>"


class UserItemState(Base):
    """
    Persistent FSRS state for a single (user_id, item_id) pair.

    Created the first time an item is selected for a user and overwritten
    after every attempt; never deleted.
    """
    __tablename__ = 'user_item_state'

    # Primary key: composite of user_id and item_id
    user_id = Column(String(255), primary_key=True, nullable=False)
    item_id = Column(String(255), primary_key=True, nullable=False)

    due = Column(String(TIMESTAMP_LENGTH), nullable=False, index=True)
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)

    # Historical only: recomputed by the scheduler on every review
    elapsed_days = Column(Float, nullable=False, default=0.0)
    scheduled_days = Column(Integer, nullable=False, default=0)

    learning_steps = Column(Integer, nullable=False, default=0)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    state = Column(String(20), nullable=False)  # new / learning / review / relearning
    last_review = Column(String(TIMESTAMP_LENGTH), nullable=True)
    first_seen_at = Column(String(TIMESTAMP_LENGTH), nullable=True)

    def __repr__(self):
        return f"<UserItemState({self.user_id}, {self.item_id}, {self.state})>"


class Attempt(Base):
    """
    Log entry for a single answered item. Append-only.

    Captures the response and the card state before/after scheduling.
    """
    __tablename__ = 'attempts'

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(255), nullable=False, index=True)
    item_id = Column(String(255), nullable=False, index=True)
    session_id = Column(String(255), nullable=True)

    presented_at = Column(String(TIMESTAMP_LENGTH), nullable=False)
    answered_at = Column(String(TIMESTAMP_LENGTH), nullable=False)
    seconds_spent = Column(Float, nullable=False)

    response = Column(String(255), nullable=False)
    result = Column(String(20), nullable=False)  # "correct" / "incorrect"
    rating = Column(String(20), nullable=True)  # None for exam attempts

    # State before review
    state_before = Column(String(20), nullable=True)
    stability_before = Column(Float, nullable=True)
    difficulty_before = Column(Float, nullable=True)

    # State after review
    state_after = Column(String(20), nullable=True)
    stability_after = Column(Float, nullable=True)
    difficulty_after = Column(Float, nullable=True)
    scheduled_days_after = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<Attempt(id={self.id}, {self.item_id}, result={self.result})>"


class TopicStat(Base):
    """
    Running aggregates for one (user, subject, topic).
    """
    __tablename__ = 'topic_stats'

    user_id = Column(String(255), primary_key=True, nullable=False)
    subject = Column(String(20), primary_key=True, nullable=False)
    topic = Column(String(100), primary_key=True, nullable=False)

    total_attempts = Column(Integer, nullable=False, default=0)
    total_correct = Column(Integer, nullable=False, default=0)
    recent_attempts = Column(Integer, nullable=False, default=0)
    recent_correct = Column(Integer, nullable=False, default=0)
    avg_time_seconds = Column(Float, nullable=True)
    mastery_score = Column(Float, nullable=True)  # Null until enough attempts
    last_attempted_at = Column(String(TIMESTAMP_LENGTH), nullable=True)

    def __repr__(self):
        return f"<TopicStat({self.user_id}, {self.subject}/{self.topic})>"


class DailyStat(Base):
    """
    Per-user totals for one calendar day (UTC).
    """
    __tablename__ = 'daily_stats'

    user_id = Column(String(255), primary_key=True, nullable=False)
    stat_date = Column(Date, primary_key=True, nullable=False)

    items_studied = Column(Integer, nullable=False, default=0)
    items_correct = Column(Integer, nullable=False, default=0)
    items_incorrect = Column(Integer, nullable=False, default=0)
    new_items_seen = Column(Integer, nullable=False, default=0)
    reviews_completed = Column(Integer, nullable=False, default=0)
    total_seconds = Column(Float, nullable=False, default=0.0)

    math_correct = Column(Integer, nullable=False, default=0)
    math_total = Column(Integer, nullable=False, default=0)
    reading_correct = Column(Integer, nullable=False, default=0)
    reading_total = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DailyStat({self.user_id}, {self.stat_date})>"
