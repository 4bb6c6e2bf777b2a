"""
Constants for attempt aggregation and progress analytics.
"""

from __future__ import annotations

from typing import Final


# mastery_score stays undefined until a topic has this many attempts
MASTERY_MIN_ATTEMPTS: Final[int] = 3

# Width of the "recent" window for topic counters
RECENT_WINDOW_DAYS: Final[int] = 14

ATTEMPT_COLUMNS: Final[list[str]] = [
    "item_id",
    "subject",
    "topic",
    "answered_at",
    "result",
    "rating",
    "seconds_spent",
    "session_id",
    "day_utc",
]

TOPIC_MASTERY_COLUMNS: Final[list[str]] = [
    "subject",
    "topic",
    "attempts",
    "correct",
    "accuracy",
    "avg_seconds",
    "mastery_score",
]
