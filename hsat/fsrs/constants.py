"""
FSRS Constants and Parameters

All fixed parameters of the memory model in one place.
Tunable settings (retention target, interval cap, fuzz, learning steps)
live in SchedulerConfig instead.
"""

from __future__ import annotations

from enum import Enum, IntEnum


# ---- Grades ----

class Grade(IntEnum):
    """Learner's self-reported recall quality for one attempt."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


# ---- Card States ----

class State(str, Enum):
    """Discrete scheduling state of a card."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


# ---- Forgetting Curve ----

DECAY = -0.5
FACTOR = 19 / 81  # chosen so that R(t=S, S) == 0.9


# ---- Bounds ----

S_MIN = 0.01       # Minimum stability (days), also the epsilon for reciprocals
S_MAX = 36500.0    # Maximum stability (days)
D_MIN = 1.0        # Minimum difficulty
D_MAX = 10.0       # Maximum difficulty


# ---- FSRS-5 Default Weights ----
# w[0..3]   initial stability per grade
# w[4..5]   initial difficulty
# w[6..7]   difficulty update and mean reversion
# w[8..10]  stability growth on recall
# w[11..14] stability after a lapse
# w[15..16] hard penalty / easy bonus
# w[17..18] short-term (same-day) stability

DEFAULT_WEIGHTS = (
    0.40255, 1.18385, 3.173, 15.69105,
    7.1949, 0.5345,
    1.4604, 0.0046,
    1.54575, 0.1192, 1.01925,
    1.9395, 0.11, 0.29605, 2.2698,
    0.2315, 2.9898,
    0.51655, 0.6621,
)


# ---- Fuzz Ranges ----
# (start_days, end_days, factor): the fuzz window grows by `factor`
# for every day of the interval that falls inside [start, end).

FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.10),
    (20.0, float("inf"), 0.05),
)
FUZZ_MIN_INTERVAL = 2.5


# ---- Review Priority ----
# Additive offsets for queue ordering; the gap between adjacent states
# is larger than the stability term can ever contribute.

STATE_PRIORITY = {
    State.RELEARNING: 100.0,
    State.LEARNING: 50.0,
    State.REVIEW: 0.0,
    State.NEW: -50.0,
}
OVERDUE_WEIGHT = 10.0
STABILITY_WEIGHT = 10.0
