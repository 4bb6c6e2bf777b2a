"""
FSRS - Free Spaced Repetition Scheduler

Memory model for the HSAT practice system.

This package implements FSRS-5 scheduling with:
- Power-law forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY
- Interpretable memory state (Stability, Difficulty, Retrievability)
- Minute-scale (re)learning steps before day-scale intervals
- Optional interval fuzz, seeded so previews match real reviews

Quick start:
    from hsat.fsrs import SchedulerConfig
    from hsat.fsrs.scheduling import Scheduler

    scheduler = Scheduler(SchedulerConfig.from_env())

    # Schedule a review (algorithm only, no DB calls)
    result = scheduler.schedule_review(record, "good")

    # What would each grade do?
    preview = scheduler.get_schedule_preview(record)
"""

# Core scheduler API (algorithm logic)
from hsat.fsrs.scheduler import process_review

# Configuration
from hsat.fsrs.config import SchedulerConfig

# Constants and parameters
from hsat.fsrs.constants import (
    Grade,
    State,
    DECAY,
    FACTOR,
    S_MIN,
    S_MAX,
    D_MIN,
    D_MAX,
    DEFAULT_WEIGHTS,
)

# Memory state (for advanced usage)
from hsat.fsrs.memory_state import (
    Card,
    calculate_retrievability,
    create_empty_card,
)


__all__ = [
    # Core algorithm
    "process_review",

    # Configuration
    "SchedulerConfig",

    # Enums
    "Grade",
    "State",

    # Memory state
    "Card",
    "calculate_retrievability",
    "create_empty_card",

    # Parameters
    "DECAY",
    "FACTOR",
    "S_MIN",
    "S_MAX",
    "D_MIN",
    "D_MAX",
    "DEFAULT_WEIGHTS",
]
