"""
Constants for week-based topic weighting.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class WeekPhase(str, Enum):
    """Stage of the study plan, derived from the week number."""
    FUNDAMENTALS = "fundamentals"
    BALANCED = "balanced"
    APPLICATIONS = "applications"


# Last week of each phase; anything later is applications
FUNDAMENTALS_LAST_WEEK: Final[int] = 4
BALANCED_LAST_WEEK: Final[int] = 20

DAYS_PER_WEEK: Final[int] = 7

# Selection multipliers
MATCHING_PHASE_WEIGHT: Final[float] = 2.0
BALANCED_PHASE_WEIGHT: Final[float] = 1.0
OFF_PHASE_WEIGHT: Final[float] = 0.5

TOPIC_PHASES: Final[dict[str, WeekPhase]] = {
    # Math fundamentals
    "number_sense": WeekPhase.FUNDAMENTALS,
    "linear_equations": WeekPhase.FUNDAMENTALS,
    "fractions_decimals": WeekPhase.FUNDAMENTALS,

    # Math balanced
    "ratios_percents": WeekPhase.BALANCED,
    "geometry_measurement": WeekPhase.BALANCED,
    "algebraic_expressions": WeekPhase.BALANCED,

    # Math applications
    "data_probability": WeekPhase.APPLICATIONS,
    "word_problems": WeekPhase.APPLICATIONS,
    "multi_step": WeekPhase.APPLICATIONS,

    # Reading fundamentals
    "vocab_context": WeekPhase.FUNDAMENTALS,
    "main_idea": WeekPhase.FUNDAMENTALS,

    # Reading balanced
    "inference": WeekPhase.BALANCED,
    "structure_evidence": WeekPhase.BALANCED,
    "supporting_details": WeekPhase.BALANCED,

    # Reading applications
    "author_craft": WeekPhase.APPLICATIONS,
    "compare_contrast": WeekPhase.APPLICATIONS,
    "analysis": WeekPhase.APPLICATIONS,
}
