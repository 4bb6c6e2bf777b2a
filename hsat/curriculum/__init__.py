"""
Curriculum package exports.
"""

from hsat.curriculum.constants import TOPIC_PHASES, WeekPhase
from hsat.curriculum.phases import (
    calculate_week_number,
    current_phase,
    phase_for_week,
    topic_phase,
    topic_weight,
)

__all__ = [
    "TOPIC_PHASES",
    "WeekPhase",
    "calculate_week_number",
    "current_phase",
    "phase_for_week",
    "topic_phase",
    "topic_weight",
]
