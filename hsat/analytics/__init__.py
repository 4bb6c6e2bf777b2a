"""
Analytics package exports.
"""

from hsat.analytics.aggregation import mastery_score, update_daily_stat, update_topic_stat
from hsat.analytics.service import build_progress_summary
from hsat.analytics.types import DailyStatSnapshot, ProgressSummary, TopicStatSnapshot

__all__ = [
    "mastery_score",
    "update_daily_stat",
    "update_topic_stat",
    "build_progress_summary",
    "DailyStatSnapshot",
    "ProgressSummary",
    "TopicStatSnapshot",
]
