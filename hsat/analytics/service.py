"""
Service layer to assemble a learner's progress summary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hsat.analytics.metrics import (
    build_day_index,
    compute_daily_accuracy,
    compute_daily_attempts,
    compute_due_count,
    compute_mean_retrievability,
    compute_overall_accuracy,
    compute_topic_mastery,
)
from hsat.analytics.queries import load_attempts_df, load_card_states_df
from hsat.analytics.types import ProgressSummary
from hsat.fsrs.memory_state import ensure_utc, utc_now


def build_progress_summary(session: Session, user_id: str, now: Optional[datetime] = None) -> ProgressSummary:
    """
    Build all KPI values and series needed by the progress page.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    attempts_df = load_attempts_df(session, user_id)
    cards_df = load_card_states_df(session, user_id)
    day_index = build_day_index(attempts_df)

    return ProgressSummary(
        total_attempts=len(attempts_df),
        overall_accuracy=compute_overall_accuracy(attempts_df),
        items_seen=len(cards_df),
        due_now=compute_due_count(cards_df, now),
        mean_retrievability=compute_mean_retrievability(cards_df, now),
        daily_accuracy=compute_daily_accuracy(attempts_df, day_index),
        daily_attempts=compute_daily_attempts(attempts_df, day_index),
        topic_mastery=compute_topic_mastery(attempts_df),
    )
