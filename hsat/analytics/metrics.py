"""
Metric computations for progress dashboards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pandas as pd

from hsat.analytics.constants import MASTERY_MIN_ATTEMPTS, TOPIC_MASTERY_COLUMNS
from hsat.fsrs.constants import State
from hsat.fsrs.memory_state import SECONDS_PER_DAY, calculate_retrievability


def build_day_index(attempts_df: pd.DataFrame) -> pd.DatetimeIndex:
    """
    Build a dense UTC day index spanning the attempt range.
    """
    if attempts_df.empty:
        return pd.DatetimeIndex([], tz="UTC")
    start = attempts_df["day_utc"].min()
    end = attempts_df["day_utc"].max()
    return pd.date_range(start=start, end=end, freq="D")


def compute_overall_accuracy(attempts_df: pd.DataFrame) -> Optional[float]:
    """
    Fraction of correct attempts, None without attempts.
    """
    if attempts_df.empty:
        return None
    return float((attempts_df["result"] == "correct").mean())


def compute_daily_attempts(attempts_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Attempts per day, zero-filled across the index.
    """
    if attempts_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")

    counts = attempts_df.groupby("day_utc").size()
    return counts.reindex(day_index, fill_value=0).astype("int64")


def compute_daily_accuracy(attempts_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Share of correct attempts per day; NaN on days without attempts.
    """
    if attempts_df.empty or len(day_index) == 0:
        return pd.Series(dtype="float64")

    is_correct = (attempts_df["result"] == "correct").astype("float64")
    daily = is_correct.groupby(attempts_df["day_utc"]).mean()
    return daily.reindex(day_index).astype("float64")


def compute_topic_mastery(attempts_df: pd.DataFrame) -> pd.DataFrame:
    """
    Per (subject, topic) attempts, accuracy, mean time and mastery score.

    mastery_score is NaN for topics below the minimum attempt count.
    """
    if attempts_df.empty:
        return pd.DataFrame(columns=TOPIC_MASTERY_COLUMNS)

    scoped = attempts_df.assign(is_correct=(attempts_df["result"] == "correct").astype("int64"))
    table = scoped.groupby(["subject", "topic"]).agg(
        attempts=("is_correct", "size"),
        correct=("is_correct", "sum"),
        avg_seconds=("seconds_spent", "mean"),
    ).reset_index()
    table["accuracy"] = table["correct"] / table["attempts"]
    table["mastery_score"] = (table["accuracy"] * 100.0).where(
        table["attempts"] >= MASTERY_MIN_ATTEMPTS
    )
    table = table.sort_values(["subject", "topic"]).reset_index(drop=True)
    return table[TOPIC_MASTERY_COLUMNS]


def compute_due_count(cards_df: pd.DataFrame, now: datetime) -> int:
    """
    Number of cards due at or before now.
    """
    if cards_df.empty:
        return 0
    return int((cards_df["due"] <= pd.Timestamp(now)).sum())


def compute_mean_retrievability(cards_df: pd.DataFrame, now: datetime) -> Optional[float]:
    """
    Mean recall probability over reviewed cards, None if none were reviewed.
    """
    if cards_df.empty:
        return None

    reviewed = cards_df[(cards_df["state"] != State.NEW.value) & cards_df["last_review"].notna()]
    if reviewed.empty:
        return None

    elapsed = (pd.Timestamp(now) - reviewed["last_review"]).dt.total_seconds() / SECONDS_PER_DAY
    retrievability = [
        calculate_retrievability(stability, days)
        for stability, days in zip(reviewed["stability"], elapsed)
    ]
    return float(pd.Series(retrievability).mean())
