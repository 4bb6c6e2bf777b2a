"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

import pandas as pd
from sqlalchemy.orm import Session

from hsat.analytics.constants import ATTEMPT_COLUMNS
from hsat.models import Attempt, Item, UserItemState


CARD_COLUMNS = ["item_id", "state", "due", "stability", "last_review"]


def load_attempts_df(session: Session, user_id: str) -> pd.DataFrame:
    """
    Load a user's attempts, joined to item subject/topic, into a dataframe.
    """
    rows = (
        session.query(
            Attempt.item_id,
            Item.subject,
            Item.topic,
            Attempt.answered_at,
            Attempt.result,
            Attempt.rating,
            Attempt.seconds_spent,
            Attempt.session_id,
        )
        .join(Item, Item.id == Attempt.item_id)
        .filter(Attempt.user_id == user_id)
        .all()
    )
    if not rows:
        return pd.DataFrame(columns=ATTEMPT_COLUMNS)

    df = pd.DataFrame([row._asdict() for row in rows])
    df["answered_at"] = pd.to_datetime(df["answered_at"], utc=True, errors="coerce")
    df = df.dropna(subset=["item_id", "answered_at"])
    df["day_utc"] = df["answered_at"].dt.floor("D")
    df = df.sort_values("answered_at").reset_index(drop=True)
    return df[ATTEMPT_COLUMNS]


def load_card_states_df(session: Session, user_id: str) -> pd.DataFrame:
    """
    Load current card states for a user.
    """
    rows = (
        session.query(
            UserItemState.item_id,
            UserItemState.state,
            UserItemState.due,
            UserItemState.stability,
            UserItemState.last_review,
        )
        .filter(UserItemState.user_id == user_id)
        .all()
    )
    if not rows:
        return pd.DataFrame(columns=CARD_COLUMNS)

    df = pd.DataFrame([row._asdict() for row in rows])
    df["due"] = pd.to_datetime(df["due"], utc=True, errors="coerce")
    df["last_review"] = pd.to_datetime(df["last_review"], utc=True, errors="coerce")
    return df[CARD_COLUMNS]
