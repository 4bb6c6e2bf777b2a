"""
Card Store - Persisted FSRS state keyed by (user_id, item_id)

Thin layer between UserItemState rows and CardRecord values. Every write
replaces the whole row, so a record read, scheduled and written back can
never mix fields from two different reviews.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from hsat.database import insert_if_absent
from hsat.fsrs.mappers import card_to_record
from hsat.fsrs.memory_state import create_empty_card, format_timestamp
from hsat.models import UserItemState
from hsat.schemas import CardRecord

logger = logging.getLogger(__name__)

_CARD_FIELDS = tuple(CardRecord.model_fields)


class SqlCardStore:
    """
    Card state repository over an open session.

    The caller owns the transaction (see database.session_scope).
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str, item_id: str) -> Optional[CardRecord]:
        """
        Load the card state, None if the item was never seen by this user.
        """
        row = self.session.get(UserItemState, (user_id, item_id))
        return _row_to_record(row) if row is not None else None

    def get_for_update(self, user_id: str, item_id: str) -> Optional[CardRecord]:
        """
        Like get, but locks the row until the transaction ends.

        Returns None without any lock when the row is absent; use
        get_or_create_for_update before a read-modify-write.
        """
        row = (
            self.session.query(UserItemState)
            .filter(
                UserItemState.user_id == user_id,
                UserItemState.item_id == item_id,
            )
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        return _row_to_record(row) if row is not None else None

    def get_or_create_for_update(self, user_id: str, item_id: str, now: Optional[datetime] = None) -> CardRecord:
        """
        Locked read of the card, creating it (new, due now) first if absent.

        Concurrent attempts on a never-seen item all lock the same row, so
        the later one schedules from the earlier one's result. On SQLite the
        insert takes the database write lock instead.
        """
        self._insert_new(user_id, item_id, now)
        return self.get_for_update(user_id, item_id)

    def upsert(self, user_id: str, item_id: str, record: CardRecord, first_seen_at: Optional[datetime] = None):
        """
        Insert or fully replace the card state row.

        first_seen_at is only written when the row is created.
        """
        row = self.session.get(UserItemState, (user_id, item_id))
        if row is None:
            row = UserItemState(user_id=user_id, item_id=item_id)
            row.first_seen_at = format_timestamp(first_seen_at) if first_seen_at else record.due
            self.session.add(row)

        for field in _CARD_FIELDS:
            setattr(row, field, getattr(record, field))
        self.session.flush()

    def ensure_new(self, user_id: str, item_id: str, now: Optional[datetime] = None) -> CardRecord:
        """
        Return the stored card, creating a new one (due now) on first selection.
        """
        if self._insert_new(user_id, item_id, now):
            logger.debug("Created new card for user=%s item=%s", user_id, item_id)
        return self.get(user_id, item_id)

    def due_records(self, user_id: str, as_of: datetime) -> dict[str, CardRecord]:
        """
        Cards due at or before as_of, keyed by item_id.
        """
        rows = (
            self.session.query(UserItemState)
            .filter(
                UserItemState.user_id == user_id,
                UserItemState.due <= format_timestamp(as_of),
            )
            .order_by(UserItemState.due)
            .all()
        )
        return {row.item_id: _row_to_record(row) for row in rows}

    def _insert_new(self, user_id: str, item_id: str, now: Optional[datetime]) -> bool:
        record = card_to_record(create_empty_card(now))
        return insert_if_absent(
            self.session,
            UserItemState,
            user_id=user_id,
            item_id=item_id,
            first_seen_at=record.due,
            **{field: getattr(record, field) for field in _CARD_FIELDS},
        )


def _row_to_record(row: UserItemState) -> CardRecord:
    return CardRecord(**{field: getattr(row, field) for field in _CARD_FIELDS})
