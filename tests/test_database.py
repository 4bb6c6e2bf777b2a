import pytest
from sqlalchemy import inspect

from hsat.database import (
    get_database_url,
    init_db,
    insert_if_absent,
    is_test_mode,
    reset_db,
    session_scope,
)
from hsat.models import TopicStat


def test_database_url_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValueError):
        get_database_url()


def test_test_mode_swaps_database_name(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost:5432/hsat_db")
    monkeypatch.setenv("TEST_MODE", "true")
    assert is_test_mode()
    assert get_database_url() == "postgresql://u:p@localhost:5432/test_hsat_db"


def test_prod_mode_keeps_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost:5432/hsat_db")
    monkeypatch.setenv("TEST_MODE", "false")
    assert get_database_url() == "postgresql://u:p@localhost:5432/hsat_db"


def test_init_and_reset_are_repeatable(engine):
    init_db(engine)
    reset_db(engine)
    tables = set(inspect(engine).get_table_names())
    assert {"items", "user_item_state", "attempts", "topic_stats", "daily_stats"} <= tables


def test_insert_if_absent_creates_once(session_factory):
    with session_scope(session_factory) as session:
        assert insert_if_absent(session, TopicStat, user_id="u1", subject="math", topic="ratios")
        assert not insert_if_absent(session, TopicStat, user_id="u1", subject="math", topic="ratios")

    with session_scope(session_factory) as session:
        row = session.query(TopicStat).one()
        assert row.total_attempts == 0
        assert row.mastery_score is None
