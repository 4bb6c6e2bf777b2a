"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from hsat.database import get_session_factory, init_db
from hsat.fsrs.config import SchedulerConfig
from hsat.fsrs.scheduling import Scheduler
from hsat.schemas import CardRecord


T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_record(
    state: str = "review",
    due: Optional[datetime] = None,
    stability: float = 5.0,
    difficulty: float = 5.0,
    last_review: Optional[datetime] = None,
    **overrides,
) -> CardRecord:
    """A stored card with sensible defaults for the given state."""
    fields = dict(
        due=due or T0,
        stability=stability,
        difficulty=difficulty,
        elapsed_days=0.0,
        scheduled_days=0,
        learning_steps=0,
        reps=1,
        lapses=0,
        state=state,
        last_review=last_review,
    )
    fields.update(overrides)
    return CardRecord(**fields)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def config() -> SchedulerConfig:
    return SchedulerConfig()


@pytest.fixture
def long_term_config() -> SchedulerConfig:
    """Day-scale scheduling only, no learning steps."""
    return SchedulerConfig(enable_short_term=False)


@pytest.fixture
def fuzz_config() -> SchedulerConfig:
    return SchedulerConfig(enable_fuzz=True, maximum_interval=365)


@pytest.fixture
def scheduler(config) -> Scheduler:
    return Scheduler(config, clock=lambda: T0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed SQLite: one connection per session, short lock timeout."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'hsat.db'}",
        connect_args={"timeout": 0.1},
    )
    init_db(engine)
    yield get_session_factory(engine)
    engine.dispose()
