"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import BigInteger, Engine, create_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from springbattle.database.models import Base, Guild, LogRecord, Sport, User


# ---------------------------------------------------------------------------
# SQLite only autoincrements INTEGER PRIMARY KEY, so render BigInteger as
# INTEGER when compiling for SQLite.
# ---------------------------------------------------------------------------
@compiles(BigInteger, "sqlite")
def _compile_bigint_as_integer(type_, compiler, **kw):
    return "INTEGER"


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Spring Battle tables.

    StaticPool keeps one shared connection so worker threads started by
    ``run_db`` see the same database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------
@pytest.fixture
def add_user(db_engine: Engine):
    """Insert a user row directly, bypassing the service layer."""
    def _add(user_id: int, name: str, guild: Guild | None) -> None:
        with Session(db_engine) as session:
            session.add(User(id=user_id, user_name=name, guild=guild))
            session.commit()
    return _add


@pytest.fixture
def add_log(db_engine: Engine):
    """Insert a log row with an explicit guild and optional timestamp."""
    def _add(
        user_id: int,
        guild: Guild,
        sport: Sport,
        distance: float,
        created_at: datetime | None = None,
    ) -> None:
        with Session(db_engine) as session:
            record = LogRecord(user_id=user_id, guild=guild, sport=sport, distance=distance)
            if created_at is not None:
                record.created_at = created_at
            session.add(record)
            session.commit()
    return _add
