"""
springbattle.database.engine — Database Connection & Async Helper
==================================================================

python-telegram-bot runs its handlers on an ``asyncio`` event loop, while
SQLAlchemy + psycopg2 is synchronous.  Handlers therefore never touch the
database directly; they ship a plain sync function to a worker thread:

    1. An update arrives from Telegram (async world).
    2. The handler calls ``await run_db(some_function, engine, arg1)``.
    3. ``run_db`` runs the function via ``asyncio.to_thread()``.
    4. The result is awaited back in the handler, which replies to the user.

Usage::

    from springbattle.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async handler:
    user = await run_db(get_user, engine, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from springbattle.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine`.

    *url* defaults to the ``DATABASE_URL`` env var.  The pool is small;
    one bot process with human-paced traffic never needs more.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,   # Reconnect stale connections automatically
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`springbattle.database.models`.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` stays as a safety net for dev/test.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Dialect-aware INSERT (for ON CONFLICT upserts)
# ---------------------------------------------------------------------------
def dialect_insert(engine: Engine, table):
    """Return an ``insert(table)`` that supports ``on_conflict_do_*``.

    PostgreSQL in production, SQLite in tests; both dialects expose the
    same ``on_conflict_do_nothing`` / ``on_conflict_do_update`` API.
    """
    if engine.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif engine.dialect.name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"No upsert support for dialect {engine.dialect.name!r}")
    return insert(table)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that commits on success and rolls back
    on exception.

    Usage::

        with get_session(engine) as session:
            session.add(User(id=123, user_name="Maija"))
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Every DB call in a handler goes through this wrapper::

        result = await run_db(my_sync_db_function, engine, user_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
