"""
springbattle.services.user_service — Participant Registration
==============================================================

Creates users on first contact, records their guild choice, and handles
the explicit guild reset (the only operation allowed to rewrite the guild
stored on past log rows).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import update

from springbattle.database.engine import dialect_insert, get_session
from springbattle.database.models import Guild, LogRecord, User

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


class UnregisteredUserError(Exception):
    """The user has not picked a guild yet (or does not exist)."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} is not registered to a guild")
        self.user_id = user_id


def get_user(engine: Engine, user_id: int) -> User | None:
    """Fetch a detached User row, or None."""
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is not None:
            session.expunge(user)
        return user


def register_user(engine: Engine, user_id: int, user_name: str) -> None:
    """Insert a guild-less user; existing users are left untouched."""
    stmt = (
        dialect_insert(engine, User.__table__)
        .values(id=user_id, user_name=user_name, guild=None)
        .on_conflict_do_nothing(index_elements=["id"])
    )
    with get_session(engine) as session:
        session.execute(stmt)
    logger.info("Registered user %d (%s)", user_id, user_name)


def set_guild(engine: Engine, user_id: int, guild: Guild) -> bool:
    """Set the user's guild.  Past log rows keep their guild.

    Returns False if the user does not exist.
    """
    with get_session(engine) as session:
        result = session.execute(
            update(User).where(User.id == user_id).values(guild=guild)
        )
        changed = result.rowcount > 0
    if changed:
        logger.info("User %d joined %s", user_id, guild)
    return changed


def reset_guild(engine: Engine, user_id: int, guild: Guild) -> int:
    """Move the user to *guild* and rewrite the guild on all their logs.

    Returns the number of log rows rewritten.
    """
    with get_session(engine) as session:
        session.execute(update(User).where(User.id == user_id).values(guild=guild))
        result = session.execute(
            update(LogRecord).where(LogRecord.user_id == user_id).values(guild=guild)
        )
        rewritten = result.rowcount
    logger.info("User %d reset to %s (%d logs rewritten)", user_id, guild, rewritten)
    return rewritten


def update_name(engine: Engine, user_id: int, user_name: str) -> bool:
    with get_session(engine) as session:
        result = session.execute(
            update(User).where(User.id == user_id).values(user_name=user_name)
        )
        return result.rowcount > 0


def delete_user(engine: Engine, user_id: int) -> bool:
    """Remove a user together with their logs and pending log event."""
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            return False
        session.delete(user)
    logger.info("Deleted user %d", user_id)
    return True


def require_guild(engine: Engine, user_id: int) -> Guild:
    """Return the user's guild or raise :class:`UnregisteredUserError`."""
    user = get_user(engine, user_id)
    if user is None or user.guild is None:
        raise UnregisteredUserError(user_id)
    return user.guild

