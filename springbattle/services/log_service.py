"""
springbattle.services.log_service — Pending Events & Log Persistence
=====================================================================

Shared service module used by the bot handlers.  Reads a user's pending
log event, runs it through the pure state machine in
:mod:`springbattle.engine.logging_flow`, and persists the outcome.

Every write here is its own short transaction.  A multi-step outcome
("insert log, then delete pending event") is deliberately not wrapped in
one transaction: a crash in between leaves a stale pending event behind,
which the next photo submission overwrites anyway.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update

from springbattle.database.engine import dialect_insert, get_session
from springbattle.database.models import LogRecord, PendingLogEvent, Sport, User, utcnow
from springbattle.engine.logging_flow import (
    NO_PENDING_TEXT,
    Event,
    PendingAction,
    PendingState,
    Transition,
    advance,
)
from springbattle.services.user_service import UnregisteredUserError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pending log events
# ---------------------------------------------------------------------------
def get_pending(engine: Engine, user_id: int) -> PendingState | None:
    """Return the user's pending log event as a :class:`PendingState`, or None."""
    with get_session(engine) as session:
        sport = session.execute(
            select(PendingLogEvent.sport).where(PendingLogEvent.user_id == user_id)
        ).first()
    if sport is None:
        return None
    return PendingState(sport=sport[0])


def upsert_pending(engine: Engine, user_id: int) -> None:
    """Create the pending event, or reset an existing one's sport to NULL."""
    now = utcnow()
    stmt = dialect_insert(engine, PendingLogEvent.__table__).values(
        user_id=user_id, created_at=now, sport=None
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={"sport": None, "created_at": now},
    )
    with get_session(engine) as session:
        session.execute(stmt)


def set_pending_sport(engine: Engine, user_id: int, sport: Sport) -> bool:
    """Store the chosen sport.  Returns False if there is no pending event."""
    with get_session(engine) as session:
        result = session.execute(
            update(PendingLogEvent)
            .where(PendingLogEvent.user_id == user_id)
            .values(sport=sport)
        )
        return result.rowcount > 0


def delete_pending(engine: Engine, user_id: int) -> bool:
    """Delete the user's pending event.  Safe to call when there is none."""
    with get_session(engine) as session:
        result = session.execute(
            delete(PendingLogEvent).where(PendingLogEvent.user_id == user_id)
        )
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Log records
# ---------------------------------------------------------------------------
def insert_log(
    engine: Engine,
    user_id: int,
    sport: Sport,
    distance_km: float,
    created_at: datetime | None = None,
) -> LogRecord:
    """Append a log row, stamping it with the user's *current* guild.

    Raises
    ------
    UnregisteredUserError
        If the user does not exist or has no guild.
    """
    if distance_km < 0:
        raise ValueError(f"distance must be non-negative, got {distance_km}")

    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None or user.guild is None:
            raise UnregisteredUserError(user_id)

        record = LogRecord(
            user_id=user_id,
            guild=user.guild,
            sport=sport,
            distance=distance_km,
            created_at=created_at or utcnow(),
        )
        session.add(record)
        session.flush()
        session.expunge(record)

    logger.info(
        "Recorded %s %.3f km for user %d (%s)",
        sport, distance_km, user_id, record.guild,
    )
    return record


# ---------------------------------------------------------------------------
# State machine driver
# ---------------------------------------------------------------------------
def apply_transition(engine: Engine, user_id: int, transition: Transition) -> Transition:
    """Persist *transition* and return the transition to report to the user.

    The returned transition differs from the input only when the pending
    event vanished under us (e.g. a /cancel raced a sport button).
    """
    if transition.log is not None:
        insert_log(engine, user_id, transition.log.sport, transition.log.distance_km)

    match transition.action:
        case PendingAction.UPSERT_CLEARED:
            upsert_pending(engine, user_id)
        case PendingAction.SET_SPORT:
            assert transition.sport is not None
            if not set_pending_sport(engine, user_id, transition.sport):
                return replace(
                    transition, action=PendingAction.KEEP, replies=(NO_PENDING_TEXT,)
                )
        case PendingAction.DELETE:
            delete_pending(engine, user_id)
        case PendingAction.KEEP:
            pass

    return transition


def process_event(engine: Engine, user_id: int, event: Event) -> Transition:
    """Run one inbound logging event through the full pipeline.

    1. Load the pending event
    2. Compute the transition (pure)
    3. Persist it

    Raises
    ------
    UnregisteredUserError
        If a log must be recorded for a user without a guild.
    sqlalchemy.exc.SQLAlchemyError
        On any store failure; state may be left half-applied.
    """
    pending = get_pending(engine, user_id)
    transition = advance(pending, event)
    return apply_transition(engine, user_id, transition)
