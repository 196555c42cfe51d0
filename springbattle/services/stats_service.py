"""
springbattle.services.stats_service — Aggregation Queries
==========================================================

Read-only SUM / COUNT / GROUP BY queries over ``logs``.  Every query takes
an optional half-open window ``[start, limit)`` on ``created_at``.

Results are always zero-filled over the fixed :class:`Sport` (and
:class:`Guild`) enumerations, so a report never silently drops a row just
because nobody has logged that sport yet.  Sums stay unrounded floats;
rounding is a rendering concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Select, func, select

from springbattle.database.engine import get_session
from springbattle.database.models import Guild, LogRecord, Sport, User

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result rows
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SportTotals:
    """Both guilds' summed distance for one sport."""

    sport: Sport
    kik_sum: float = 0.0
    sik_sum: float = 0.0

    def for_guild(self, guild: Guild) -> float:
        return self.kik_sum if guild == Guild.KIK else self.sik_sum


@dataclass(frozen=True, slots=True)
class GuildSportStat:
    guild: Guild
    sport: Sport
    distance: float = 0.0
    entries: int = 0


@dataclass(frozen=True, slots=True)
class UserSportTotal:
    sport: Sport
    total: float = 0.0


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    user_id: int
    user_name: str
    total_distance: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _windowed(stmt: Select, start: datetime | None, limit: datetime | None) -> Select:
    if start is not None:
        stmt = stmt.where(LogRecord.created_at >= start)
    if limit is not None:
        stmt = stmt.where(LogRecord.created_at < limit)
    return stmt


def _sums_by_guild_sport(
    engine: Engine, start: datetime | None, limit: datetime | None
) -> dict[tuple[Guild, Sport], tuple[float, int]]:
    stmt = _windowed(
        select(
            LogRecord.guild,
            LogRecord.sport,
            func.sum(LogRecord.distance).label("distance"),
            func.count(LogRecord.id).label("entries"),
        ).group_by(LogRecord.guild, LogRecord.sport),
        start,
        limit,
    )
    with get_session(engine) as session:
        rows = session.execute(stmt).all()
    return {
        (row.guild, row.sport): (float(row.distance or 0.0), int(row.entries))
        for row in rows
    }


# ---------------------------------------------------------------------------
# Public queries
# ---------------------------------------------------------------------------
def guild_sport_totals(
    engine: Engine,
    start: datetime | None = None,
    limit: datetime | None = None,
) -> list[SportTotals]:
    """One :class:`SportTotals` per sport, in enumeration order."""
    sums = _sums_by_guild_sport(engine, start, limit)
    return [
        SportTotals(
            sport=sport,
            kik_sum=sums.get((Guild.KIK, sport), (0.0, 0))[0],
            sik_sum=sums.get((Guild.SIK, sport), (0.0, 0))[0],
        )
        for sport in Sport
    ]


def distance_by_sport(
    engine: Engine,
    start: datetime | None = None,
    limit: datetime | None = None,
) -> list[GuildSportStat]:
    """Distance and entry count (log rows) for every (guild, sport) pair."""
    sums = _sums_by_guild_sport(engine, start, limit)
    return [
        GuildSportStat(guild, sport, *sums.get((guild, sport), (0.0, 0)))
        for guild in Guild
        for sport in Sport
    ]


def user_sport_totals(
    engine: Engine,
    user_id: int,
    start: datetime | None = None,
    limit: datetime | None = None,
) -> list[UserSportTotal]:
    """Per-sport sums for one user, zero-filled, in enumeration order."""
    stmt = _windowed(
        select(LogRecord.sport, func.sum(LogRecord.distance).label("total"))
        .where(LogRecord.user_id == user_id)
        .group_by(LogRecord.sport),
        start,
        limit,
    )
    with get_session(engine) as session:
        sums = {row.sport: float(row.total or 0.0) for row in session.execute(stmt)}
    return [UserSportTotal(sport, sums.get(sport, 0.0)) for sport in Sport]


def top_users(
    engine: Engine,
    guild: Guild,
    limit: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Top *limit* users of *guild* by summed distance, descending.

    Guild membership is taken from the log rows, not the user table, so a
    history snapshot counts for the guild it was logged under.  There is
    no secondary sort key: tied users come back in whatever order the
    database produces.
    """
    total = func.sum(LogRecord.distance).label("total_distance")
    stmt = _windowed(
        select(User.id, User.user_name, total)
        .select_from(LogRecord)
        .join(User, LogRecord.user_id == User.id)
        .where(LogRecord.guild == guild)
        .group_by(User.id, User.user_name)
        .order_by(total.desc())
        .limit(limit),
        start,
        end,
    )
    with get_session(engine) as session:
        rows = session.execute(stmt).all()
    return [
        LeaderboardEntry(user_id=r.id, user_name=r.user_name, total_distance=float(r.total_distance))
        for r in rows
    ]


def guild_member_count(engine: Engine, guild: Guild) -> int:
    """Number of users registered to *guild*."""
    with get_session(engine) as session:
        return session.scalar(
            select(func.count(User.id)).where(User.guild == guild)
        ) or 0
