"""
springbattle.services.report_service — Report Text Builders
============================================================

Turns aggregation results into plain-text chat messages:

- **Daily digest** — one reporting day's guild sums and top lists, plus
  the all-time top 3 per guild.
- **All-time summary** — participants, distance and entry counts, top 5.
- **Status comparison** — per-sport winner, category tally, verdict.
- **Personal stats** — a user's own per-sport sums.

All numbers are rounded to one decimal here and nowhere else.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from springbattle.constants import (
    REPORT_GUILD_ORDER,
    SUMMARY_GUILD_ORDER,
    TROPHY,
    VERDICT_EVEN,
    VERDICT_KIK_LEADS,
    VERDICT_SIK_LEADS,
)
from springbattle.database.models import Guild, Sport
from springbattle.engine.windows import day_window, format_report_date, report_date
from springbattle.services import stats_service
from springbattle.services.stats_service import (
    LeaderboardEntry,
    SportTotals,
    UserSportTotal,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine


def _km(value: float) -> str:
    return f"{value:.1f}"


def format_leaderboard(title: str, entries: Sequence[LeaderboardEntry]) -> str:
    lines = [title]
    lines.extend(
        f"  {rank}. {entry.user_name}: {_km(entry.total_distance)} km"
        for rank, entry in enumerate(entries, 1)
    )
    return "\n".join(lines) + "\n"


def _guild_block(guild: Guild, totals: Sequence[SportTotals]) -> str:
    lines = [f"{guild.value}:"]
    lines.extend(f" - {t.sport.value}: {_km(t.for_guild(guild))} km" for t in totals)
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Daily digest
# ---------------------------------------------------------------------------
def build_daily_report(
    engine: Engine,
    day_offset: int = 0,
    now: datetime | None = None,
    *,
    daily_top: int = 5,
    all_time_top: int = 3,
) -> str:
    """Digest for the reporting day *day_offset* days from *now*."""
    start, limit = day_window(day_offset, now)
    header = f"Daily stats for {format_report_date(report_date(day_offset, now))}\n\n"

    totals = stats_service.guild_sport_totals(engine, start, limit)
    sections = ["\n".join(_guild_block(g, totals) for g in REPORT_GUILD_ORDER)]

    for guild in REPORT_GUILD_ORDER:
        top = stats_service.top_users(engine, guild, daily_top, start, limit)
        sections.append(format_leaderboard(f"{guild.value} top {daily_top}", top))

    for guild in REPORT_GUILD_ORDER:
        top = stats_service.top_users(engine, guild, all_time_top)
        sections.append(format_leaderboard(f"{guild.value} all-time top {all_time_top}", top))

    return header + "\n".join(sections)


# ---------------------------------------------------------------------------
# All-time summary
# ---------------------------------------------------------------------------
def build_all_report(engine: Engine, *, top_size: int = 5) -> str:
    """Participant counts, per-sport distance/entries, top lists."""
    lines = [
        f"{guild.value} participants: {stats_service.guild_member_count(engine, guild)}"
        for guild in SUMMARY_GUILD_ORDER
    ]
    text = "\n".join(lines) + "\n\n"

    stats = {(s.guild, s.sport): s for s in stats_service.distance_by_sport(engine)}
    for guild in SUMMARY_GUILD_ORDER:
        for sport in Sport:
            stat = stats[(guild, sport)]
            text += (
                f"{guild.value} {sport.value}: {_km(stat.distance)}km "
                f"and {stat.entries} entries\n"
            )
        text += "\n"

    boards = [
        format_leaderboard(
            f"{guild.value} top {top_size}",
            stats_service.top_users(engine, guild, top_size),
        )
        for guild in REPORT_GUILD_ORDER
    ]
    return text + "\n".join(boards)


# ---------------------------------------------------------------------------
# Status comparison
# ---------------------------------------------------------------------------
def count_category_wins(totals: Sequence[SportTotals]) -> dict[Guild, int]:
    """Sports won per guild.  A tied sport counts for nobody."""
    wins = {Guild.KIK: 0, Guild.SIK: 0}
    for t in totals:
        if t.kik_sum > t.sik_sum:
            wins[Guild.KIK] += 1
        elif t.sik_sum > t.kik_sum:
            wins[Guild.SIK] += 1
    return wins


def verdict(wins: dict[Guild, int]) -> str:
    kik, sik = wins[Guild.KIK], wins[Guild.SIK]
    if sik > kik:
        return VERDICT_SIK_LEADS.format(wins=sik)
    if kik > sik:
        return VERDICT_KIK_LEADS.format(wins=kik)
    return VERDICT_EVEN.format(wins=sik)


def build_status_report(totals: Sequence[SportTotals]) -> str:
    """Render the battle status from :func:`stats_service.guild_sport_totals`."""
    blocks = []
    for guild in REPORT_GUILD_ORDER:
        other = Guild.SIK if guild == Guild.KIK else Guild.KIK
        lines = [f"{guild.value}:"]
        for t in totals:
            mine, theirs = t.for_guild(guild), t.for_guild(other)
            suffix = f" {TROPHY}" if mine > theirs else f" (-{_km(theirs - mine)} km)"
            lines.append(f" - {t.sport.value}: {_km(mine)} km{suffix}")
        blocks.append("\n".join(lines) + "\n")

    return verdict(count_category_wins(totals)) + "\n\n" + "\n".join(blocks)


# ---------------------------------------------------------------------------
# Personal stats
# ---------------------------------------------------------------------------
def build_personal_report(rows: Sequence[UserSportTotal], *, today: bool = False) -> str:
    title = "Your personal stats for today are:" if today else "Your personal stats are:"
    body = "".join(f"{row.sport.value}: {_km(row.total)}km\n" for row in rows)
    return f"{title}\n\n{body}"
