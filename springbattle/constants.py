"""
springbattle.constants — Shared Constants
==========================================

Single source of truth for conversion factors, sanity limits, the caption
alias table, and the battle's presentation text.  Import from here instead
of duplicating in handlers, engine, and services.
"""

from __future__ import annotations

from datetime import timedelta, timezone

from springbattle.database.models import Guild, Sport

# ---------------------------------------------------------------------------
# Distance policy
# ---------------------------------------------------------------------------
STEPS_TO_KM: float = 0.0007
"""Kilometres credited per step."""

DISTANCE_SANITY_LIMIT: float = 1000.0
"""Above this a non-steps entry is assumed to be a mistake (probably steps)."""

MAX_QUANTITY: float = 10_000_000.0
"""Largest km or step count accepted; keeps echoed values inside button data."""

# Reports use a fixed UTC+3 day, whatever the server locale says.
REPORT_TZ = timezone(timedelta(hours=3))

# ---------------------------------------------------------------------------
# Caption aliases — normalized token → canonical sport.
# Extend here; the caption parser only does a dict lookup.
# ---------------------------------------------------------------------------
SPORT_ALIASES: dict[str, Sport] = {
    "running/walking": Sport.RUNNING_WALKING,
    "running": Sport.RUNNING_WALKING,
    "walking": Sport.RUNNING_WALKING,
    "r": Sport.RUNNING_WALKING,
    "w": Sport.RUNNING_WALKING,
    "biking": Sport.BIKING,
    "cycling": Sport.BIKING,
    "b": Sport.BIKING,
    "c": Sport.BIKING,
    "steps": Sport.STEPS,
    "activity": Sport.STEPS,
    "s": Sport.STEPS,
    "a": Sport.STEPS,
}

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
TROPHY = "\U0001f3c6"  # 🏆

# Order guild blocks appear in the daily digest and status report.
REPORT_GUILD_ORDER: tuple[Guild, ...] = (Guild.KIK, Guild.SIK)

# Order guild blocks appear in the all-time summary.
SUMMARY_GUILD_ORDER: tuple[Guild, ...] = (Guild.SIK, Guild.KIK)

VERDICT_SIK_LEADS = "JAPPADAIDA! Sik has the lead by winning {wins} categories."
VERDICT_KIK_LEADS = "Yy-Kaa-Kone! Kik has the lead by winning {wins} categories."
VERDICT_EVEN = "It seems to be even with {wins} category wins for both guilds."

THANKS_TEXT = "Thanks for participating!"


def unit_for(sport: Sport) -> str:
    """Unit the user types for *sport*."""
    return "steps" if sport == Sport.STEPS else "km"


def to_km(sport: Sport, value: float) -> float:
    """Convert a user-entered quantity to stored kilometres."""
    return value * STEPS_TO_KM if sport == Sport.STEPS else value
