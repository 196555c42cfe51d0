"""
springbattle.engine.windows — Reporting Day Windows
====================================================

"Today" and "yesterday" are calendar days in the fixed UTC+3 reporting
timezone, never the server's locale.  Windows are half-open
``[start, limit)`` and returned in UTC so they compare correctly against
stored timestamps on every backend.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from springbattle.constants import REPORT_TZ


def report_date(day_offset: int = 0, now: datetime | None = None) -> date:
    """Calendar date in the reporting timezone, shifted by *day_offset* days."""
    now = now or datetime.now(UTC)
    return (now.astimezone(REPORT_TZ) + timedelta(days=day_offset)).date()


def day_window(day_offset: int = 0, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``(start, limit)`` for the reporting day *day_offset* days from now.

    ``day_offset=0`` is today, ``-1`` yesterday.
    """
    day = report_date(day_offset, now)
    start = datetime(day.year, day.month, day.day, tzinfo=REPORT_TZ)
    limit = start + timedelta(days=1)
    return start.astimezone(UTC), limit.astimezone(UTC)


def format_report_date(day: date) -> str:
    """Finnish-style date, e.g. ``5.4.2024``."""
    return f"{day.day}.{day.month}.{day.year}"
