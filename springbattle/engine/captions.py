"""
springbattle.engine.captions — Caption & Distance Parsing
==========================================================

Turns free text into numbers and photo captions into ``(sport, value)``
pairs.  Pure functions, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from springbattle.constants import MAX_QUANTITY, SPORT_ALIASES
from springbattle.database.models import Sport

__all__ = [
    "CaptionMatch",
    "DistanceValidationError",
    "parse_caption",
    "parse_distance",
    "parse_number",
]


class DistanceValidationError(ValueError):
    """User input is not a positive number within MAX_QUANTITY."""


def parse_number(text: str) -> float | None:
    """Parse *text* as a finite float, or return None."""
    try:
        value = float(text.strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_distance(text: str) -> float:
    """Parse a typed distance/step count.

    Raises
    ------
    DistanceValidationError
        If *text* is not numeric or is not strictly positive,
        or exceeds :data:`MAX_QUANTITY`.
    """
    value = parse_number(text)
    if value is None:
        raise DistanceValidationError(f"not a number: {text!r}")
    if value <= 0:
        raise DistanceValidationError(f"must be positive: {value}")
    if value > MAX_QUANTITY:
        raise DistanceValidationError(f"too large: {value}")
    return value


@dataclass(frozen=True, slots=True)
class CaptionMatch:
    """A caption of the form ``<token>, <number>``.

    ``sport`` is None when the token is not in the alias table.
    """

    token: str
    value: float
    sport: Sport | None = None


def parse_caption(caption: str | None) -> CaptionMatch | None:
    """Split *caption* into token and number.

    Returns None unless the caption has exactly two comma-separated parts
    and the second one is a non-zero number.  Token matching is
    case-insensitive.
    """
    if not caption:
        return None

    parts = [part.strip().lower() for part in caption.split(",")]
    if len(parts) != 2:
        return None

    value = parse_number(parts[1])
    if not value:
        return None

    token = parts[0]
    return CaptionMatch(token=token, value=value, sport=SPORT_ALIASES.get(token))
