"""
springbattle.engine.logging_flow — Logging Conversation State Machine
======================================================================

Each user is in one of three states, derived from their pending log event:

    NO_PENDING ──photo──▶ AWAITING_SPORT ──sport button──▶ AWAITING_DISTANCE
        ▲                                                        │
        └──────────── distance recorded / /cancel ───────────────┘

:func:`advance` is a pure function ``(pending, event) → Transition``.  It
never touches the database or Telegram; :mod:`springbattle.services.log_service`
applies the transition and the bot layer sends the replies.

Handler-registry layout: each inbound event type maps to one handler.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from springbattle.constants import (
    DISTANCE_SANITY_LIMIT,
    MAX_QUANTITY,
    THANKS_TEXT,
    to_km,
    unit_for,
)
from springbattle.database.models import Sport
from springbattle.engine.captions import (
    DistanceValidationError,
    parse_caption,
    parse_distance,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Button",
    "Cancelled",
    "ConversationState",
    "DistanceEntered",
    "LogEntry",
    "PendingAction",
    "PendingState",
    "PhotoSubmitted",
    "SportChosen",
    "SportFixChosen",
    "Transition",
    "advance",
    "format_quantity",
    "sport_keyboard",
]


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------
class ConversationState(enum.Enum):
    NO_PENDING = "no_pending"
    AWAITING_SPORT = "awaiting_sport"
    AWAITING_DISTANCE = "awaiting_distance"


@dataclass(frozen=True, slots=True)
class PendingState:
    """Snapshot of a user's pending log event (None sport = not chosen)."""

    sport: Sport | None = None

    @property
    def state(self) -> ConversationState:
        if self.sport is None:
            return ConversationState.AWAITING_SPORT
        return ConversationState.AWAITING_DISTANCE


def state_of(pending: PendingState | None) -> ConversationState:
    return ConversationState.NO_PENDING if pending is None else pending.state


# ---------------------------------------------------------------------------
# Inbound events
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PhotoSubmitted:
    caption: str | None = None


@dataclass(frozen=True, slots=True)
class SportChosen:
    sport: Sport


@dataclass(frozen=True, slots=True)
class DistanceEntered:
    text: str


@dataclass(frozen=True, slots=True)
class SportFixChosen:
    """Answer to the "did you mean steps?" question."""

    sport: Sport
    value: float


@dataclass(frozen=True, slots=True)
class Cancelled:
    pass


Event = PhotoSubmitted | SportChosen | DistanceEntered | SportFixChosen | Cancelled


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------
class PendingAction(enum.Enum):
    """What happens to the pending log event row."""
    KEEP = "keep"
    UPSERT_CLEARED = "upsert_cleared"  # create or reset sport to NULL
    SET_SPORT = "set_sport"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Button:
    label: str
    data: str


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A log row to insert.  ``quantity`` is what the user typed."""

    sport: Sport
    quantity: float
    distance_km: float


@dataclass(frozen=True, slots=True)
class Transition:
    action: PendingAction = PendingAction.KEEP
    sport: Sport | None = None
    log: LogEntry | None = None
    replies: tuple[str, ...] = ()
    keyboard: tuple[Button, ...] = ()


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------
ASK_SPORT_TEXT = "Please choose the sport:"
NO_PENDING_TEXT = "Something went wrong please try again."
STALE_FIX_TEXT = (
    "There is no active logging event anymore. "
    "Send a new picture to record your exercise."
)
CANCELLED_TEXT = "Succesfully stopped the logging event."
UNPARSED_CAPTION_TEXT = (
    "Seems you tried to include sport information with the photo, "
    "but I could not parse it. Sorry."
)


def format_quantity(value: float) -> str:
    """Render a user-entered number the way they typed it (5.0 → "5")."""
    return str(int(value)) if value.is_integer() else str(value)


def sport_keyboard() -> tuple[Button, ...]:
    return tuple(
        Button(sport.value, f"sport {sport.value}")
        for sport in (Sport.RUNNING_WALKING, Sport.STEPS, Sport.BIKING)
    )


def _distance_prompt(sport: Sport) -> str:
    if sport == Sport.STEPS:
        return (
            "Type the number of steps that you have walked. "
            "These are converted to kilometers automatically"
        )
    return "Type the number of kilometers using '.' as a separator, for example: 5.5"


def _validation_text(sport: Sport) -> str:
    if sport == Sport.STEPS:
        return (
            "Something went wrong with your input. Make sure you use whole "
            "numbers for steps. Please try again."
        )
    return (
        "Something went wrong with your input. Make sure you use . as "
        "separator for kilometers and meters, and that the distance is "
        "greater than zero. Please try again."
    )


def _recorded(sport: Sport, quantity: float) -> Transition:
    entry = LogEntry(sport=sport, quantity=quantity, distance_km=to_km(sport, quantity))
    return Transition(
        action=PendingAction.DELETE,
        log=entry,
        replies=(
            f"Recorded {sport.value} with {format_quantity(quantity)} {unit_for(sport)}",
            THANKS_TEXT,
        ),
    )


def _ask_sport(*preamble: str) -> Transition:
    return Transition(
        action=PendingAction.UPSERT_CLEARED,
        replies=(*preamble, ASK_SPORT_TEXT),
        keyboard=sport_keyboard(),
    )


def _is_implausible(sport: Sport, value: float) -> bool:
    return sport != Sport.STEPS and value > DISTANCE_SANITY_LIMIT


# ---------------------------------------------------------------------------
# Handlers — (pending, event) → Transition
# ---------------------------------------------------------------------------
def _on_photo(pending: PendingState | None, event: PhotoSubmitted) -> Transition:
    match = parse_caption(event.caption)
    if match is None:
        return _ask_sport()

    # parse_caption already drops zero, so only negatives and oversized
    # values are caught by the range check.
    if match.sport is None or not 0 < match.value <= MAX_QUANTITY:
        return _ask_sport(UNPARSED_CAPTION_TEXT)

    if _is_implausible(match.sport, match.value):
        return _ask_sport(
            f"I parsed that as {match.sport.value} with more than "
            f"{DISTANCE_SANITY_LIMIT:g} km. That's probably wrong."
        )

    return _recorded(match.sport, match.value)


def _on_sport(pending: PendingState | None, event: SportChosen) -> Transition:
    if pending is None:
        return Transition(replies=(NO_PENDING_TEXT,))
    return Transition(
        action=PendingAction.SET_SPORT,
        sport=event.sport,
        replies=(_distance_prompt(event.sport),),
    )


def _on_distance(pending: PendingState | None, event: DistanceEntered) -> Transition:
    # Free text with nothing to answer is ignored.
    if pending is None or pending.sport is None:
        return Transition()

    sport = pending.sport
    try:
        value = parse_distance(event.text)
    except DistanceValidationError:
        return Transition(replies=(_validation_text(sport),))

    if _is_implausible(sport, value):
        shown = format_quantity(value)
        return Transition(
            replies=(
                f"You inserted a distance exceeding {DISTANCE_SANITY_LIMIT:g} km. "
                "Are you sure you did not intend to record steps?",
            ),
            keyboard=(
                Button(f"Record as {sport.value}", f"sportFix {sport.value} {shown}"),
                Button(f"Record as {Sport.STEPS.value}", f"sportFix {Sport.STEPS.value} {shown}"),
            ),
        )

    return _recorded(sport, value)


def _on_sport_fix(pending: PendingState | None, event: SportFixChosen) -> Transition:
    # A newer photo clears the sport, which makes an older button stale.
    if pending is None or pending.sport is None:
        return Transition(replies=(STALE_FIX_TEXT,))
    return _recorded(event.sport, event.value)


def _on_cancel(pending: PendingState | None, event: Cancelled) -> Transition:
    return Transition(action=PendingAction.DELETE, replies=(CANCELLED_TEXT,))


_HANDLERS: dict[type, Callable[[PendingState | None, object], Transition]] = {
    PhotoSubmitted: _on_photo,
    SportChosen: _on_sport,
    DistanceEntered: _on_distance,
    SportFixChosen: _on_sport_fix,
    Cancelled: _on_cancel,
}


def advance(pending: PendingState | None, event: Event) -> Transition:
    """Compute the next step of the logging conversation.

    Parameters
    ----------
    pending : the user's pending log event, or None if there is none.
    event : what just arrived from the user.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported logging event: {event!r}")
    transition = handler(pending, event)
    logger.debug(
        "Logging flow: %s + %s → %s",
        state_of(pending).value, type(event).__name__, transition.action.value,
    )
    return transition
