"""
tests/test_log_service.py — Pending Events & Log Persistence
=============================================================
Drives the logging pipeline end to end against in-memory SQLite.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from springbattle.database.models import Guild, LogRecord, PendingLogEvent, Sport
from springbattle.engine.logging_flow import (
    NO_PENDING_TEXT,
    STALE_FIX_TEXT,
    Cancelled,
    DistanceEntered,
    PendingAction,
    PendingState,
    PhotoSubmitted,
    SportChosen,
    SportFixChosen,
    Transition,
)
from springbattle.services.log_service import (
    apply_transition,
    delete_pending,
    get_pending,
    insert_log,
    process_event,
    set_pending_sport,
    upsert_pending,
)
from springbattle.services.user_service import UnregisteredUserError

USER = 1001


@pytest.fixture
def registered(db_engine, add_user):
    add_user(USER, "Maija", Guild.KIK)
    return db_engine


def _logs(engine) -> list[LogRecord]:
    with Session(engine) as session:
        return list(session.scalars(select(LogRecord).order_by(LogRecord.id)))


class TestPendingEvents:
    def test_upsert_creates_with_null_sport(self, registered):
        upsert_pending(registered, USER)
        assert get_pending(registered, USER) == PendingState(sport=None)

    def test_upsert_clears_chosen_sport(self, registered):
        upsert_pending(registered, USER)
        assert set_pending_sport(registered, USER, Sport.BIKING)
        upsert_pending(registered, USER)
        assert get_pending(registered, USER).sport is None

    def test_single_row_per_user(self, registered):
        upsert_pending(registered, USER)
        upsert_pending(registered, USER)
        with Session(registered) as session:
            assert len(session.scalars(select(PendingLogEvent)).all()) == 1

    def test_set_sport_without_pending(self, registered):
        assert set_pending_sport(registered, USER, Sport.BIKING) is False

    def test_delete_is_idempotent(self, registered):
        upsert_pending(registered, USER)
        assert delete_pending(registered, USER) is True
        assert delete_pending(registered, USER) is False
        assert get_pending(registered, USER) is None


class TestInsertLog:
    def test_copies_current_guild(self, registered):
        record = insert_log(registered, USER, Sport.RUNNING_WALKING, 5.5)
        assert record.guild == Guild.KIK
        assert record.distance == 5.5

    def test_unregistered_user(self, db_engine):
        with pytest.raises(UnregisteredUserError):
            insert_log(db_engine, 42, Sport.BIKING, 3.0)

    def test_user_without_guild(self, db_engine, add_user):
        add_user(7, "No Guild", None)
        with pytest.raises(UnregisteredUserError):
            insert_log(db_engine, 7, Sport.BIKING, 3.0)

    def test_negative_distance(self, registered):
        with pytest.raises(ValueError):
            insert_log(registered, USER, Sport.BIKING, -1.0)


class TestProcessEvent:
    def test_interactive_flow(self, registered):
        t = process_event(registered, USER, PhotoSubmitted(caption=None))
        assert t.action == PendingAction.UPSERT_CLEARED
        assert get_pending(registered, USER) == PendingState(sport=None)

        process_event(registered, USER, SportChosen(Sport.BIKING))
        assert get_pending(registered, USER) == PendingState(sport=Sport.BIKING)

        t = process_event(registered, USER, DistanceEntered("12.5"))
        assert t.replies[0] == "Recorded Biking with 12.5 km"
        assert get_pending(registered, USER) is None
        [log] = _logs(registered)
        assert (log.sport, log.distance, log.guild) == (Sport.BIKING, 12.5, Guild.KIK)

    def test_steps_stored_as_km(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption=None))
        process_event(registered, USER, SportChosen(Sport.STEPS))
        process_event(registered, USER, DistanceEntered("10000"))
        [log] = _logs(registered)
        assert log.distance == pytest.approx(10000 * 0.0007)

    def test_caption_records_without_pending_event(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption="running, 5.5"))
        assert get_pending(registered, USER) is None
        [log] = _logs(registered)
        assert (log.sport, log.distance) == (Sport.RUNNING_WALKING, 5.5)

    def test_unknown_caption_leaves_awaiting_sport(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption="xyz, 5.5"))
        assert get_pending(registered, USER) == PendingState(sport=None)
        assert _logs(registered) == []

    def test_photo_resets_chosen_sport(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption=None))
        process_event(registered, USER, SportChosen(Sport.RUNNING_WALKING))
        process_event(registered, USER, PhotoSubmitted(caption=None))
        assert get_pending(registered, USER).sport is None

    def test_disambiguation_keeps_pending_until_choice(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption=None))
        process_event(registered, USER, SportChosen(Sport.RUNNING_WALKING))
        process_event(registered, USER, DistanceEntered("1000.1"))
        assert get_pending(registered, USER) == PendingState(sport=Sport.RUNNING_WALKING)
        assert _logs(registered) == []

        process_event(registered, USER, SportFixChosen(Sport.STEPS, 1000.1))
        assert get_pending(registered, USER) is None
        [log] = _logs(registered)
        assert log.sport == Sport.STEPS
        assert log.distance == pytest.approx(1000.1 * 0.0007)

    def test_old_fix_button_keeps_new_submission(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption=None))
        process_event(registered, USER, SportChosen(Sport.RUNNING_WALKING))
        process_event(registered, USER, DistanceEntered("1500"))
        process_event(registered, USER, PhotoSubmitted(caption=None))

        t = process_event(registered, USER, SportFixChosen(Sport.STEPS, 1500.0))
        assert t.replies == (STALE_FIX_TEXT,)
        assert get_pending(registered, USER) == PendingState(sport=None)
        assert _logs(registered) == []

    def test_invalid_distance_stays_awaiting(self, registered):
        process_event(registered, USER, PhotoSubmitted(caption=None))
        process_event(registered, USER, SportChosen(Sport.BIKING))
        process_event(registered, USER, DistanceEntered("0"))
        assert get_pending(registered, USER) == PendingState(sport=Sport.BIKING)
        assert _logs(registered) == []

    @pytest.mark.parametrize("steps", [0, 1, 2])
    def test_cancel_from_any_state(self, registered, steps):
        events = [PhotoSubmitted(caption=None), SportChosen(Sport.BIKING)][:steps]
        for event in events:
            process_event(registered, USER, event)
        process_event(registered, USER, Cancelled())
        assert get_pending(registered, USER) is None

    def test_caption_from_guildless_user_raises(self, db_engine, add_user):
        add_user(5, "Late", None)
        with pytest.raises(UnregisteredUserError):
            process_event(db_engine, 5, PhotoSubmitted(caption="biking, 3"))


class TestApplyTransition:
    def test_set_sport_race_reports_no_pending(self, registered):
        t = apply_transition(
            registered,
            USER,
            Transition(action=PendingAction.SET_SPORT, sport=Sport.STEPS, replies=("prompt",)),
        )
        assert t.action == PendingAction.KEEP
        assert t.replies == (NO_PENDING_TEXT,)
