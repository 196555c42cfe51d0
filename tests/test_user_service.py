"""
tests/test_user_service.py — Registration & Guild Changes
==========================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from springbattle.database.models import Guild, LogRecord, PendingLogEvent, Sport
from springbattle.services.log_service import upsert_pending
from springbattle.services.user_service import (
    UnregisteredUserError,
    delete_user,
    get_user,
    register_user,
    require_guild,
    reset_guild,
    set_guild,
    update_name,
)


def _log_guilds(engine, user_id: int) -> set[Guild]:
    with Session(engine) as session:
        return set(session.scalars(
            select(LogRecord.guild).where(LogRecord.user_id == user_id)
        ))


class TestRegistration:
    def test_register_creates_guildless_user(self, db_engine):
        register_user(db_engine, 10, "Ville Virtanen")
        user = get_user(db_engine, 10)
        assert user.user_name == "Ville Virtanen"
        assert user.guild is None

    def test_register_twice_keeps_first_row(self, db_engine):
        register_user(db_engine, 10, "Ville")
        set_guild(db_engine, 10, Guild.SIK)
        register_user(db_engine, 10, "Someone Else")
        user = get_user(db_engine, 10)
        assert (user.user_name, user.guild) == ("Ville", Guild.SIK)

    def test_get_missing_user(self, db_engine):
        assert get_user(db_engine, 999) is None

    def test_require_guild(self, db_engine):
        register_user(db_engine, 10, "Ville")
        with pytest.raises(UnregisteredUserError):
            require_guild(db_engine, 10)
        set_guild(db_engine, 10, Guild.KIK)
        assert require_guild(db_engine, 10) == Guild.KIK

    def test_update_name(self, db_engine, add_user):
        add_user(10, "Old", Guild.KIK)
        assert update_name(db_engine, 10, "New") is True
        assert get_user(db_engine, 10).user_name == "New"
        assert update_name(db_engine, 11, "Nobody") is False


class TestGuildChanges:
    def test_set_guild_keeps_history(self, db_engine, add_user, add_log):
        add_user(10, "Ville", Guild.SIK)
        add_log(10, Guild.SIK, Sport.BIKING, 4.0)
        assert set_guild(db_engine, 10, Guild.KIK) is True
        assert get_user(db_engine, 10).guild == Guild.KIK
        assert _log_guilds(db_engine, 10) == {Guild.SIK}

    def test_set_guild_missing_user(self, db_engine):
        assert set_guild(db_engine, 404, Guild.KIK) is False

    def test_reset_rewrites_history(self, db_engine, add_user, add_log):
        add_user(10, "Ville", Guild.SIK)
        add_user(11, "Other", Guild.SIK)
        add_log(10, Guild.SIK, Sport.BIKING, 4.0)
        add_log(10, Guild.SIK, Sport.STEPS, 2.1)
        add_log(11, Guild.SIK, Sport.STEPS, 1.0)

        assert reset_guild(db_engine, 10, Guild.KIK) == 2
        assert get_user(db_engine, 10).guild == Guild.KIK
        assert _log_guilds(db_engine, 10) == {Guild.KIK}
        assert _log_guilds(db_engine, 11) == {Guild.SIK}


class TestDelete:
    def test_delete_cascades(self, db_engine, add_user, add_log):
        add_user(10, "Ville", Guild.SIK)
        add_log(10, Guild.SIK, Sport.BIKING, 4.0)
        upsert_pending(db_engine, 10)

        assert delete_user(db_engine, 10) is True
        with Session(db_engine) as session:
            assert session.scalar(select(func.count(LogRecord.id))) == 0
            assert session.scalar(select(func.count(PendingLogEvent.user_id))) == 0
        assert get_user(db_engine, 10) is None

    def test_delete_missing(self, db_engine):
        assert delete_user(db_engine, 10) is False
