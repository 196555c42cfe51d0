"""
tests/test_config.py — config.yaml & Environment Settings
==========================================================
"""

from __future__ import annotations

from datetime import time

import pytest

from springbattle.config import (
    BattleConfig,
    load_config,
    load_runtime_settings,
    parse_admins,
)


class TestParseAdmins:
    def test_plain_list(self):
        assert parse_admins("[1, 2, 3]") == frozenset({1, 2, 3})

    def test_wrapped_list(self):
        assert parse_admins('{"list": [42]}') == frozenset({42})

    def test_string_ids(self):
        assert parse_admins('["42"]') == frozenset({42})

    @pytest.mark.parametrize("raw", [None, ""])
    def test_empty(self, raw):
        assert parse_admins(raw) == frozenset()

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            parse_admins("17")


class TestRuntimeSettings:
    def test_full_environment(self):
        runtime = load_runtime_settings({
            "BOT_TOKEN": "123:abc",
            "ADMINS": "[7]",
            "ACCEPTING_SUBMISSIONS": "TRUE",
            "CRON_GROUP_ID": "-100200",
            "BOT_ENV": "production",
            "DOMAIN": "battle.example.org",
        })
        assert runtime.bot_token == "123:abc"
        assert runtime.is_admin(7)
        assert not runtime.is_admin(8)
        assert runtime.accepting_submissions is True
        assert runtime.broadcast_chat_id == -100200
        assert runtime.production is True
        assert runtime.use_webhook is True

    def test_defaults(self):
        runtime = load_runtime_settings({"BOT_TOKEN": "123:abc"})
        assert runtime.admins == frozenset()
        assert runtime.accepting_submissions is False
        assert runtime.broadcast_chat_id is None
        assert runtime.production is False
        assert runtime.use_webhook is False

    def test_production_without_domain_polls(self):
        runtime = load_runtime_settings({"BOT_TOKEN": "t", "BOT_ENV": "production"})
        assert runtime.use_webhook is False

    @pytest.mark.parametrize("token", ["", "your-telegram-bot-token-here"])
    def test_missing_token(self, token):
        with pytest.raises(RuntimeError):
            load_runtime_settings({"BOT_TOKEN": token})


class TestLoadConfig:
    def test_minimal_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text('battle_name: "Spring Battle"\nsupport_contact: "@organizer"\n')
        cfg = load_config(path)
        assert cfg == BattleConfig(battle_name="Spring Battle", support_contact="@organizer")
        assert cfg.digest_time == time(1, 0)

    def test_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "battle_name: Autumn Battle\n"
            "support_contact: '@admin'\n"
            "daily_top_size: 10\n"
            "digest_time: '06:30'\n"
            "scheduler_timezone: UTC\n"
            "webhook_port: 8443\n"
        )
        cfg = load_config(path)
        assert cfg.daily_top_size == 10
        assert cfg.digest_time == time(6, 30)
        assert cfg.scheduler_timezone == "UTC"
        assert cfg.webhook_port == 8443

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("battle_name: Spring Battle\n")
        with pytest.raises(KeyError):
            load_config(path)
