"""
springbattle.config — Configuration Loading
============================================

Two layers:

* **Secrets & deployment switches** come from the environment (``.env``
  is loaded by the entry point with python-dotenv) and are parsed into
  :class:`RuntimeSettings`: bot token, admin allowlist, submission flag,
  broadcast chat, deployment mode.
* **Soft settings** (battle name, leaderboard sizes, digest schedule) live
  in ``config.yaml`` and are parsed into :class:`BattleConfig`.

Usage::

    from springbattle.config import load_config, load_runtime_settings

    cfg = load_config()                 # reads ./config.yaml by default
    runtime = load_runtime_settings()   # reads os.environ
    runtime.is_admin(12345)
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Soft settings — config.yaml
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BattleConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    battle_name: str
    support_contact: str  # Telegram handle shown in error messages

    # Report sizes
    daily_top_size: int = 5
    all_time_top_size: int = 3
    summary_top_size: int = 5

    # Scheduled digest
    digest_time: time = time(1, 0)
    scheduler_timezone: str = "Europe/Helsinki"

    # Webhook mode
    webhook_port: int = 3000


def _parse_time(raw: str) -> time:
    hours, minutes = raw.split(":")
    return time(int(hours), int(minutes))


def load_config(path: str | Path = "config.yaml") -> BattleConfig:
    """Read *path* and return a :class:`BattleConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return BattleConfig(
        battle_name=raw["battle_name"],
        support_contact=raw["support_contact"],
        daily_top_size=int(raw.get("daily_top_size", 5)),
        all_time_top_size=int(raw.get("all_time_top_size", 3)),
        summary_top_size=int(raw.get("summary_top_size", 5)),
        digest_time=_parse_time(str(raw.get("digest_time", "01:00"))),
        scheduler_timezone=raw.get("scheduler_timezone", "Europe/Helsinki"),
        webhook_port=int(raw.get("webhook_port", 3000)),
    )


# ---------------------------------------------------------------------------
# Secrets & switches — environment
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    """Process settings read once from the environment at startup."""

    bot_token: str
    admins: frozenset[int] = field(default_factory=frozenset)
    accepting_submissions: bool = False
    broadcast_chat_id: int | None = None
    production: bool = False
    domain: str | None = None

    def is_admin(self, user_id: int) -> bool:
        return user_id in self.admins

    @property
    def use_webhook(self) -> bool:
        return self.production and bool(self.domain)


def parse_admins(raw: str | None) -> frozenset[int]:
    """Parse the ``ADMINS`` JSON: ``[1, 2]`` or ``{"list": [1, 2]}``."""
    if not raw:
        return frozenset()
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("list", [])
    if not isinstance(data, list):
        raise ValueError(f"ADMINS must be a JSON list, got {type(data).__name__}")
    return frozenset(int(admin_id) for admin_id in data)


def load_runtime_settings(env: Mapping[str, str] | None = None) -> RuntimeSettings:
    """Build :class:`RuntimeSettings` from *env* (defaults to ``os.environ``).

    Raises
    ------
    RuntimeError
        If ``BOT_TOKEN`` is missing.
    """
    env = os.environ if env is None else env

    token = env.get("BOT_TOKEN", "")
    if not token or token == "your-telegram-bot-token-here":
        raise RuntimeError(
            "BOT_TOKEN is not set.  Copy .env.example → .env and paste your bot token."
        )

    broadcast = env.get("CRON_GROUP_ID")
    return RuntimeSettings(
        bot_token=token,
        admins=parse_admins(env.get("ADMINS")),
        accepting_submissions=env.get("ACCEPTING_SUBMISSIONS", "").lower() == "true",
        broadcast_chat_id=int(broadcast) if broadcast else None,
        production=env.get("BOT_ENV", "development").lower() == "production",
        domain=env.get("DOMAIN") or None,
    )
