"""
Spring Battle — Guild Exercise Competition Bot for Telegram
============================================================
Members of two competing guilds send the bot a picture of their exercise,
tell it the sport and distance, and follow the guild race through
leaderboards and a daily digest.

Package layout::

    springbattle/
    ├── config.py          # config.yaml + environment → typed settings
    ├── constants.py       # Conversion factors, caption aliases, texts
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, sessions, async bridge
    │   └── models.py      # users, logs, log_events
    ├── engine/
    │   ├── captions.py    # Caption / distance parsing
    │   ├── logging_flow.py # Pure logging conversation state machine
    │   └── windows.py     # Reporting-timezone day windows
    ├── services/
    │   ├── user_service.py   # Registration, guild choice / reset
    │   ├── log_service.py    # Pending events + log persistence
    │   ├── stats_service.py  # Aggregation queries
    │   └── report_service.py # Report text builders
    └── bot/
        ├── core.py        # SpringBattleBot, handler loader, reply helpers
        └── handlers/
            ├── registration.py # /start, /update_name, /reset_guild
            ├── submissions.py  # photos, sport/distance, /cancel
            ├── stats.py        # /status, /personal, /mydaily
            ├── admin.py        # /daily, /all
            └── tasks.py        # Scheduled daily digest
"""

__version__ = "0.1.0"
