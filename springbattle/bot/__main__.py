"""
springbattle.bot.__main__ — Entry point for ``python -m springbattle.bot``
==========================================================================

Wiring:
1. Load .env (secrets and deployment switches).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Build the SpringBattleBot and its Application (handlers + digest job).
5. Start the bot (blocking; webhook in production, long polling otherwise).
"""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from springbattle.bot.core import SpringBattleBot
from springbattle.config import load_config, load_runtime_settings
from springbattle.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
# python-telegram-bot logs every poll request through httpx at INFO.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("springbattle")


def main() -> None:
    """Bootstrap and run the Spring Battle bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    try:
        runtime = load_runtime_settings()
    except (RuntimeError, ValueError) as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()
    logger.info(
        "Config loaded — %s (%s mode, submissions %s)",
        cfg.battle_name,
        "production" if runtime.production else "development",
        "open" if runtime.accepting_submissions else "closed",
    )

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Bot.
    bot = SpringBattleBot(cfg=cfg, runtime=runtime, engine=engine)
    bot.build_application()

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting bot")
    bot.run()


if __name__ == "__main__":
    main()
